"""Ticket purchaser backed by the NFT marketplace API."""

from decimal import Decimal

import requests

from ticket_pipeline.clients.http import bearer_headers, send_json
from ticket_pipeline.core.config import Settings
from ticket_pipeline.core.errors import TicketPurchaseError, TransportError
from ticket_pipeline.core.types import TicketPurchase

_BUY_TICKET_PATH = "/buy_ticket"


class MarketplaceTicketPurchaser:
    def __init__(self, settings: Settings, session: requests.Session) -> None:
        self._api_key = settings.NFT_MARKETPLACE_API_KEY
        self._url = settings.NFT_MARKETPLACE_API_URL.rstrip("/") + _BUY_TICKET_PATH
        self._timeout_s = settings.http_timeout_s()
        self._session = session

    def buy_ticket(
        self, crypto_amount: Decimal, crypto_currency: str, ticket_id: str
    ) -> TicketPurchase:
        try:
            response = send_json(
                self._session,
                "POST",
                self._url,
                timeout=self._timeout_s,
                headers=bearer_headers(self._api_key),
                json_body={
                    "cryptoAmount": float(crypto_amount),
                    "cryptoCurrency": crypto_currency,
                    "nftId": ticket_id,
                },
            )
        except TransportError as exc:
            raise TicketPurchaseError(f"ticket {ticket_id} request failed: {exc}") from exc

        if not response.ok:
            raise TicketPurchaseError(
                f"ticket {ticket_id} request returned status {response.status_code}"
            )

        transaction_hash = response.field("transactionHash")
        if not isinstance(transaction_hash, str) or not transaction_hash:
            raise TicketPurchaseError(
                "failed to get transactionHash from NFT marketplace response"
            )

        return TicketPurchase(
            crypto_amount=crypto_amount,
            crypto_currency=crypto_currency,
            ticket_id=ticket_id,
            transaction_hash=transaction_hash,
        )

"""Fail-fast purchase pipeline: fiat conversion, crypto market buy, NFT ticket buy.

Each stage runs only after the previous one produced its record. The first
stage error moves the run to FAILED and nothing after it is attempted.
Completed stages are never undone: a crypto order placed before a failed
ticket purchase stays on the exchange, so every stage boundary is logged with
the amounts and identifiers needed to reconcile by hand.
"""

import logging
from dataclasses import dataclass, replace

import requests

from ticket_pipeline.clients.binance import BinanceCryptoPurchaser, BinancePriceOracle
from ticket_pipeline.clients.marketplace import MarketplaceTicketPurchaser
from ticket_pipeline.clients.wise import WiseRateConverter
from ticket_pipeline.core.config import Settings
from ticket_pipeline.core.errors import StageError
from ticket_pipeline.core.ports import CryptoPurchaser, RateConverter, TicketPurchaser
from ticket_pipeline.core.types import (
    ConversionQuote,
    CryptoOrder,
    PipelineState,
    PurchaseOutcome,
    PurchaseRequest,
    TicketPurchase,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class _Progress:
    request: PurchaseRequest
    quote: ConversionQuote | None = None
    order: CryptoOrder | None = None


class PurchasePipeline:
    """Run one purchase request through every stage in order."""

    def __init__(
        self,
        converter: RateConverter,
        crypto_purchaser: CryptoPurchaser,
        ticket_purchaser: TicketPurchaser,
        asset: str,
        ticket_id: str,
        ticket_amount_from_order_quantity: bool = False,
    ) -> None:
        self._converter = converter
        self._crypto_purchaser = crypto_purchaser
        self._ticket_purchaser = ticket_purchaser
        self._asset = asset
        self._ticket_id = ticket_id
        self._ticket_amount_from_order_quantity = ticket_amount_from_order_quantity

    def run(self, request: PurchaseRequest) -> PurchaseOutcome:
        progress = _Progress(request=request)
        stage = PipelineState.CONVERTING
        try:
            quote = self._convert(request)
            progress = replace(progress, quote=quote)

            stage = PipelineState.BUYING_CRYPTO
            order = self._buy_crypto(quote)
            progress = replace(progress, order=order)

            stage = PipelineState.BUYING_TICKET
            ticket = self._buy_ticket(quote, order)
        except StageError as exc:
            return self._fail(progress, stage, exc)

        return PurchaseOutcome(
            state=PipelineState.DONE,
            request=request,
            quote=quote,
            order=order,
            ticket=ticket,
        )

    def _convert(self, request: PurchaseRequest) -> ConversionQuote:
        quote = self._converter.convert(
            request.source_amount, request.source_currency, request.target_currency
        )
        logger.info(
            "pipeline_conversion_done",
            extra={
                "source_amount": quote.source_amount,
                "source_currency": quote.source_currency,
                "target_amount": quote.target_amount,
                "target_currency": quote.target_currency,
            },
        )
        return quote

    def _buy_crypto(self, quote: ConversionQuote) -> CryptoOrder:
        order = self._crypto_purchaser.buy(quote.target_amount, quote.target_currency, self._asset)
        logger.info(
            "pipeline_crypto_order_placed",
            extra={
                "order_id": order.order_id,
                "asset": order.asset,
                "quantity": order.quantity,
                "fiat_amount": order.fiat_amount,
                "fiat_currency": order.fiat_currency,
            },
        )
        return order

    def _buy_ticket(self, quote: ConversionQuote, order: CryptoOrder) -> TicketPurchase:
        # The marketplace has always been sent the converted fiat amount here.
        crypto_amount = (
            order.quantity if self._ticket_amount_from_order_quantity else quote.target_amount
        )
        ticket = self._ticket_purchaser.buy_ticket(crypto_amount, self._asset, self._ticket_id)
        logger.info(
            "pipeline_ticket_purchased",
            extra={
                "transaction_hash": ticket.transaction_hash,
                "ticket_id": ticket.ticket_id,
                "crypto_amount": ticket.crypto_amount,
                "crypto_currency": ticket.crypto_currency,
                "order_id": order.order_id,
            },
        )
        return ticket

    def _fail(self, progress: _Progress, stage: PipelineState, exc: StageError) -> PurchaseOutcome:
        logger.error(
            "pipeline_stage_failed",
            extra={
                "stage": stage.value,
                "error_type": type(exc).__name__,
                "error": str(exc),
                "source_amount": progress.request.source_amount,
                "target_amount": progress.quote.target_amount if progress.quote else None,
                "order_id": progress.order.order_id if progress.order else None,
            },
        )
        return PurchaseOutcome(
            state=PipelineState.FAILED,
            request=progress.request,
            quote=progress.quote,
            order=progress.order,
            failed_stage=stage,
            error=exc,
        )


def build_pipeline(settings: Settings, session: requests.Session | None = None) -> PurchasePipeline:
    """Wire the remote stage clients from explicit settings."""

    session = session or requests.Session()
    oracle = BinancePriceOracle(settings, session)
    return PurchasePipeline(
        converter=WiseRateConverter(settings, session),
        crypto_purchaser=BinanceCryptoPurchaser(settings, session, oracle),
        ticket_purchaser=MarketplaceTicketPurchaser(settings, session),
        asset=settings.crypto_asset(),
        ticket_id=settings.TICKET_NFT_ID,
        ticket_amount_from_order_quantity=settings.TICKET_AMOUNT_FROM_ORDER_QUANTITY,
    )

"""Rate converter backed by the Wise quotes API."""

import re
from decimal import Decimal
from typing import Any

import requests

from ticket_pipeline.clients.http import bearer_headers, send_json
from ticket_pipeline.core.config import Settings
from ticket_pipeline.core.errors import ConversionError, TransportError
from ticket_pipeline.core.types import ConversionQuote

_QUOTES_PATH = "/v1/quotes"
_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


def _as_decimal(value: Any) -> Decimal | None:
    # Bodies are decoded with parse_float=Decimal, so numbers arrive as int or Decimal.
    if isinstance(value, bool) or not isinstance(value, (int, Decimal)):
        return None
    amount = Decimal(value)
    if not amount.is_finite():
        return None
    return amount


class WiseRateConverter:
    """Ask Wise for a quote; the remote rate is authoritative and never cached."""

    def __init__(self, settings: Settings, session: requests.Session) -> None:
        self._api_key = settings.WISE_API_KEY
        self._url = settings.WISE_API_URL.rstrip("/") + _QUOTES_PATH
        self._timeout_s = settings.http_timeout_s()
        self._session = session

    def convert(self, amount: Decimal, source: str, target: str) -> ConversionQuote:
        if amount <= 0:
            raise ConversionError(f"amount must be positive, got {amount}")
        for code in (source, target):
            if not _CURRENCY_CODE.match(code):
                raise ConversionError(f"invalid currency code: {code!r}")

        try:
            response = send_json(
                self._session,
                "POST",
                self._url,
                timeout=self._timeout_s,
                headers=bearer_headers(self._api_key),
                json_body={
                    "sourceCurrency": source,
                    "targetCurrency": target,
                    "sourceAmount": float(amount),
                },
            )
        except TransportError as exc:
            raise ConversionError(f"quote request failed: {exc}") from exc

        if not response.ok:
            raise ConversionError(f"quote request returned status {response.status_code}")

        target_amount = _as_decimal(response.field("targetAmount"))
        if target_amount is None:
            raise ConversionError("failed to get targetAmount from Wise API response")
        if target_amount <= 0:
            raise ConversionError(f"non-positive targetAmount: {target_amount}")

        return ConversionQuote(
            source_amount=amount,
            source_currency=source,
            target_currency=target,
            target_amount=target_amount,
        )

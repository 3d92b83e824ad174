"""Binance spot market data and market-order placement."""

import hashlib
import hmac
import time
from decimal import ROUND_HALF_EVEN, Decimal, DecimalException
from urllib.parse import urlencode

import requests

from ticket_pipeline.clients.http import send_json
from ticket_pipeline.core.config import Settings
from ticket_pipeline.core.errors import (
    InvalidOrderSizeError,
    OrderRejectedError,
    PriceUnavailableError,
    TransportError,
)
from ticket_pipeline.core.ports import PriceOracle
from ticket_pipeline.core.types import CryptoOrder, SpotPrice

_TICKER_PATH = "/api/v3/ticker/price"
_ORDER_PATH = "/api/v3/order"
# Minimum lot-size step accepted for market quantities.
_QUANTITY_STEP = Decimal("0.000001")
# Fiat legs Binance only lists against a stablecoin.
_STABLECOIN_QUOTES = {"USD": "USDT"}


def market_symbol(asset: str, quote: str) -> str:
    """Return the Binance pair symbol for an asset priced in a fiat currency."""

    return f"{asset}{_STABLECOIN_QUOTES.get(quote, quote)}".upper()


def order_quantity(fiat_amount: Decimal, price: Decimal) -> Decimal:
    """Size a market buy as fiat_amount / price at 6-decimal granularity."""

    if price <= 0:
        raise InvalidOrderSizeError(f"cannot size order against price {price}")
    try:
        quantity = (fiat_amount / price).quantize(_QUANTITY_STEP, rounding=ROUND_HALF_EVEN)
    except DecimalException as exc:
        raise InvalidOrderSizeError(
            f"order size {fiat_amount}/{price} is not representable"
        ) from exc
    if quantity <= 0:
        raise InvalidOrderSizeError(
            f"order size {fiat_amount}/{price} rounds to zero at step {_QUANTITY_STEP}"
        )
    return quantity


class BinancePriceOracle:
    """Read the latest ticker price for a pair."""

    def __init__(self, settings: Settings, session: requests.Session) -> None:
        self._url = settings.BINANCE_API_URL.rstrip("/") + _TICKER_PATH
        self._timeout_s = settings.http_timeout_s()
        self._session = session

    def spot_price(self, asset: str, quote: str) -> SpotPrice:
        symbol = market_symbol(asset, quote)
        try:
            response = send_json(
                self._session,
                "GET",
                self._url,
                timeout=self._timeout_s,
                params={"symbol": symbol},
            )
        except TransportError as exc:
            raise PriceUnavailableError(f"ticker request for {symbol} failed: {exc}") from exc

        if not response.ok:
            raise PriceUnavailableError(
                f"ticker request for {symbol} returned status {response.status_code}"
            )

        raw_price = response.field("price")
        if not isinstance(raw_price, str):
            raise PriceUnavailableError(f"missing price for {symbol}")
        try:
            price = Decimal(raw_price)
        except DecimalException as exc:
            raise PriceUnavailableError(f"non-numeric price for {symbol}: {raw_price!r}") from exc
        if not price.is_finite() or price <= 0:
            raise PriceUnavailableError(f"invalid price for {symbol}: {raw_price!r}")

        return SpotPrice(asset=asset, quote_currency=quote, price=price)


class BinanceCryptoPurchaser:
    """Place a market buy sized from a fiat amount and the oracle's spot price.

    An order that was accepted stays in place whatever happens downstream.
    """

    def __init__(
        self,
        settings: Settings,
        session: requests.Session,
        oracle: PriceOracle,
    ) -> None:
        self._api_key = settings.BINANCE_API_KEY
        self._api_secret = settings.BINANCE_API_SECRET
        self._url = settings.BINANCE_API_URL.rstrip("/") + _ORDER_PATH
        self._timeout_s = settings.http_timeout_s()
        self._session = session
        self._oracle = oracle

    def buy(self, fiat_amount: Decimal, fiat_currency: str, asset: str) -> CryptoOrder:
        spot = self._oracle.spot_price(asset, fiat_currency)
        quantity = order_quantity(fiat_amount, spot.price)
        symbol = market_symbol(asset, fiat_currency)

        try:
            response = send_json(
                self._session,
                "POST",
                self._url,
                timeout=self._timeout_s,
                headers={"X-MBX-APIKEY": self._api_key},
                params=self._order_params(symbol, quantity),
            )
        except TransportError as exc:
            raise OrderRejectedError(f"order request for {symbol} failed: {exc}") from exc

        if not response.ok:
            raise OrderRejectedError(
                f"order for {quantity} {symbol} returned status {response.status_code}"
            )

        order_id = response.field("orderId")
        if isinstance(order_id, bool) or not isinstance(order_id, (str, int)) or order_id == "":
            raise OrderRejectedError("failed to get orderId from Binance API response")

        return CryptoOrder(
            asset=asset,
            quantity=quantity,
            order_id=str(order_id),
            fiat_amount=fiat_amount,
            fiat_currency=fiat_currency,
        )

    def _order_params(self, symbol: str, quantity: Decimal) -> dict[str, str]:
        params = {
            "symbol": symbol,
            "side": "BUY",
            "type": "MARKET",
            "quantity": f"{quantity:.6f}",
        }
        if not self._api_secret:
            return params

        params["timestamp"] = str(int(time.time() * 1000))
        params["signature"] = hmac.new(
            self._api_secret.encode("utf-8"),
            urlencode(params).encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return params

"""Spot price parsing, order sizing and market order submission."""

import hashlib
import hmac
from decimal import Decimal
from urllib.parse import urlencode

import pytest
import requests

from tests.fakes import FakeResponse, FakeSession
from ticket_pipeline.clients.binance import (
    BinanceCryptoPurchaser,
    BinancePriceOracle,
    market_symbol,
    order_quantity,
)
from ticket_pipeline.core.errors import (
    InvalidOrderSizeError,
    OrderRejectedError,
    PriceUnavailableError,
    TransportError,
)
from ticket_pipeline.core.types import SpotPrice


class FixedOracle:
    def __init__(self, price: Decimal) -> None:
        self.price = price
        self.calls: list[tuple[str, str]] = []

    def spot_price(self, asset: str, quote: str) -> SpotPrice:
        self.calls.append((asset, quote))
        return SpotPrice(asset=asset, quote_currency=quote, price=self.price)


def test_usd_is_quoted_against_usdt() -> None:
    assert market_symbol("BTC", "USD") == "BTCUSDT"
    assert market_symbol("eth", "EUR") == "ETHEUR"


def test_spot_price_parses_decimal_string(settings) -> None:
    session = FakeSession(FakeResponse(200, {"symbol": "BTCUSDT", "price": "50000.00000000"}))

    spot = BinancePriceOracle(settings, session).spot_price("BTC", "USD")

    assert spot == SpotPrice(asset="BTC", quote_currency="USD", price=Decimal("50000"))
    call = session.calls[0]
    assert call["method"] == "GET"
    assert call["url"] == "https://binance.test/api/v3/ticker/price"
    assert call["params"] == {"symbol": "BTCUSDT"}


@pytest.mark.parametrize(
    "payload",
    [{}, {"price": 50000}, {"price": "abc"}, {"price": "0"}, {"price": "-1"}, {"price": "NaN"}],
)
def test_unusable_price_is_price_unavailable(settings, payload) -> None:
    session = FakeSession(FakeResponse(200, payload))

    with pytest.raises(PriceUnavailableError):
        BinancePriceOracle(settings, session).spot_price("BTC", "USD")


def test_ticker_network_failure_is_price_unavailable(settings) -> None:
    session = FakeSession(requests.Timeout("read timed out"))

    with pytest.raises(PriceUnavailableError) as exc_info:
        BinancePriceOracle(settings, session).spot_price("BTC", "USD")

    assert isinstance(exc_info.value.__cause__, TransportError)


def test_order_quantity_rounds_to_six_decimals() -> None:
    assert order_quantity(Decimal("95.0"), Decimal("50000")) == Decimal("0.001900")
    assert order_quantity(Decimal("100"), Decimal("30000")) == Decimal("0.003333")
    assert order_quantity(Decimal("200"), Decimal("30000")) == Decimal("0.006667")


@pytest.mark.parametrize(
    ("fiat_amount", "price"),
    [
        (Decimal("95"), Decimal("50000")),
        (Decimal("12.34"), Decimal("27123.45")),
        (Decimal("1000000"), Decimal("61234.5678")),
        (Decimal("0.5"), Decimal("3.3")),
    ],
)
def test_order_quantity_times_price_recovers_amount(fiat_amount, price) -> None:
    quantity = order_quantity(fiat_amount, price)

    assert abs(quantity * price - fiat_amount) <= Decimal("0.0000005") * price


@pytest.mark.parametrize(
    ("fiat_amount", "price"),
    [
        (Decimal("95"), Decimal("0")),
        (Decimal("95"), Decimal("-5")),
        (Decimal("0.0000001"), Decimal("50000")),
        (Decimal("1E+40"), Decimal("1E-40")),
    ],
)
def test_unrepresentable_order_size_is_rejected(fiat_amount, price) -> None:
    with pytest.raises(InvalidOrderSizeError):
        order_quantity(fiat_amount, price)


def test_buy_submits_market_order(settings) -> None:
    oracle = FixedOracle(Decimal("50000"))
    session = FakeSession(FakeResponse(200, {"orderId": "12345", "status": "FILLED"}))

    order = BinanceCryptoPurchaser(settings, session, oracle).buy(Decimal("95.0"), "USD", "BTC")

    assert oracle.calls == [("BTC", "USD")]
    assert order.order_id == "12345"
    assert order.quantity == Decimal("0.001900")
    assert order.side == "BUY"
    assert order.order_type == "MARKET"
    assert order.fiat_amount == Decimal("95.0")

    call = session.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == "https://binance.test/api/v3/order"
    assert call["headers"] == {"X-MBX-APIKEY": "binance-key"}
    assert call["params"] == {
        "symbol": "BTCUSDT",
        "side": "BUY",
        "type": "MARKET",
        "quantity": "0.001900",
    }


def test_numeric_order_id_is_accepted(settings) -> None:
    session = FakeSession(FakeResponse(200, {"orderId": 28457}))

    order = BinanceCryptoPurchaser(settings, session, FixedOracle(Decimal("50000"))).buy(
        Decimal("95"), "USD", "BTC"
    )

    assert order.order_id == "28457"


def test_signed_order_when_secret_configured(settings) -> None:
    signed_settings = settings.model_copy(update={"BINANCE_API_SECRET": "s3cret"})
    session = FakeSession(FakeResponse(200, {"orderId": "1"}))

    BinanceCryptoPurchaser(signed_settings, session, FixedOracle(Decimal("50000"))).buy(
        Decimal("95"), "USD", "BTC"
    )

    params = dict(session.calls[0]["params"])
    signature = params.pop("signature")
    assert "timestamp" in params
    expected = hmac.new(b"s3cret", urlencode(params).encode("utf-8"), hashlib.sha256).hexdigest()
    assert signature == expected


@pytest.mark.parametrize(
    "response",
    [
        FakeResponse(200, {"status": "FILLED"}),
        FakeResponse(200, {"orderId": ""}),
        FakeResponse(200, {"orderId": True}),
        FakeResponse(400, {"code": -1013, "msg": "Filter failure: LOT_SIZE"}),
        requests.ConnectionError("reset by peer"),
    ],
)
def test_rejected_orders_raise(settings, response) -> None:
    session = FakeSession(response)

    with pytest.raises(OrderRejectedError):
        BinanceCryptoPurchaser(settings, session, FixedOracle(Decimal("50000"))).buy(
            Decimal("95"), "USD", "BTC"
        )


def test_zero_price_never_submits_order(settings) -> None:
    session = FakeSession()

    with pytest.raises(InvalidOrderSizeError):
        BinanceCryptoPurchaser(settings, session, FixedOracle(Decimal("0"))).buy(
            Decimal("95"), "USD", "BTC"
        )

    assert session.calls == []

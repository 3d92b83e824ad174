"""Narrow one-method interfaces for each remote stage so tests can swap in fakes."""

from decimal import Decimal
from typing import Protocol

from ticket_pipeline.core.types import ConversionQuote, CryptoOrder, SpotPrice, TicketPurchase


class RateConverter(Protocol):
    def convert(self, amount: Decimal, source: str, target: str) -> ConversionQuote: ...


class PriceOracle(Protocol):
    def spot_price(self, asset: str, quote: str) -> SpotPrice: ...


class CryptoPurchaser(Protocol):
    def buy(self, fiat_amount: Decimal, fiat_currency: str, asset: str) -> CryptoOrder: ...


class TicketPurchaser(Protocol):
    def buy_ticket(
        self, crypto_amount: Decimal, crypto_currency: str, ticket_id: str
    ) -> TicketPurchase: ...

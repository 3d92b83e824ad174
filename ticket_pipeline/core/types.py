"""Immutable records handed from one pipeline stage to the next."""

from dataclasses import dataclass
from decimal import Decimal
from enum import Enum

from ticket_pipeline.core.errors import StageError, ValidationError


@dataclass(frozen=True, slots=True)
class PurchaseRequest:
    """Fiat amount a caller wants to spend on one ticket."""

    source_amount: Decimal
    source_currency: str
    target_currency: str

    def __post_init__(self) -> None:
        if not isinstance(self.source_amount, Decimal) or not self.source_amount.is_finite():
            raise ValidationError("source amount must be a finite decimal")
        if self.source_amount <= 0:
            raise ValidationError("source amount must be positive")


@dataclass(frozen=True, slots=True)
class ConversionQuote:
    """Remote quote converting the source amount into the target currency."""

    source_amount: Decimal
    source_currency: str
    target_currency: str
    target_amount: Decimal


@dataclass(frozen=True, slots=True)
class SpotPrice:
    """Current market price of one unit of an asset."""

    asset: str
    quote_currency: str
    price: Decimal


@dataclass(frozen=True, slots=True)
class CryptoOrder:
    """Market buy order accepted by the exchange."""

    asset: str
    quantity: Decimal
    order_id: str
    fiat_amount: Decimal
    fiat_currency: str
    side: str = "BUY"
    order_type: str = "MARKET"


@dataclass(frozen=True, slots=True)
class TicketPurchase:
    """Marketplace confirmation of an NFT ticket purchase."""

    crypto_amount: Decimal
    crypto_currency: str
    ticket_id: str
    transaction_hash: str


class PipelineState(str, Enum):
    START = "start"
    CONVERTING = "converting"
    BUYING_CRYPTO = "buying_crypto"
    BUYING_TICKET = "buying_ticket"
    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class PurchaseOutcome:
    """Terminal state of one pipeline run and every record it produced."""

    state: PipelineState
    request: PurchaseRequest
    quote: ConversionQuote | None = None
    order: CryptoOrder | None = None
    ticket: TicketPurchase | None = None
    failed_stage: PipelineState | None = None
    error: StageError | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is PipelineState.DONE

    @property
    def transaction_hash(self) -> str | None:
        if self.ticket is None:
            return None
        return self.ticket.transaction_hash

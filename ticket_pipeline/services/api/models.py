from decimal import Decimal
from typing import Annotated

from pydantic import AllowInfNan, BaseModel, PositiveFloat, PositiveInt, Strict

# JSON numbers only: strings, booleans and null are rejected, not coerced.
PositiveAmount = Annotated[PositiveInt, Strict()] | Annotated[
    PositiveFloat, Strict(), AllowInfNan(False)
]


class PurchaseTicketBody(BaseModel):
    amountIDR: PositiveAmount

    def source_amount(self) -> Decimal:
        return Decimal(str(self.amountIDR))


class PurchaseTicketResponse(BaseModel):
    success: bool
    transactionHash: str

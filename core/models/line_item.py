"""Line item domain models.

Prices are Decimal with two decimals. total is always quantity * unit_price;
a total sent by a client is ignored and recomputed. Quantities and amounts
are bounded by what the storage columns can hold.
"""

from decimal import Decimal
from uuid import UUID

from pydantic import Field, ValidationInfo, field_validator, model_validator

from core.models.base import WireModel
from core.money import MAX_AMOUNT, MAX_QUANTITY, line_total, quantize


class LineItemCreate(WireModel):
    """Data required to add a line item."""

    name: str = Field(..., min_length=1, max_length=500)
    quantity: int = Field(..., ge=1, le=MAX_QUANTITY, strict=True)
    unit_price: Decimal = Field(..., ge=0, le=MAX_AMOUNT)
    total: Decimal | None = None

    @field_validator("unit_price")
    @classmethod
    def two_decimals(cls, value: Decimal, info: ValidationInfo) -> Decimal:
        value = quantize(value)
        quantity = info.data.get("quantity")
        if quantity is not None and line_total(quantity, value) > MAX_AMOUNT:
            raise ValueError(f"Line total must not exceed {MAX_AMOUNT}")
        return value

    @model_validator(mode="after")
    def compute_total(self) -> "LineItemCreate":
        """Derive total from quantity * unit_price."""
        self.total = line_total(self.quantity, self.unit_price)
        return self


class InvoiceItemCreate(LineItemCreate):
    """A line item added to an already saved invoice."""

    invoice_id: UUID


class LineItem(WireModel):
    """Full line item entity as stored."""

    id: UUID
    invoice_id: UUID
    name: str
    quantity: int
    unit_price: Decimal
    total: Decimal

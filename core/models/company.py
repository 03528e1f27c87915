"""Company (billing party) domain models.

Tax rate is a percentage with two decimals: 13.00 = 13%.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import Field, field_validator

from core.models.base import WireModel
from core.money import DEFAULT_TAX_RATE, quantize


class CompanySnapshot(WireModel):
    """Company identity as rendered on an invoice. Also the create payload."""

    name: str = Field(..., min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    website: str | None = Field(None, max_length=255)
    tax_rate: Decimal = Field(DEFAULT_TAX_RATE, ge=0, le=100)

    @field_validator("tax_rate", mode="before")
    @classmethod
    def default_when_missing(cls, value):
        """An explicit null still means the default rate."""
        return DEFAULT_TAX_RATE if value is None else value

    @field_validator("tax_rate")
    @classmethod
    def two_decimals(cls, value: Decimal) -> Decimal:
        return quantize(value)


CompanyCreate = CompanySnapshot


class CompanyUpdate(WireModel):
    """Data that can be updated on a company. All fields optional."""

    name: str | None = Field(None, min_length=1, max_length=255)
    phone: str | None = Field(None, max_length=50)
    address: str | None = Field(None, max_length=500)
    website: str | None = Field(None, max_length=255)
    tax_rate: Decimal | None = Field(None, ge=0, le=100)


class Company(CompanySnapshot):
    """Full company entity as stored."""

    id: UUID
    created_at: datetime

"""Invoice domain models.

Amounts are Decimal with two decimals. subtotal, tax and total are derived
from the items and tax_rate and are never edited directly.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from core.models.base import WireModel
from core.models.company import Company, CompanySnapshot
from core.models.line_item import LineItem, LineItemCreate
from core.money import quantize


class InvoiceStatus(str, Enum):
    """Invoice lifecycle status."""

    DRAFT = "draft"
    SAVED = "saved"
    PAID = "paid"


class InvoiceCreate(WireModel):
    """
    Invoice header fields accepted on create.

    invoice_number is assigned by the store when absent. subtotal, tax and
    total are advisory: the server recomputes them from the items.
    """

    invoice_number: str | None = Field(None, min_length=1, max_length=64)
    company_id: UUID | None = None
    tax_rate: Decimal | None = Field(None, ge=0, le=100)
    subtotal: Decimal | None = None
    tax: Decimal | None = None
    total: Decimal | None = None
    status: InvoiceStatus = InvoiceStatus.DRAFT

    @field_validator("tax_rate")
    @classmethod
    def two_decimals(cls, value: Decimal | None) -> Decimal | None:
        return quantize(value) if value is not None else None


class InvoiceCreateRequest(WireModel):
    """Full create payload: header, items and an optional new company."""

    invoice: InvoiceCreate = Field(default_factory=InvoiceCreate)
    items: list[LineItemCreate] = Field(default_factory=list)
    company: CompanySnapshot | None = None


class InvoiceUpdate(WireModel):
    """Data that can be updated on an invoice. All fields optional."""

    status: InvoiceStatus | None = None
    company_id: UUID | None = None
    tax_rate: Decimal | None = Field(None, ge=0, le=100)

    @field_validator("tax_rate")
    @classmethod
    def two_decimals(cls, value: Decimal | None) -> Decimal | None:
        return quantize(value) if value is not None else None


class Invoice(WireModel):
    """Full invoice entity as stored."""

    id: UUID
    invoice_number: str
    company_id: UUID | None
    tax_rate: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    status: InvoiceStatus
    created_at: datetime
    updated_at: datetime

    @property
    def is_paid(self) -> bool:
        return self.status == InvoiceStatus.PAID


class InvoiceWithItems(Invoice):
    """Invoice with its ordered line items and linked company."""

    items: list[LineItem] = Field(default_factory=list)
    company: Company | None = None


class InvoiceSortField(str, Enum):
    """Columns the management view can sort by."""

    INVOICE_NUMBER = "invoiceNumber"
    TOTAL = "total"
    STATUS = "status"
    CREATED_AT = "createdAt"


class SortOrder(str, Enum):
    ASC = "asc"
    DESC = "desc"


class InvoiceQuery(BaseModel):
    """
    Filter and sort options for listing invoices.

    search matches invoice number or company name, case-insensitive substring.
    Ties in the sort column are broken by id ascending.
    """

    search: str | None = Field(None, max_length=200)
    status: InvoiceStatus | None = None
    sort: InvoiceSortField = InvoiceSortField.CREATED_AT
    order: SortOrder = SortOrder.DESC

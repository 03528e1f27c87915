"""Core domain models."""

from core.models.company import Company, CompanyCreate, CompanySnapshot, CompanyUpdate
from core.models.line_item import LineItem, LineItemCreate, InvoiceItemCreate
from core.models.invoice import (
    Invoice,
    InvoiceCreate,
    InvoiceCreateRequest,
    InvoiceQuery,
    InvoiceSortField,
    InvoiceStatus,
    InvoiceUpdate,
    InvoiceWithItems,
    SortOrder,
)

__all__ = [
    # Company
    "Company", "CompanyCreate", "CompanySnapshot", "CompanyUpdate",
    # LineItem
    "LineItem", "LineItemCreate", "InvoiceItemCreate",
    # Invoice
    "Invoice", "InvoiceCreate", "InvoiceCreateRequest", "InvoiceUpdate",
    "InvoiceWithItems", "InvoiceStatus",
    # Listing
    "InvoiceQuery", "InvoiceSortField", "SortOrder",
]

"""
Invoice store interface.

Two implementations are interchangeable: MemoryInvoiceStore (process-local,
guarded by a lock) and PostgresInvoiceStore (one transaction per write).
Both assign invoice numbers through an injected NumberingPolicy inside the
same critical section that inserts the invoice, and both reject a duplicate
invoice number with ConflictError.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from core.models import (
    Company,
    CompanySnapshot,
    CompanyUpdate,
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceQuery,
    InvoiceUpdate,
    InvoiceWithItems,
    LineItem,
    LineItemCreate,
)
from core.exceptions import ValidationError
from core.money import DEFAULT_TAX_RATE, MAX_AMOUNT, Totals, compute_totals
from core.numbering import NumberingPolicy


class InvoiceStore(ABC):
    """CRUD persistence for companies, invoices and line items."""

    def __init__(self, numbering: NumberingPolicy):
        self.numbering = numbering

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_company(self, data: CompanySnapshot) -> Company:
        """Insert a company row."""

    @abstractmethod
    def get_company(self, company_id: UUID) -> Company | None:
        """Company by id, or None."""

    @abstractmethod
    def update_company(self, company_id: UUID, data: CompanyUpdate) -> Company | None:
        """Partial update. Returns None if the company does not exist."""

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    @abstractmethod
    def create_invoice(
        self,
        invoice: InvoiceCreate,
        items: list[LineItemCreate],
        company: CompanySnapshot | None = None,
    ) -> InvoiceWithItems:
        """
        Persist an invoice with its items, all or nothing.

        Assigns id and, when invoice.invoice_number is None, a number from
        the numbering policy. Creates a company row first when company is
        given. Totals are recomputed from items and the effective tax rate.

        Raises:
            ConflictError: If the invoice number is already taken
            NotFoundError: If invoice.company_id references no company
            PersistenceError: If storage fails
        """

    @abstractmethod
    def get_invoice(self, invoice_id: UUID) -> InvoiceWithItems | None:
        """Invoice with items and company, or None."""

    @abstractmethod
    def get_invoice_by_number(self, invoice_number: str) -> InvoiceWithItems | None:
        """Invoice with items and company by its number, or None."""

    @abstractmethod
    def list_invoices(self, query: InvoiceQuery | None = None) -> list[InvoiceWithItems]:
        """Filtered and sorted invoices; ties broken by id ascending."""

    @abstractmethod
    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate) -> InvoiceWithItems | None:
        """
        Partial update of status, company link or tax rate.

        Totals are recomputed when the tax rate changes.
        Returns None if the invoice does not exist.
        """

    def update_invoice_status(self, invoice_id: UUID, status) -> InvoiceWithItems | None:
        return self.update_invoice(invoice_id, InvoiceUpdate(status=status))

    @abstractmethod
    def delete_invoice(self, invoice_id: UUID) -> bool:
        """Delete an invoice and its items. False if it did not exist."""

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    @abstractmethod
    def add_item(self, data: InvoiceItemCreate) -> LineItem:
        """
        Append an item to a saved invoice and recompute its totals.

        Raises:
            NotFoundError: If the invoice does not exist
        """

    @abstractmethod
    def delete_item(self, item_id: UUID) -> bool:
        """Remove one item and recompute its invoice's totals."""

    # -------------------------------------------------------------------------
    # Numbering
    # -------------------------------------------------------------------------

    @abstractmethod
    def existing_numbers(self) -> Iterable[str]:
        """All invoice numbers currently stored."""

    def generate_invoice_number(self) -> str:
        """Next number under the policy. Nothing is reserved or written."""
        return self.numbering.generate(self.existing_numbers())

    @staticmethod
    def effective_tax_rate(
        invoice: InvoiceCreate,
        company: CompanySnapshot | None,
    ) -> Decimal:
        """Explicit invoice rate, else the company's, else the default."""
        if invoice.tax_rate is not None:
            return invoice.tax_rate
        if company is not None:
            return company.tax_rate
        return DEFAULT_TAX_RATE

    @staticmethod
    def checked_totals(items: Iterable, tax_rate: Decimal) -> Totals:
        """
        Totals for items at tax_rate.

        Raises:
            ValidationError: If the total does not fit the storage columns
        """
        totals = compute_totals(items, tax_rate)
        if totals.total > MAX_AMOUNT:
            raise ValidationError(
                "Invoice total out of range",
                {"total": f"Invoice total must not exceed {MAX_AMOUNT}"},
            )
        return totals

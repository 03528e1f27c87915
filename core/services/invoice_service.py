"""
Invoice service: the operations behind the HTTP API.

Wraps an InvoiceStore with validation, server-side totals, retry of number
collisions, paid/unpaid transitions and rendering of stored or draft invoices.
"""

import logging
from typing import Any, Callable
from datetime import datetime
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from core.config import InvoiceConfig
from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import (
    Company,
    CompanySnapshot,
    CompanyUpdate,
    InvoiceCreateRequest,
    InvoiceItemCreate,
    InvoiceQuery,
    InvoiceStatus,
    InvoiceUpdate,
    InvoiceWithItems,
    LineItem,
)
from core.money import DEFAULT_TAX_RATE, compute_totals
from core.rendering import LayoutProfile, RenderedInvoice, render_invoice
from core.store import InvoiceStore
from utils.timezone import local_date, now_utc

logger = logging.getLogger(__name__)


class InvoiceService:
    """Service for invoice, line item and company operations."""

    def __init__(
        self,
        store: InvoiceStore,
        config: InvoiceConfig | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self.store = store
        self.config = config or InvoiceConfig()
        self._clock = clock

    # -------------------------------------------------------------------------
    # Create
    # -------------------------------------------------------------------------

    def _rate_for(self, request: InvoiceCreateRequest):
        if request.invoice.tax_rate is not None:
            return request.invoice.tax_rate
        if request.company is not None:
            return request.company.tax_rate
        if request.invoice.company_id is not None:
            company = self.store.get_company(request.invoice.company_id)
            if company is not None:
                return company.tax_rate
        return DEFAULT_TAX_RATE

    def _check_client_totals(self, request: InvoiceCreateRequest) -> None:
        """Log when client-sent totals disagree with the recomputed ones."""
        sent = {
            "subtotal": request.invoice.subtotal,
            "tax": request.invoice.tax,
            "total": request.invoice.total,
        }
        if all(value is None for value in sent.values()):
            return

        computed = compute_totals(request.items, self._rate_for(request))
        mismatched = {
            name: (str(value), str(getattr(computed, name)))
            for name, value in sent.items()
            if value is not None and value != getattr(computed, name)
        }
        if mismatched:
            logger.warning(f"Client totals ignored, recomputed server-side: {mismatched}")

    def create(self, request: InvoiceCreateRequest | dict[str, Any]) -> InvoiceWithItems:
        """
        Persist an invoice with its items.

        Totals are recomputed from the items. When the invoice number is
        already taken the create is retried with a freshly generated number,
        up to config.create_max_attempts attempts in total.

        Raises:
            ValidationError: If the payload is malformed
            NotFoundError: If invoice.companyId references no company
            ConflictError: If the number is still taken after the last attempt
            PersistenceError: If storage fails (not retried)
        """
        if not isinstance(request, InvoiceCreateRequest):
            try:
                request = InvoiceCreateRequest.model_validate(request)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid invoice payload", e) from e

        self._check_client_totals(request)

        invoice = request.invoice
        attempts = self.config.create_max_attempts
        for attempt in range(1, attempts + 1):
            try:
                return self.store.create_invoice(invoice, request.items, request.company)
            except ConflictError as e:
                if attempt == attempts:
                    logger.warning(f"Invoice number {e.invoice_number} still taken after {attempts} attempts")
                    raise
                logger.warning(f"Invoice number {e.invoice_number} taken, retrying with a fresh number")
                invoice = invoice.model_copy(update={"invoice_number": None})

        # create_max_attempts >= 1, so the loop always returns or raises
        raise AssertionError("unreachable")

    # -------------------------------------------------------------------------
    # Read
    # -------------------------------------------------------------------------

    def get(self, invoice_id: UUID) -> InvoiceWithItems:
        invoice = self.store.get_invoice(invoice_id)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        return invoice

    def get_by_number(self, invoice_number: str) -> InvoiceWithItems:
        invoice = self.store.get_invoice_by_number(invoice_number)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_number)
        return invoice

    def list(self, query: InvoiceQuery | None = None) -> list[InvoiceWithItems]:
        return self.store.list_invoices(query)

    def generate_number(self) -> str:
        """Preview the next invoice number. Nothing is reserved."""
        return self.store.generate_invoice_number()

    # -------------------------------------------------------------------------
    # Update / delete
    # -------------------------------------------------------------------------

    def update(self, invoice_id: UUID, data: InvoiceUpdate) -> InvoiceWithItems:
        invoice = self.store.update_invoice(invoice_id, data)
        if invoice is None:
            raise NotFoundError("Invoice", invoice_id)
        logger.info(f"Invoice {invoice.invoice_number} updated: {data.model_dump(exclude_none=True)}")
        return invoice

    def mark_paid(self, invoice_id: UUID) -> InvoiceWithItems:
        return self.update(invoice_id, InvoiceUpdate(status=InvoiceStatus.PAID))

    def mark_unpaid(self, invoice_id: UUID) -> InvoiceWithItems:
        """Paid back to saved."""
        return self.update(invoice_id, InvoiceUpdate(status=InvoiceStatus.SAVED))

    def toggle_paid(self, invoice_id: UUID) -> InvoiceWithItems:
        """paid -> saved, anything else -> paid."""
        invoice = self.get(invoice_id)
        if invoice.is_paid:
            return self.mark_unpaid(invoice_id)
        return self.mark_paid(invoice_id)

    def delete(self, invoice_id: UUID) -> None:
        if not self.store.delete_invoice(invoice_id):
            raise NotFoundError("Invoice", invoice_id)

    def add_item(self, data: InvoiceItemCreate) -> LineItem:
        return self.store.add_item(data)

    def delete_item(self, item_id: UUID) -> None:
        if not self.store.delete_item(item_id):
            raise NotFoundError("Invoice item", item_id)

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    def create_company(self, data: CompanySnapshot) -> Company:
        company = self.store.create_company(data)
        logger.info(f"Company {company.id} created")
        return company

    def get_company(self, company_id: UUID) -> Company:
        company = self.store.get_company(company_id)
        if company is None:
            raise NotFoundError("Company", company_id)
        return company

    def update_company(self, company_id: UUID, data: CompanyUpdate) -> Company:
        company = self.store.update_company(company_id, data)
        if company is None:
            raise NotFoundError("Company", company_id)
        return company

    # -------------------------------------------------------------------------
    # Rendering
    # -------------------------------------------------------------------------

    def render(
        self,
        invoice_id: UUID,
        profile: LayoutProfile = LayoutProfile.FULL_PAGE,
        print_mode: bool = False,
    ) -> RenderedInvoice:
        """Re-render a stored invoice, dated by its creation day in the display timezone."""
        invoice = self.get(invoice_id)
        return render_invoice(
            invoice.company,
            invoice.items,
            invoice.invoice_number,
            local_date(invoice.created_at, self.config.display_timezone),
            profile=profile,
            print_mode=print_mode,
            branding=self.config.branding,
            tax_rate=invoice.tax_rate,
        )

    def preview(
        self,
        request: InvoiceCreateRequest,
        profile: LayoutProfile = LayoutProfile.FULL_PAGE,
        print_mode: bool = False,
    ) -> RenderedInvoice:
        """
        Render an unsaved draft.

        The number shown is the one the draft carries, else the next number
        the policy would assign. Nothing is written.
        """
        company = request.company
        if company is None and request.invoice.company_id is not None:
            company = self.get_company(request.invoice.company_id)

        return render_invoice(
            company,
            request.items,
            request.invoice.invoice_number or self.generate_number(),
            local_date(self._clock(), self.config.display_timezone),
            profile=profile,
            print_mode=print_mode,
            branding=self.config.branding,
            tax_rate=request.invoice.tax_rate,
        )

"""
In-memory invoice store.

Process-local dictionaries behind one re-entrant lock. Every write holds the
lock for its whole duration, so read-max-then-insert number assignment is
serialized and a create either lands completely or not at all.
"""

import logging
import threading
from typing import Callable, Iterable
from datetime import datetime
from uuid import UUID, uuid4

from core.exceptions import ConflictError, NotFoundError
from core.models import (
    Company,
    CompanySnapshot,
    CompanyUpdate,
    Invoice,
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceQuery,
    InvoiceSortField,
    InvoiceUpdate,
    InvoiceWithItems,
    LineItem,
    LineItemCreate,
    SortOrder,
)
from core.numbering import NumberingPolicy
from core.store.base import InvoiceStore
from utils.timezone import now_utc

logger = logging.getLogger(__name__)

_SORT_KEYS: dict[InvoiceSortField, Callable[[InvoiceWithItems], object]] = {
    InvoiceSortField.INVOICE_NUMBER: lambda inv: inv.invoice_number,
    InvoiceSortField.TOTAL: lambda inv: inv.total,
    InvoiceSortField.STATUS: lambda inv: inv.status.value,
    InvoiceSortField.CREATED_AT: lambda inv: inv.created_at,
}


def filter_and_sort(invoices: Iterable[InvoiceWithItems], query: InvoiceQuery) -> list[InvoiceWithItems]:
    """
    Apply search, status filter and sort.

    Sorting is done in two stable passes: by id ascending, then by the sort
    column. reverse=True keeps equal keys in their id order, so ties are
    always id ascending whatever the direction.
    """
    needle = query.search.strip().lower() if query.search else ""

    def matches(inv: InvoiceWithItems) -> bool:
        if query.status is not None and inv.status != query.status:
            return False
        if not needle:
            return True
        company_name = inv.company.name if inv.company else ""
        return needle in inv.invoice_number.lower() or needle in company_name.lower()

    result = sorted((inv for inv in invoices if matches(inv)), key=lambda inv: str(inv.id))
    result.sort(key=_SORT_KEYS[query.sort], reverse=query.order == SortOrder.DESC)
    return result


class MemoryInvoiceStore(InvoiceStore):
    """Dictionary-backed store for tests and single-process deployments."""

    def __init__(self, numbering: NumberingPolicy, clock: Callable[[], datetime] = now_utc):
        super().__init__(numbering)
        self._clock = clock
        self._lock = threading.RLock()
        self._companies: dict[UUID, Company] = {}
        self._invoices: dict[UUID, Invoice] = {}
        self._items: dict[UUID, LineItem] = {}

    # -------------------------------------------------------------------------
    # Companies
    # -------------------------------------------------------------------------

    def create_company(self, data: CompanySnapshot) -> Company:
        company = Company(id=uuid4(), created_at=self._clock(), **data.model_dump())
        with self._lock:
            self._companies[company.id] = company
        return company.model_copy()

    def get_company(self, company_id: UUID) -> Company | None:
        with self._lock:
            company = self._companies.get(company_id)
        return company.model_copy() if company else None

    def update_company(self, company_id: UUID, data: CompanyUpdate) -> Company | None:
        with self._lock:
            current = self._companies.get(company_id)
            if current is None:
                return None
            merged = current.model_dump()
            merged.update(data.model_dump(exclude_none=True))
            updated = Company.model_validate(merged)
            self._companies[company_id] = updated
        return updated.model_copy()

    # -------------------------------------------------------------------------
    # Invoices
    # -------------------------------------------------------------------------

    def _assemble(self, invoice: Invoice) -> InvoiceWithItems:
        items = [item.model_copy() for item in self._items.values() if item.invoice_id == invoice.id]
        company = self._companies.get(invoice.company_id) if invoice.company_id else None
        return InvoiceWithItems(
            **invoice.model_dump(),
            items=items,
            company=company.model_copy() if company else None,
        )

    def _recompute(self, invoice: Invoice, extra: list[LineItem] | None = None) -> Invoice:
        items = [item for item in self._items.values() if item.invoice_id == invoice.id]
        totals = self.checked_totals(items + (extra or []), invoice.tax_rate)
        return invoice.model_copy(update={
            "subtotal": totals.subtotal,
            "tax": totals.tax,
            "total": totals.total,
            "updated_at": self._clock(),
        })

    def create_invoice(
        self,
        invoice: InvoiceCreate,
        items: list[LineItemCreate],
        company: CompanySnapshot | None = None,
    ) -> InvoiceWithItems:
        with self._lock:
            if invoice.company_id is not None and invoice.company_id not in self._companies:
                raise NotFoundError("Company", invoice.company_id)

            number = invoice.invoice_number or self.generate_invoice_number()
            if any(existing.invoice_number == number for existing in self._invoices.values()):
                raise ConflictError(number)

            # Everything below only touches local objects until the final commit
            company_id = invoice.company_id
            new_company = None
            if company is not None:
                new_company = Company(id=uuid4(), created_at=self._clock(), **company.model_dump())
                company_id = new_company.id
            linked = new_company or (self._companies[company_id] if company_id else None)

            tax_rate = self.effective_tax_rate(invoice, linked)
            totals = self.checked_totals(items, tax_rate)
            now = self._clock()
            stored = Invoice(
                id=uuid4(),
                invoice_number=number,
                company_id=company_id,
                tax_rate=tax_rate,
                subtotal=totals.subtotal,
                tax=totals.tax,
                total=totals.total,
                status=invoice.status,
                created_at=now,
                updated_at=now,
            )
            line_items = [
                LineItem(
                    id=uuid4(),
                    invoice_id=stored.id,
                    name=item.name,
                    quantity=item.quantity,
                    unit_price=item.unit_price,
                    total=item.total,
                )
                for item in items
            ]

            if new_company is not None:
                self._companies[new_company.id] = new_company
            self._invoices[stored.id] = stored
            for line_item in line_items:
                self._items[line_item.id] = line_item

            logger.info(f"Invoice {number} created with {len(line_items)} items")
            return self._assemble(stored)

    def get_invoice(self, invoice_id: UUID) -> InvoiceWithItems | None:
        with self._lock:
            invoice = self._invoices.get(invoice_id)
            return self._assemble(invoice) if invoice else None

    def get_invoice_by_number(self, invoice_number: str) -> InvoiceWithItems | None:
        with self._lock:
            for invoice in self._invoices.values():
                if invoice.invoice_number == invoice_number:
                    return self._assemble(invoice)
        return None

    def list_invoices(self, query: InvoiceQuery | None = None) -> list[InvoiceWithItems]:
        with self._lock:
            assembled = [self._assemble(invoice) for invoice in self._invoices.values()]
        return filter_and_sort(assembled, query or InvoiceQuery())

    def update_invoice(self, invoice_id: UUID, data: InvoiceUpdate) -> InvoiceWithItems | None:
        with self._lock:
            current = self._invoices.get(invoice_id)
            if current is None:
                return None

            changes = data.model_dump(exclude_none=True)
            if "company_id" in changes:
                company = self._companies.get(changes["company_id"])
                if company is None:
                    raise NotFoundError("Company", changes["company_id"])
                changes.setdefault("tax_rate", company.tax_rate)

            updated = current.model_copy(update={**changes, "updated_at": self._clock()})
            if "tax_rate" in changes:
                updated = self._recompute(updated)

            self._invoices[invoice_id] = updated
            return self._assemble(updated)

    def delete_invoice(self, invoice_id: UUID) -> bool:
        with self._lock:
            if self._invoices.pop(invoice_id, None) is None:
                return False
            owned = [item_id for item_id, item in self._items.items() if item.invoice_id == invoice_id]
            for item_id in owned:
                del self._items[item_id]
        logger.info(f"Invoice {invoice_id} deleted with {len(owned)} items")
        return True

    # -------------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------------

    def add_item(self, data: InvoiceItemCreate) -> LineItem:
        with self._lock:
            invoice = self._invoices.get(data.invoice_id)
            if invoice is None:
                raise NotFoundError("Invoice", data.invoice_id)

            item = LineItem(
                id=uuid4(),
                invoice_id=invoice.id,
                name=data.name,
                quantity=data.quantity,
                unit_price=data.unit_price,
                total=data.total,
            )
            recomputed = self._recompute(invoice, extra=[item])
            self._items[item.id] = item
            self._invoices[invoice.id] = recomputed
        return item.model_copy()

    def delete_item(self, item_id: UUID) -> bool:
        with self._lock:
            item = self._items.pop(item_id, None)
            if item is None:
                return False
            invoice = self._invoices.get(item.invoice_id)
            if invoice is not None:
                self._invoices[invoice.id] = self._recompute(invoice)
        return True

    def existing_numbers(self) -> list[str]:
        with self._lock:
            return [invoice.invoice_number for invoice in self._invoices.values()]

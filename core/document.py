"""
Invoice document: the working state of one unsaved invoice.

The generator view edits a single document synchronously (set company,
add and remove items) and previews it on every change. The document is the
validation boundary for user-entered items; totals are always derived.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from core.config import BrandingConfig
from core.exceptions import ValidationError
from core.models import CompanySnapshot, InvoiceStatus, LineItemCreate
from core.money import DEFAULT_TAX_RATE, Totals, compute_totals
from core.rendering import LayoutProfile, RenderedInvoice, render_invoice

logger = logging.getLogger(__name__)


class InvoiceDocument:
    """
    Mutable invoice being edited before it is saved.

    Usage:
        doc = InvoiceDocument()
        doc.set_company({"name": "Acme", "taxRate": 13})
        doc.add_item("Widget", 2, "9.99")
        doc.totals.total  # Decimal('22.58')
        payload = doc.to_persistable_payload()
    """

    def __init__(self) -> None:
        self._company: CompanySnapshot | None = None
        self._items: list[LineItemCreate] = []
        self._totals = compute_totals([], DEFAULT_TAX_RATE)

    @property
    def company(self) -> CompanySnapshot | None:
        return self._company

    @property
    def items(self) -> tuple[LineItemCreate, ...]:
        return tuple(self._items)

    @property
    def totals(self) -> Totals:
        return self._totals

    @property
    def tax_rate(self) -> Decimal:
        return self._company.tax_rate if self._company else DEFAULT_TAX_RATE

    @property
    def is_empty(self) -> bool:
        return not self._items

    def _recompute(self) -> None:
        self._totals = compute_totals(self._items, self.tax_rate)

    def set_company(self, fields: dict[str, Any] | CompanySnapshot) -> CompanySnapshot:
        """
        Replace the company snapshot and recompute totals.

        Raises:
            ValidationError: If name is blank or tax rate is outside [0, 100]
        """
        if isinstance(fields, CompanySnapshot):
            company = fields
        else:
            try:
                company = CompanySnapshot.model_validate(fields)
            except PydanticValidationError as e:
                raise ValidationError.from_pydantic("Invalid company data", e) from e

        self._company = company
        self._recompute()
        return company

    def add_item(self, name: str, quantity: int, unit_price: Decimal | int | str) -> LineItemCreate:
        """
        Append a line item and recompute totals.

        Raises:
            ValidationError: If name is blank, quantity < 1, unit_price < 0
                or the line total is too large to store
        """
        try:
            item = LineItemCreate(name=name, quantity=quantity, unit_price=unit_price)
        except PydanticValidationError as e:
            raise ValidationError.from_pydantic("Invalid line item", e) from e

        self._items.append(item)
        self._recompute()
        logger.debug(f"Added item '{item.name}' ({len(self._items)} items)")
        return item

    def remove_item(self, index: int) -> LineItemCreate:
        """
        Remove the item at a position and recompute totals.

        Raises:
            IndexError: If index is out of range
        """
        if index < 0 or index >= len(self._items):
            raise IndexError(f"Item index {index} out of range (0..{len(self._items) - 1})")

        removed = self._items.pop(index)
        self._recompute()
        return removed

    def clear(self) -> None:
        """Reset to no company and no items. Safe to call repeatedly."""
        self._company = None
        self._items = []
        self._recompute()

    def to_persistable_payload(self, status: InvoiceStatus = InvoiceStatus.SAVED) -> dict[str, Any]:
        """
        Serialize into the body POST /invoices accepts.

        Returns a fresh dict each time; the document itself is unchanged,
        so a failed save can be retried without re-entering data.
        """
        totals = self._totals.formatted()
        payload: dict[str, Any] = {
            "invoice": {
                "taxRate": f"{self.tax_rate:.2f}",
                "subtotal": totals["subtotal"],
                "tax": totals["tax"],
                "total": totals["total"],
                "status": InvoiceStatus(status).value,
            },
            "items": [item.to_wire() for item in self._items],
        }
        if self._company is not None:
            payload["company"] = self._company.to_wire()
        return payload

    def render(
        self,
        invoice_number: str,
        render_date: date | datetime | str,
        profile: LayoutProfile = LayoutProfile.FULL_PAGE,
        print_mode: bool = False,
        branding: BrandingConfig | None = None,
    ) -> RenderedInvoice:
        """Live preview of the document in one layout."""
        return render_invoice(
            self._company,
            self._items,
            invoice_number,
            render_date,
            profile=profile,
            print_mode=print_mode,
            branding=branding,
        )

"""Tests for core/services/invoice_service.py - InvoiceService."""

import logging
from decimal import Decimal
from unittest.mock import Mock
from uuid import uuid4

import pytest

from core.config import InvoiceConfig
from core.exceptions import ConflictError, NotFoundError, PersistenceError, ValidationError
from core.models import (
    CompanySnapshot,
    InvoiceCreate,
    InvoiceCreateRequest,
    InvoiceStatus,
    LineItemCreate,
)
from core.rendering import LayoutProfile
from core.services.invoice_service import InvoiceService
from core.store.base import InvoiceStore


@pytest.fixture
def service(store, clock):
    return InvoiceService(store, InvoiceConfig(numbering_policy="sequential"), clock=clock)


def reference_request(**invoice_fields) -> InvoiceCreateRequest:
    return InvoiceCreateRequest(
        invoice=InvoiceCreate(**invoice_fields),
        items=[
            LineItemCreate(name="Widget", quantity=2, unit_price=Decimal("9.99")),
            LineItemCreate(name="Gadget", quantity=1, unit_price=Decimal("25.00")),
        ],
        company=CompanySnapshot(name="Acme"),
    )


class TestCreate:
    """Tests for create()."""

    def test_creates_with_server_totals(self, service):
        invoice = service.create(reference_request(status=InvoiceStatus.SAVED))

        assert invoice.invoice_number == "INV-000001"
        assert invoice.total == Decimal("50.83")
        assert invoice.status == InvoiceStatus.SAVED

    def test_accepts_wire_dict(self, service):
        invoice = service.create({
            "invoice": {"status": "saved"},
            "items": [{"name": "Widget", "quantity": 1, "unitPrice": "10.00"}],
        })

        assert invoice.total == Decimal("11.30")

    def test_malformed_dict_raises_validation_error(self, service):
        with pytest.raises(ValidationError) as exc_info:
            service.create({"items": [{"name": "Widget", "quantity": 0, "unitPrice": "1"}]})

        assert "items.0.quantity" in exc_info.value.field_errors

    def test_totals_mismatch_logged(self, service, caplog):
        request = reference_request(total=Decimal("1.00"))

        with caplog.at_level(logging.WARNING, logger="core.services.invoice_service"):
            invoice = service.create(request)

        assert invoice.total == Decimal("50.83")
        assert "recomputed server-side" in caplog.text

    def test_retries_once_on_conflict(self, service):
        """A taken client number is replaced by a freshly generated one."""
        service.create(reference_request(invoice_number="INV-000001"))

        second = service.create(reference_request(invoice_number="INV-000001"))

        assert second.invoice_number == "INV-000002"

    def test_conflict_surfaces_after_last_attempt(self):
        store = Mock(spec=InvoiceStore)
        store.create_invoice.side_effect = ConflictError("INV-000001")
        service = InvoiceService(store, InvoiceConfig(create_max_attempts=2))

        with pytest.raises(ConflictError):
            service.create(reference_request())

        assert store.create_invoice.call_count == 2
        retried_invoice = store.create_invoice.call_args_list[1].args[0]
        assert retried_invoice.invoice_number is None

    def test_conflict_then_success(self):
        store = Mock(spec=InvoiceStore)
        created = object()
        store.create_invoice.side_effect = [ConflictError("INV-000001"), created]
        service = InvoiceService(store)

        assert service.create(reference_request(invoice_number="INV-000001")) is created

    def test_single_attempt_config_does_not_retry(self):
        store = Mock(spec=InvoiceStore)
        store.create_invoice.side_effect = ConflictError("INV-000001")
        service = InvoiceService(store, InvoiceConfig(create_max_attempts=1))

        with pytest.raises(ConflictError):
            service.create(reference_request())

        assert store.create_invoice.call_count == 1

    def test_persistence_error_not_retried(self):
        """Storage failures surface at once; only number conflicts are retried."""
        store = Mock(spec=InvoiceStore)
        store.create_invoice.side_effect = PersistenceError("Database unavailable")
        service = InvoiceService(store, InvoiceConfig(create_max_attempts=2))

        with pytest.raises(PersistenceError):
            service.create(reference_request())

        assert store.create_invoice.call_count == 1


class TestLookupsAndStatus:
    def test_get_missing_raises(self, service):
        with pytest.raises(NotFoundError):
            service.get(uuid4())
        with pytest.raises(NotFoundError):
            service.get_by_number("INV-404")

    def test_toggle_paid(self, service):
        created = service.create(reference_request(status=InvoiceStatus.SAVED))

        assert service.toggle_paid(created.id).status == InvoiceStatus.PAID
        assert service.toggle_paid(created.id).status == InvoiceStatus.SAVED

    def test_mark_paid_and_unpaid(self, service):
        created = service.create(reference_request(status=InvoiceStatus.SAVED))

        assert service.mark_paid(created.id).is_paid
        assert not service.mark_unpaid(created.id).is_paid

    def test_delete_then_get_not_found(self, service):
        created = service.create(reference_request())

        service.delete(created.id)

        with pytest.raises(NotFoundError):
            service.get(created.id)
        with pytest.raises(NotFoundError):
            service.delete(created.id)

    def test_delete_missing_item(self, service):
        with pytest.raises(NotFoundError):
            service.delete_item(uuid4())

    def test_generate_number_reserves_nothing(self, service):
        assert service.generate_number() == "INV-000001"
        assert service.create(reference_request()).invoice_number == "INV-000001"


class TestRendering:
    def test_render_stored_invoice(self, service):
        created = service.create(reference_request())

        rendered = service.render(created.id, LayoutProfile.MEDIUM_THERMAL)

        assert rendered.totals.total == "50.83"
        assert rendered.header.title == "ACME"
        # Created 09:30 UTC, still 2026-10-18 in Toronto
        assert rendered.meta[0].right == "2026-10-18"
        assert rendered.meta[1].right == "INV-000001"

    def test_render_uses_stored_rate(self, service):
        created = service.create(reference_request(tax_rate=Decimal("0")))

        assert service.render(created.id).totals.total == "44.98"

    def test_preview_numbers_without_saving(self, service):
        rendered = service.preview(reference_request(), LayoutProfile.NARROW_THERMAL, print_mode=True)

        assert rendered.meta[1].right == "INV-000001"
        assert rendered.totals.total == "50.83"
        assert service.list() == []

    def test_preview_empty_draft(self, service):
        rendered = service.preview(InvoiceCreateRequest())

        assert rendered.empty_state is not None
        assert rendered.totals.total == "0.00"

"""Tests for core/store/memory.py - MemoryInvoiceStore."""

import threading
from decimal import Decimal
from uuid import uuid4

import pytest

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.models import (
    CompanySnapshot,
    CompanyUpdate,
    InvoiceCreate,
    InvoiceItemCreate,
    InvoiceQuery,
    InvoiceSortField,
    InvoiceStatus,
    InvoiceUpdate,
    LineItemCreate,
    SortOrder,
)


def item(name="Widget", quantity=1, unit_price="10.00"):
    return LineItemCreate(name=name, quantity=quantity, unit_price=Decimal(unit_price))


def create(store, items=None, company=None, **invoice_fields):
    return store.create_invoice(InvoiceCreate(**invoice_fields), items or [], company)


class TestCreateInvoice:
    """Tests for create_invoice()."""

    def test_assigns_id_number_and_totals(self, store):
        invoice = create(
            store,
            [item("Widget", 2, "9.99"), item("Gadget", 1, "25.00")],
            CompanySnapshot(name="Acme"),
        )

        assert invoice.id is not None
        assert invoice.invoice_number == "INV-000001"
        assert (invoice.subtotal, invoice.tax, invoice.total) == (
            Decimal("44.98"), Decimal("5.85"), Decimal("50.83"),
        )
        assert [i.name for i in invoice.items] == ["Widget", "Gadget"]
        assert invoice.company.name == "Acme"
        assert invoice.company_id == invoice.company.id

    def test_client_totals_ignored(self, store):
        invoice = create(store, [item(unit_price="10.00")], total=Decimal("999.99"))

        assert invoice.total == Decimal("11.30")

    def test_numbers_increase(self, store):
        numbers = [create(store).invoice_number for _ in range(3)]

        assert numbers == ["INV-000001", "INV-000002", "INV-000003"]

    def test_duplicate_number_conflicts(self, store):
        create(store, invoice_number="INV-000001")

        with pytest.raises(ConflictError) as exc_info:
            create(store, [item()], CompanySnapshot(name="Acme"), invoice_number="INV-000001")

        assert exc_info.value.invoice_number == "INV-000001"
        # Nothing from the failed create was kept
        assert len(store.list_invoices()) == 1

    def test_unknown_company_id(self, store):
        with pytest.raises(NotFoundError):
            create(store, company_id=uuid4())

    def test_existing_company_rate_used(self, store):
        company = store.create_company(CompanySnapshot(name="Acme", tax_rate=Decimal("5")))

        invoice = create(store, [item(unit_price="100.00")], company_id=company.id)

        assert invoice.tax_rate == Decimal("5.00")
        assert invoice.tax == Decimal("5.00")

    def test_explicit_rate_wins(self, store):
        invoice = create(store, [item(unit_price="100.00")], CompanySnapshot(name="Acme"), tax_rate=Decimal("0"))

        assert invoice.tax == Decimal("0.00")

    def test_concurrent_creates_get_distinct_numbers(self, store):
        results = []

        def worker():
            results.append(create(store, [item()]).invoice_number)

        threads = [threading.Thread(target=worker) for _ in range(20)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert len(set(results)) == 20


class TestReadAndDelete:
    def test_get_by_id_and_number(self, store):
        created = create(store, [item()])

        assert store.get_invoice(created.id).invoice_number == created.invoice_number
        assert store.get_invoice_by_number(created.invoice_number).id == created.id

    def test_missing_returns_none(self, store):
        assert store.get_invoice(uuid4()) is None
        assert store.get_invoice_by_number("INV-999999") is None

    def test_delete_cascades_to_items(self, store):
        created = create(store, [item(), item("Gadget")])
        item_id = created.items[0].id

        assert store.delete_invoice(created.id) is True

        assert store.get_invoice(created.id) is None
        assert store.delete_item(item_id) is False
        assert store.delete_invoice(created.id) is False


class TestListInvoices:
    """Tests for list_invoices() filtering and sorting."""

    def test_default_is_newest_first(self, store, clock):
        first = create(store)
        clock.advance(minutes=1)
        second = create(store)

        assert [inv.id for inv in store.list_invoices()] == [second.id, first.id]

    def test_sort_by_total_desc_numeric(self, store, clock):
        for price in ("10.00", "5.00", "20.00"):
            create(store, [item(unit_price=price)], tax_rate=Decimal("0"))
            clock.advance(seconds=1)

        query = InvoiceQuery(sort=InvoiceSortField.TOTAL, order=SortOrder.DESC)
        totals = [inv.total for inv in store.list_invoices(query)]

        assert totals == [Decimal("20.00"), Decimal("10.00"), Decimal("5.00")]

    def test_ties_broken_by_id_ascending(self, store):
        created = [create(store, [item()]) for _ in range(4)]
        expected = sorted((inv.id for inv in created), key=str)

        for order in SortOrder:
            query = InvoiceQuery(sort=InvoiceSortField.TOTAL, order=order)
            assert [inv.id for inv in store.list_invoices(query)] == expected

    def test_search_number_and_company(self, store):
        create(store, company=CompanySnapshot(name="Acme Supplies"))
        other = create(store, company=CompanySnapshot(name="Zeta Ltd"))

        assert len(store.list_invoices(InvoiceQuery(search="acme"))) == 1
        found = store.list_invoices(InvoiceQuery(search=other.invoice_number.lower()))
        assert [inv.id for inv in found] == [other.id]

    def test_status_filter(self, store):
        create(store, status=InvoiceStatus.SAVED)
        paid = create(store, status=InvoiceStatus.PAID)

        result = store.list_invoices(InvoiceQuery(status=InvoiceStatus.PAID))

        assert [inv.id for inv in result] == [paid.id]


class TestUpdates:
    def test_status_update(self, store):
        created = create(store, [item()], status=InvoiceStatus.SAVED)

        updated = store.update_invoice_status(created.id, InvoiceStatus.PAID)

        assert updated.status == InvoiceStatus.PAID
        assert updated.total == created.total

    def test_tax_rate_update_recomputes(self, store):
        created = create(store, [item(unit_price="100.00")])

        updated = store.update_invoice(created.id, InvoiceUpdate(tax_rate=Decimal("5")))

        assert updated.total == Decimal("105.00")

    def test_update_missing_returns_none(self, store):
        assert store.update_invoice(uuid4(), InvoiceUpdate(status=InvoiceStatus.PAID)) is None

    def test_add_and_delete_item_recompute(self, store):
        created = create(store, [item(unit_price="10.00")])

        added = store.add_item(InvoiceItemCreate(invoice_id=created.id, name="Extra", quantity=2, unit_price="5.00"))
        after_add = store.get_invoice(created.id)

        assert added.total == Decimal("10.00")
        assert after_add.subtotal == Decimal("20.00")
        assert [i.name for i in after_add.items] == ["Widget", "Extra"]

        assert store.delete_item(added.id) is True
        assert store.get_invoice(created.id).subtotal == Decimal("10.00")

    def test_add_item_unknown_invoice(self, store):
        with pytest.raises(NotFoundError):
            store.add_item(InvoiceItemCreate(invoice_id=uuid4(), name="X", quantity=1, unit_price="1"))

    def test_company_update(self, store):
        company = store.create_company(CompanySnapshot(name="Acme"))

        updated = store.update_company(company.id, CompanyUpdate(phone="555-0100"))

        assert updated.name == "Acme"
        assert updated.phone == "555-0100"
        assert store.update_company(uuid4(), CompanyUpdate(name="X")) is None


class TestGenerateNumber:
    def test_side_effect_free(self, store):
        assert store.generate_invoice_number() == "INV-000001"
        assert store.generate_invoice_number() == "INV-000001"
        assert store.list_invoices() == []


class TestTotalsRange:
    """Totals that would not fit the numeric(10, 2) columns are rejected."""

    def test_create_rejects_oversized_total(self, store):
        items = [item(unit_price="60000000.00"), item(unit_price="60000000.00")]

        with pytest.raises(ValidationError) as exc_info:
            create(store, items)

        assert "total" in exc_info.value.field_errors
        assert store.list_invoices() == []

    def test_failed_add_leaves_invoice_untouched(self, store):
        created = create(store, [item(unit_price="60000000.00")], tax_rate=Decimal("0"))

        with pytest.raises(ValidationError):
            store.add_item(InvoiceItemCreate(
                invoice_id=created.id, name="Extra", quantity=1, unit_price="60000000.00",
            ))

        after = store.get_invoice(created.id)
        assert after.total == Decimal("60000000.00")
        assert [i.name for i in after.items] == ["Widget"]

    def test_rate_change_that_overflows_is_rejected(self, store):
        created = create(store, [item(unit_price="90000000.00")], tax_rate=Decimal("0"))

        with pytest.raises(ValidationError):
            store.update_invoice(created.id, InvoiceUpdate(tax_rate=Decimal("20")))

        after = store.get_invoice(created.id)
        assert after.tax_rate == Decimal("0.00")
        assert after.total == Decimal("90000000.00")

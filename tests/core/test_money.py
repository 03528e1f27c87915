"""Tests for core/money.py - Decimal totals and tax."""

from dataclasses import dataclass
from decimal import Decimal

from core.money import compute_totals, format_money, format_rate, line_total, quantize


@dataclass
class Item:
    quantity: int
    unit_price: Decimal


class TestComputeTotals:
    """Tests for compute_totals()."""

    def test_reference_invoice(self):
        """Widget 2 x 9.99 + Gadget 1 x 25.00 at 13%."""
        totals = compute_totals(
            [Item(2, Decimal("9.99")), Item(1, Decimal("25.00"))],
            Decimal("13"),
        )

        assert totals.subtotal == Decimal("44.98")
        assert totals.tax == Decimal("5.85")
        assert totals.total == Decimal("50.83")

    def test_empty_items_are_zero(self):
        totals = compute_totals([], Decimal("13"))

        assert totals.formatted() == {"subtotal": "0.00", "tax": "0.00", "total": "0.00"}

    def test_tax_rounds_half_up(self):
        """10.50 * 5% = 0.525 -> 0.53."""
        totals = compute_totals([Item(1, Decimal("10.50"))], Decimal("5"))

        assert totals.tax == Decimal("0.53")

    def test_total_is_subtotal_plus_tax(self):
        totals = compute_totals([Item(3, Decimal("0.33")), Item(7, Decimal("1.07"))], Decimal("8.25"))

        assert totals.total == totals.subtotal + totals.tax

    def test_no_float_drift(self):
        """0.10 + 0.20 is exactly 0.30."""
        totals = compute_totals([Item(1, Decimal("0.10")), Item(1, Decimal("0.20"))], Decimal("0"))

        assert totals.subtotal == Decimal("0.30")
        assert totals.tax == Decimal("0.00")

    def test_zero_and_hundred_percent(self):
        items = [Item(4, Decimal("2.50"))]

        assert compute_totals(items, Decimal("0")).total == Decimal("10.00")
        assert compute_totals(items, Decimal("100")).total == Decimal("20.00")

    def test_accepts_string_rate(self):
        assert compute_totals([Item(1, Decimal("100"))], "13").tax == Decimal("13.00")


class TestFormatting:
    """Tests for quantize(), line_total(), format_money() and format_rate()."""

    def test_quantize_half_up(self):
        assert quantize(Decimal("2.345")) == Decimal("2.35")
        assert quantize(Decimal("2.344")) == Decimal("2.34")

    def test_line_total(self):
        assert line_total(2, Decimal("9.99")) == Decimal("19.98")

    def test_format_money_two_decimals(self):
        assert format_money(Decimal("5.8")) == "5.80"
        assert format_money(Decimal("0")) == "0.00"

    def test_format_rate_drops_trailing_zeros(self):
        assert format_rate(Decimal("13.00")) == "13"
        assert format_rate(Decimal("8.25")) == "8.25"
        assert format_rate(Decimal("7.50")) == "7.5"

"""
Money and tax arithmetic.

All amounts are Decimal and quantized to cents with half-up rounding.
Binary floats never enter the calculation.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Protocol

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
DEFAULT_TAX_RATE = Decimal("13.00")

# Largest values the storage columns hold: numeric(10, 2) and integer
MAX_AMOUNT = Decimal("99999999.99")
MAX_QUANTITY = 2147483647


class PricedItem(Protocol):
    quantity: int
    unit_price: Decimal


@dataclass(frozen=True)
class Totals:
    """Computed invoice totals, each quantized to 2 decimal places."""

    subtotal: Decimal
    tax: Decimal
    total: Decimal

    def formatted(self) -> dict[str, str]:
        return {
            "subtotal": format_money(self.subtotal),
            "tax": format_money(self.tax),
            "total": format_money(self.total),
        }


def quantize(value: Decimal | int | str) -> Decimal:
    """Round to cents, half-up."""
    return Decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def line_total(quantity: int, unit_price: Decimal) -> Decimal:
    return quantize(Decimal(quantity) * Decimal(unit_price))


def compute_totals(items: Iterable[PricedItem], tax_rate_percent: Decimal | int | str) -> Totals:
    """
    Compute subtotal, tax and total for a list of line items.

    Args:
        items: Objects with quantity and unit_price (already validated)
        tax_rate_percent: Tax rate in percent, e.g. 13 for 13%

    Returns:
        Totals with subtotal = sum(quantity * unit_price),
        tax = round(subtotal * rate / 100, 2), total = subtotal + tax.
    """
    subtotal = sum(
        (Decimal(item.quantity) * Decimal(item.unit_price) for item in items),
        ZERO,
    )
    subtotal = quantize(subtotal)
    tax = quantize(subtotal * Decimal(tax_rate_percent) / Decimal(100))
    return Totals(subtotal=subtotal, tax=tax, total=subtotal + tax)


def format_money(value: Decimal) -> str:
    """Format an amount with exactly two decimals: Decimal('5.8') -> '5.80'."""
    return f"{quantize(value):.2f}"


def format_rate(rate: Decimal | int | str) -> str:
    """
    Format a tax rate for labels.

    Trailing zeros are dropped: 13.00 -> '13', 8.25 -> '8.25', 7.50 -> '7.5'.
    """
    value = Decimal(rate)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), "f")

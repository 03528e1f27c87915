"""
Invoice renderer.

One pure function projects company, items, number and date onto any of the
three layout profiles. Totals are computed once per render through
core.money, so every profile prints the same subtotal, tax and total for
the same input.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Protocol, Sequence

from pydantic import Field

from core.config import BrandingConfig
from core.models.base import WireModel
from core.models.company import CompanySnapshot
from core.money import DEFAULT_TAX_RATE, compute_totals, format_money, format_rate, line_total
from core.rendering.profiles import (
    PROFILE_LABELS,
    TABLE_COLUMNS,
    LayoutProfile,
    page_setup,
)


class RenderableItem(Protocol):
    name: str
    quantity: int
    unit_price: Decimal


class TextLine(WireModel):
    """A line with left-aligned text and an optional right-aligned value."""

    left: str
    right: str = ""
    bold: bool = False


class RenderedHeader(WireModel):
    title: str
    lines: list[str] = Field(default_factory=list)


class RenderedRow(WireModel):
    """One line item as laid out by the profile."""

    index: int
    name: str
    quantity: str
    unit_price: str
    total: str
    lines: list[TextLine]
    removable: bool = False


class EmptyState(WireModel):
    title: str
    hint: str


class RenderedTotals(WireModel):
    subtotal: str
    tax: str
    total: str
    tax_rate: str
    lines: list[TextLine]


class RenderedPage(WireModel):
    page_size: str
    margin: str
    body_width: str | None
    font_family: str
    font_size_px: int
    line_height: float
    text_columns: int
    canvas_width_px: int
    css: str


class RenderedInvoice(WireModel):
    """Presentational projection of an invoice for one layout profile."""

    profile: LayoutProfile
    print_mode: bool
    header: RenderedHeader
    meta: list[TextLine]
    items_heading: str | None
    columns: list[str]
    rows: list[RenderedRow]
    empty_state: EmptyState | None
    totals: RenderedTotals
    footer: list[str]
    page: RenderedPage


def _format_date(render_date: date | datetime | str) -> str:
    if isinstance(render_date, datetime):
        return render_date.date().isoformat()
    if isinstance(render_date, date):
        return render_date.isoformat()
    return render_date


def _header(
    company: CompanySnapshot | None,
    profile: LayoutProfile,
    branding: BrandingConfig,
) -> RenderedHeader:
    labels = PROFILE_LABELS[profile]

    title = company.name if company and company.name else branding.brand_name
    if labels.uppercase_title:
        title = title.upper()

    address = (company.address if company else None) or branding.fallback_address
    phone = (company.phone if company else None) or branding.fallback_phone
    website = (company.website if company else None) or branding.fallback_website

    lines = []
    if address:
        lines.append(address)
    if phone:
        lines.append(f"{labels.phone_label} {phone}")
    if website:
        lines.append(f"{labels.website_label} {website}" if labels.website_label else website)

    return RenderedHeader(title=title, lines=lines)


def _row(
    index: int,
    item: RenderableItem,
    profile: LayoutProfile,
    print_mode: bool,
    money,
) -> RenderedRow:
    unit_price = money(item.unit_price)
    total = money(line_total(item.quantity, item.unit_price))
    quantity = str(item.quantity)

    if profile is LayoutProfile.FULL_PAGE:
        lines = [TextLine(left=f"{item.name}  x{quantity} @ {unit_price}", right=total)]
    elif profile is LayoutProfile.NARROW_THERMAL:
        lines = [
            TextLine(left=item.name, bold=True),
            TextLine(left=f"{quantity} x {unit_price}", right=total),
        ]
    else:
        lines = [
            TextLine(left=item.name, bold=True),
            TextLine(left=f"Qty: {quantity}", right=f"Unit: {unit_price}"),
            TextLine(left="Total:", right=total, bold=True),
        ]

    return RenderedRow(
        index=index,
        name=item.name,
        quantity=quantity,
        unit_price=unit_price,
        total=total,
        lines=lines,
        removable=profile is LayoutProfile.FULL_PAGE and not print_mode,
    )


def render_invoice(
    company: CompanySnapshot | None,
    items: Sequence[RenderableItem],
    invoice_number: str,
    render_date: date | datetime | str,
    profile: LayoutProfile = LayoutProfile.FULL_PAGE,
    print_mode: bool = False,
    branding: BrandingConfig | None = None,
    tax_rate: Decimal | None = None,
) -> RenderedInvoice:
    """
    Render an invoice for one layout profile.

    Pure: the same arguments always produce the same RenderedInvoice.

    Args:
        company: Company snapshot, or None to print branding defaults
        items: Line items in display order
        invoice_number: Number printed in the header
        render_date: Date printed in the header (ISO date)
        profile: Paper format
        print_mode: Suppress interactive affordances (remove buttons)
        branding: Fallback identity; defaults to BrandingConfig()
        tax_rate: Rate snapshot of a saved invoice; defaults to the company rate

    Returns:
        RenderedInvoice with an empty_state marker instead of rows when
        there are no items.
    """
    branding = branding or BrandingConfig()
    labels = PROFILE_LABELS[profile]
    setup = page_setup(profile)

    def money(value: Decimal) -> str:
        return f"{branding.currency_symbol}{format_money(value)}"

    if tax_rate is None:
        tax_rate = company.tax_rate if company else DEFAULT_TAX_RATE
    totals = compute_totals(items, tax_rate)
    rate_label = format_rate(tax_rate)

    rows = [_row(i, item, profile, print_mode, money) for i, item in enumerate(items)]
    empty_state = None
    if not rows:
        empty_state = EmptyState(
            title=branding.empty_state_title,
            hint=branding.empty_state_hint,
        )

    rendered_totals = RenderedTotals(
        subtotal=format_money(totals.subtotal),
        tax=format_money(totals.tax),
        total=format_money(totals.total),
        tax_rate=rate_label,
        lines=[
            TextLine(left=labels.subtotal_label, right=money(totals.subtotal)),
            TextLine(
                left=f"{labels.tax_label} ({rate_label}%)" + (":" if profile.is_thermal else ""),
                right=money(totals.tax),
            ),
            TextLine(left=labels.total_label, right=money(totals.total), bold=True),
        ],
    )

    footer = [branding.thank_you_message]
    if labels.show_powered_by and branding.powered_by:
        footer.append(branding.powered_by)

    return RenderedInvoice(
        profile=profile,
        print_mode=print_mode,
        header=_header(company, profile, branding),
        meta=[
            TextLine(left="Date:", right=_format_date(render_date)),
            TextLine(left=labels.invoice_label, right=invoice_number),
        ],
        items_heading=labels.items_heading,
        columns=list(TABLE_COLUMNS) if profile is LayoutProfile.FULL_PAGE else [],
        rows=rows,
        empty_state=empty_state,
        totals=rendered_totals,
        footer=footer,
        page=RenderedPage(
            page_size=setup.page_size,
            margin=setup.margin,
            body_width=setup.body_width,
            font_family=setup.font_family,
            font_size_px=setup.font_size_px,
            line_height=setup.line_height,
            text_columns=setup.text_columns,
            canvas_width_px=setup.canvas_width_px,
            css=setup.css(),
        ),
    )

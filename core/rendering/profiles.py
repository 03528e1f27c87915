"""Layout profiles: the three fixed paper formats and their print setup."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class LayoutProfile(str, Enum):
    """Paper format an invoice is rendered for."""

    FULL_PAGE = "a4"
    NARROW_THERMAL = "58mm"
    MEDIUM_THERMAL = "80mm"

    @property
    def is_thermal(self) -> bool:
        return self is not LayoutProfile.FULL_PAGE


@dataclass(frozen=True)
class PageSetup:
    """
    Print page setup for one profile.

    text_columns is the character width used for plain-text receipts.
    canvas_width_px is the element width at 96 DPI used for PDF capture.
    """

    page_size: str
    margin: str
    body_width: str | None
    font_family: str
    font_size_px: int
    line_height: float
    text_columns: int
    canvas_width_px: int

    def css(self) -> str:
        """@page and body rules for a print window."""
        rules = [
            f"@page {{ size: {self.page_size}; margin: {self.margin}; }}",
            "body { "
            f"font-family: {self.font_family}; "
            f"font-size: {self.font_size_px}px; "
            f"line-height: {self.line_height}; "
            "margin: 0; padding: 0;"
            + (f" width: {self.body_width};" if self.body_width else "")
            + " }",
        ]
        return "\n".join(rules)


@dataclass(frozen=True)
class ProfileLabels:
    """Wording that differs between layouts."""

    invoice_label: str
    phone_label: str
    website_label: str | None
    items_heading: str | None
    subtotal_label: str
    tax_label: str
    total_label: str
    uppercase_title: bool
    show_powered_by: bool


PAGE_SETUPS: dict[LayoutProfile, PageSetup] = {
    LayoutProfile.FULL_PAGE: PageSetup(
        page_size="A4",
        margin="0.5in",
        body_width=None,
        font_family="'Inter', Arial, sans-serif",
        font_size_px=14,
        line_height=1.4,
        text_columns=80,
        canvas_width_px=794,
    ),
    LayoutProfile.NARROW_THERMAL: PageSetup(
        page_size="58mm auto",
        margin="2mm",
        body_width="54mm",
        font_family="monospace",
        font_size_px=9,
        line_height=1.2,
        text_columns=32,
        canvas_width_px=219,
    ),
    LayoutProfile.MEDIUM_THERMAL: PageSetup(
        page_size="80mm auto",
        margin="3mm",
        body_width="74mm",
        font_family="monospace",
        font_size_px=11,
        line_height=1.3,
        text_columns=48,
        canvas_width_px=302,
    ),
}

PROFILE_LABELS: dict[LayoutProfile, ProfileLabels] = {
    LayoutProfile.FULL_PAGE: ProfileLabels(
        invoice_label="Invoice #:",
        phone_label="Tel:",
        website_label="Visit us:",
        items_heading="Items",
        subtotal_label="Subtotal",
        tax_label="Tax",
        total_label="Total",
        uppercase_title=False,
        show_powered_by=False,
    ),
    LayoutProfile.NARROW_THERMAL: ProfileLabels(
        invoice_label="Invoice:",
        phone_label="Tel:",
        website_label=None,
        items_heading=None,
        subtotal_label="Subtotal:",
        tax_label="Tax",
        total_label="TOTAL:",
        uppercase_title=True,
        show_powered_by=True,
    ),
    LayoutProfile.MEDIUM_THERMAL: ProfileLabels(
        invoice_label="Invoice #:",
        phone_label="Tel:",
        website_label=None,
        items_heading="ITEMS",
        subtotal_label="Subtotal:",
        tax_label="Tax",
        total_label="TOTAL:",
        uppercase_title=True,
        show_powered_by=True,
    ),
}

TABLE_COLUMNS = ["Description", "Qty", "Unit Price", "Total"]


def page_setup(profile: LayoutProfile) -> PageSetup:
    return PAGE_SETUPS[profile]


def export_filename(profile: LayoutProfile, when: datetime) -> str:
    """PDF file name for an export, e.g. invoice_58mm_20261018T0930.pdf."""
    return f"invoice_{profile.value}_{when.strftime('%Y%m%dT%H%M')}.pdf"

"""Plain-text output of a rendered invoice, sized to the profile's columns.

Thermal printers take this directly; the full-page variant is a monospace
fallback for terminals and logs.
"""

import textwrap

from core.rendering.profiles import LayoutProfile
from core.rendering.renderer import RenderedInvoice, RenderedRow


def _pair(left: str, right: str, width: int) -> list[str]:
    """Left text and right-aligned value on one line, wrapping when too long."""
    if not right:
        return textwrap.wrap(left, width) or [""]

    gap = width - len(left) - len(right)
    if gap >= 1:
        return [left + " " * gap + right]

    return (textwrap.wrap(left, width) or [""]) + [right.rjust(width)]


def _center(text: str, width: int) -> list[str]:
    return [line.center(width).rstrip() for line in textwrap.wrap(text, width)] or [""]


# Narrowest description column worth keeping the table layout for
MIN_DESCRIPTION_WIDTH = 12


def _table_rows(rows: list[RenderedRow], columns: list[str], width: int) -> list[str]:
    """
    Description, quantity, unit price and total as aligned columns.

    Numeric columns are as wide as their longest cell and the description
    takes the rest. When that leaves too little room, each row falls back
    to its stacked lines so no line exceeds width.
    """
    header_desc, header_qty, header_unit, header_total = columns
    qty_w = max([len(header_qty)] + [len(r.quantity) for r in rows])
    unit_w = max([len(header_unit)] + [len(r.unit_price) for r in rows])
    total_w = max([len(header_total)] + [len(r.total) for r in rows])
    desc_w = width - qty_w - unit_w - total_w - 3

    if desc_w < MIN_DESCRIPTION_WIDTH:
        out = []
        for r in rows:
            for line in r.lines:
                out.extend(_pair(line.left, line.right, width))
        return out

    def row(desc: str, qty: str, unit: str, total: str) -> str:
        return f"{desc:<{desc_w}} {qty:>{qty_w}} {unit:>{unit_w}} {total:>{total_w}}".rstrip()

    out = [row(header_desc, header_qty, header_unit, header_total), "=" * width]
    for r in rows:
        name_lines = textwrap.wrap(r.name, desc_w) or [""]
        out.append(row(name_lines[0], r.quantity, r.unit_price, r.total))
        out.extend(name_lines[1:])
    return out


def render_text(rendered: RenderedInvoice) -> str:
    """Lay out a RenderedInvoice as fixed-width text."""
    width = rendered.page.text_columns
    rule = "-" * width
    lines: list[str] = []

    lines.extend(_center(rendered.header.title, width))
    for header_line in rendered.header.lines:
        lines.extend(_center(header_line, width))
    lines.append(rule)

    for meta in rendered.meta:
        lines.extend(_pair(meta.left, meta.right, width))
    lines.append(rule)

    if rendered.items_heading:
        lines.extend(_center(rendered.items_heading, width))

    if rendered.empty_state is not None:
        lines.extend(_center(rendered.empty_state.title, width))
        lines.extend(_center(rendered.empty_state.hint, width))
    elif rendered.profile is LayoutProfile.FULL_PAGE:
        lines.extend(_table_rows(rendered.rows, rendered.columns, width))
    else:
        for row in rendered.rows:
            for item_line in row.lines:
                lines.extend(_pair(item_line.left, item_line.right, width))
    lines.append(rule)

    for total_line in rendered.totals.lines:
        lines.extend(_pair(total_line.left, total_line.right, width))
    lines.append(rule)

    for footer_line in rendered.footer:
        lines.extend(_center(footer_line, width))

    return "\n".join(lines) + "\n"

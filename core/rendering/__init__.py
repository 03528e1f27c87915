"""Invoice rendering for the A4, 58mm and 80mm layouts."""

from core.rendering.profiles import (
    LayoutProfile,
    PageSetup,
    export_filename,
    page_setup,
)
from core.rendering.renderer import (
    RenderedInvoice,
    render_invoice,
)
from core.rendering.text import render_text

"""
Packing list PDF for a campaign's paid orders.
One block per order, then a per-SKU totals page for the production run.
"""
import io
from collections import OrderedDict
from typing import Any, Iterable, Optional

from reportlab.lib import colors
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

BRAND_DARK = colors.HexColor("#111827")
BRAND_GREY = colors.HexColor("#4a4a4a")
RULE_GREY = colors.HexColor("#d4d4d4")

PAGE_WIDTH, PAGE_HEIGHT = letter
LEFT = 40
QTY_COL = PAGE_WIDTH - 60
TOP = PAGE_HEIGHT - 50
FOOTER_Y = 30
FOOTER_MARGIN = 60  # Min y for content

LINE_HEIGHT = 14
BLOCK_GAP = 18


def _val(s: Optional[str]) -> str:
    return (s or "").strip() or "-"


def _options_text(option_combo: Optional[dict]) -> str:
    return ", ".join(f"{k}: {v}" for k, v in (option_combo or {}).items())


class _Writer:
    """Tracks the cursor and starts a new page when a block would run into the footer."""

    def __init__(self, c: canvas.Canvas, title: str):
        self.c = c
        self.title = title
        self.page = 1
        self.y = TOP
        self._header()

    def _header(self) -> None:
        self.c.setFont("Helvetica-Bold", 14)
        self.c.setFillColor(BRAND_DARK)
        self.c.drawString(LEFT, self.y, self.title)
        self.y -= LINE_HEIGHT + BLOCK_GAP

    def _footer(self) -> None:
        self.c.setFont("Helvetica", 8)
        self.c.setFillColor(BRAND_GREY)
        self.c.drawRightString(PAGE_WIDTH - 40, FOOTER_Y, f"Page {self.page}")

    def new_page(self) -> None:
        self._footer()
        self.c.showPage()
        self.page += 1
        self.y = TOP
        self._header()

    def ensure(self, lines: int) -> None:
        if self.y - lines * LINE_HEIGHT < FOOTER_MARGIN:
            self.new_page()

    def text(self, s: str, bold: bool = False, indent: int = 0, qty: Optional[int] = None) -> None:
        self.c.setFont("Helvetica-Bold" if bold else "Helvetica", 10 if bold else 9)
        self.c.setFillColor(BRAND_DARK if bold else BRAND_GREY)
        self.c.drawString(LEFT + indent, self.y, s[:100])
        if qty is not None:
            self.c.drawRightString(QTY_COL, self.y, f"x{qty}")
        self.y -= LINE_HEIGHT

    def rule(self) -> None:
        self.c.setStrokeColor(RULE_GREY)
        self.c.line(LEFT, self.y + LINE_HEIGHT / 2, PAGE_WIDTH - 40, self.y + LINE_HEIGHT / 2)
        self.y -= BLOCK_GAP / 2

    def finish(self) -> None:
        self._footer()
        self.c.save()


def build_packing_list_pdf(campaign: Any, orders: Iterable[Any]) -> bytes:
    """
    Render the packing list. campaign needs name/ship_to_*; each order needs
    order_number, customer_*, items (with variant, quantity, customization_value).
    Returns the PDF bytes.
    """
    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=letter)
    w = _Writer(c, f"Packing list - {_val(campaign.name)}")

    w.text(f"Ship to: {_val(campaign.ship_to_name)}")
    w.text(_val(campaign.ship_to_address).replace("\n", ", "))
    if campaign.ship_to_phone:
        w.text(campaign.ship_to_phone)
    w.y -= BLOCK_GAP

    totals: "OrderedDict[str, tuple[str, int]]" = OrderedDict()
    count = 0
    for order in orders:
        count += 1
        items = list(order.items)
        w.ensure(3 + 2 * len(items))
        w.text(f"{order.order_number}  {_val(order.customer_name)}", bold=True)
        w.text(f"{_val(order.customer_email)}  {order.customer_phone or ''}".strip())
        for it in items:
            variant = it.variant
            sku = variant.sku if variant else it.variant_id
            title = variant.product.title if variant and variant.product else ""
            w.text(f"{sku}  {title}  {_options_text(variant.option_combo if variant else None)}", indent=12, qty=it.quantity)
            if it.customization_value:
                w.text(f'Customization: "{it.customization_value}"', indent=24)
            label, qty = totals.get(sku, (f"{title}  {_options_text(variant.option_combo if variant else None)}", 0))
            totals[sku] = (label, qty + it.quantity)
        w.rule()

    if count == 0:
        w.text("No paid orders.")

    w.new_page()
    w.text("Totals by SKU", bold=True)
    for sku, (label, qty) in totals.items():
        w.ensure(1)
        w.text(f"{sku}  {label}", qty=qty)
    w.finish()
    return buf.getvalue()

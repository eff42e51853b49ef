from __future__ import annotations

import io
from collections.abc import Iterable
from pathlib import Path

from reportlab.lib.colors import HexColor
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.pdfgen import canvas

from invoicepdf.services.layout import PAGE_HEIGHT, PAGE_WIDTH, LineOp, Page, RectOp, TextOp

# Baseline offset from the top of a line box, as a fraction of the font size
BASELINE_RATIO = 0.8

REGULAR_TTF_NAME = "InvoiceSans"
BOLD_TTF_NAME = "InvoiceSans-Bold"


def register_fonts(regular_path: str | None = None, bold_path: str | None = None) -> tuple[str, str]:
    """Return (regular_font_name, bold_font_name), registering TTF files when given.

    Without paths the built-in Helvetica pair is used. Helvetica has no glyph
    for some currency symbols (Ξ, ₿); point these at a TTF that does.
    """
    regular, bold = "Helvetica", "Helvetica-Bold"
    if regular_path:
        if not Path(regular_path).is_file():
            raise FileNotFoundError(f"Font not found: {regular_path}")
        pdfmetrics.registerFont(TTFont(REGULAR_TTF_NAME, regular_path))
        regular = REGULAR_TTF_NAME
    if bold_path:
        if not Path(bold_path).is_file():
            raise FileNotFoundError(f"Font not found: {bold_path}")
        pdfmetrics.registerFont(TTFont(BOLD_TTF_NAME, bold_path))
        bold = BOLD_TTF_NAME
    elif regular_path:
        bold = regular
    return regular, bold


def _flip(y: float) -> float:
    return PAGE_HEIGHT - y


def _draw(canv: canvas.Canvas, op: TextOp | RectOp | LineOp) -> None:
    match op:
        case RectOp():
            canv.setFillColor(HexColor(op.fill))
            canv.rect(op.x, _flip(op.y + op.height), op.width, op.height, stroke=0, fill=1)
        case LineOp():
            canv.setStrokeColor(HexColor(op.color))
            canv.setLineWidth(op.width)
            canv.line(op.x1, _flip(op.y1), op.x2, _flip(op.y2))
        case TextOp():
            canv.setFillColor(HexColor(op.color))
            canv.setFont(op.font, op.size)
            baseline = _flip(op.y + op.size * BASELINE_RATIO)
            if op.width is not None and op.align == "center":
                canv.drawCentredString(op.x + op.width / 2, baseline, op.text)
            elif op.width is not None and op.align == "right":
                canv.drawRightString(op.x + op.width, baseline, op.text)
            else:
                canv.drawString(op.x, baseline, op.text)
        case _:
            raise TypeError(f"Unknown draw operation: {op!r}")


def render_pdf(
    pages: Iterable[Page],
    *,
    title: str = "",
    author: str = "",
    subject: str = "",
) -> bytes:
    """Encode laid-out pages as PDF bytes.

    The canvas runs in invariant mode (fixed creation date and document id),
    so identical pages always produce identical bytes.
    """
    buffer = io.BytesIO()
    canv = canvas.Canvas(buffer, pagesize=(PAGE_WIDTH, PAGE_HEIGHT), invariant=1)
    canv.setTitle(title)
    canv.setAuthor(author)
    canv.setSubject(subject)
    for page in pages:
        for op in page:
            _draw(canv, op)
        canv.showPage()
    canv.save()
    return buffer.getvalue()

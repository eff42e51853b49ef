"""Invoice page layout.

Turns an InvoiceRecord into pages of draw operations. Coordinates are in PDF
points with the origin at the top-left corner of the page and ``y`` growing
downwards; the encoder flips them. Every section function takes a
LayoutContext and returns a new one, so the vertical cursor is never shared
between sections.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Union

from reportlab.lib.pagesizes import LETTER
from reportlab.lib.utils import simpleSplit

from invoicepdf.models.invoice import InvoiceRecord, LineItem
from invoicepdf.models.party import Freelancer, Party
from invoicepdf.utils.formatters import (
    format_currency,
    format_date,
    format_rate,
    format_status,
)

PAGE_WIDTH, PAGE_HEIGHT = LETTER
MARGIN = 50.0
CONTENT_WIDTH = PAGE_WIDTH - 2 * MARGIN
BOTTOM = PAGE_HEIGHT - MARGIN

TITLE_SIZE = 20
BODY_SIZE = 10
SMALL_SIZE = 8
LINE_SPACING = 1.2

BLACK = "#000000"
HEADER_FILL = "#e6e6e6"
STRIPE_FILL = "#f6f6f6"
RULE_COLOR = "#aaaaaa"

FREELANCER_X = 50.0
CLIENT_X = 300.0
PARTY_COLUMN_WIDTH = 240.0

LABEL_X = 50.0
VALUE_X = 200.0
VALUE_WIDTH = PAGE_WIDTH - MARGIN - VALUE_X
META_ROW_STEP = 15.0
PROJECT_TEXT_WIDTH = 500.0

TABLE_X = 50.0
TABLE_WIDTH = 500.0
ROW_HEIGHT = 20.0
CELL_PADDING = 5.0

TOTALS_LABEL_X = 400.0
TOTALS_VALUE_X = 450.0
TOTALS_VALUE_WIDTH = 100.0


def line_height(size: float) -> float:
    return size * LINE_SPACING


# --- Draw operations ---


@dataclass(frozen=True)
class TextOp:
    """One line of text. ``y`` is the top of the line box."""

    x: float
    y: float
    text: str
    font: str
    size: float
    width: float | None = None
    align: str = "left"  # left | center | right, relative to x..x+width
    color: str = BLACK


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    width: float
    height: float
    fill: str


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = RULE_COLOR
    width: float = 1.0


DrawOp = Union[TextOp, RectOp, LineOp]
Page = tuple[DrawOp, ...]


@dataclass(frozen=True)
class Column:
    title: str
    x: float
    width: float
    align: str


COLUMNS = (
    Column("Description", 55.0, 240.0, "left"),
    Column("Quantity", 300.0, 70.0, "center"),
    Column("Unit Price", 370.0, 70.0, "right"),
    Column("Total", 440.0, 70.0, "right"),
)
DESCRIPTION, QUANTITY, UNIT_PRICE, LINE_TOTAL = COLUMNS


# --- Layout context ---


@dataclass(frozen=True)
class LayoutContext:
    """Vertical cursor plus the pages drawn so far (last page is the current one)."""

    y: float = MARGIN
    pages: tuple[Page, ...] = ((),)
    regular_font: str = "Helvetica"
    bold_font: str = "Helvetica-Bold"

    @property
    def page_index(self) -> int:
        return len(self.pages) - 1

    def draw(self, *ops: DrawOp) -> LayoutContext:
        return replace(self, pages=self.pages[:-1] + (self.pages[-1] + ops,))

    def at(self, y: float) -> LayoutContext:
        return replace(self, y=y)

    def down(self, amount: float) -> LayoutContext:
        return replace(self, y=self.y + amount)

    def lines(self, count: float, size: float = BODY_SIZE) -> LayoutContext:
        return self.down(count * line_height(size))

    def new_page(self) -> LayoutContext:
        return replace(self, y=MARGIN, pages=self.pages + ((),))

    def ensure(self, height: float) -> LayoutContext:
        """Start a new page unless *height* still fits above the bottom margin."""
        if self.y + height <= BOTTOM or not self.pages[-1]:
            return self
        return self.new_page()


def wrap(text: str, font: str, size: float, width: float | None) -> list[str]:
    """Split *text* into lines no wider than *width* (words are never broken)."""
    if width is None:
        return [text]
    return simpleSplit(text, font, size, width) or [""]


def text_block(
    ctx: LayoutContext,
    text: str,
    x: float,
    *,
    font: str | None = None,
    size: float = BODY_SIZE,
    width: float | None = None,
    align: str = "left",
) -> LayoutContext:
    """Draw wrapped text at (x, ctx.y); the cursor ends below the last line."""
    font = font or ctx.regular_font
    step = line_height(size)
    for line in wrap(text, font, size, width):
        ctx = ctx.ensure(step)
        if line:
            ctx = ctx.draw(TextOp(x, ctx.y, line, font, size, width, align))
        ctx = ctx.down(step)
    return ctx


def _centered(ctx: LayoutContext, text: str, **kwargs) -> LayoutContext:
    return text_block(ctx, text, MARGIN, width=CONTENT_WIDTH, align="center", **kwargs)


# --- Sections ---


def header(ctx: LayoutContext, record: InvoiceRecord) -> LayoutContext:
    ctx = _centered(ctx, "INVOICE", font=ctx.bold_font, size=TITLE_SIZE)
    return ctx.lines(1)


def _freelancer_lines(freelancer: Freelancer) -> list[str]:
    lines = _party_lines(freelancer)
    if freelancer.wallet_address:
        lines.append(f"Wallet: {freelancer.wallet_address}")
    return lines


def _party_lines(party: Party) -> list[str]:
    lines = [party.name, party.email]
    if party.address:
        lines.append(party.address)
    return lines


def _column_height(ctx: LayoutContext, lines: list[str]) -> float:
    count = 1 + sum(
        len(wrap(line, ctx.regular_font, BODY_SIZE, PARTY_COLUMN_WIDTH)) for line in lines
    )
    return count * line_height(BODY_SIZE)


def _party_column(ctx: LayoutContext, x: float, heading: str, lines: list[str]) -> LayoutContext:
    ctx = text_block(ctx, heading, x, font=ctx.bold_font, width=PARTY_COLUMN_WIDTH)
    for line in lines:
        ctx = text_block(ctx, line, x, width=PARTY_COLUMN_WIDTH)
    return ctx


def party_block(ctx: LayoutContext, record: InvoiceRecord) -> LayoutContext:
    """Freelancer (payee) on the left, client (payer) on the right, same top."""
    payee = _freelancer_lines(record.freelancer)
    payer = _party_lines(record.client)
    ctx = ctx.ensure(max(_column_height(ctx, payee), _column_height(ctx, payer)))

    start_y = ctx.y
    left = _party_column(ctx, FREELANCER_X, "De:", payee)
    right = _party_column(left.at(start_y), CLIENT_X, "Para:", payer)
    return right.at(max(left.y, right.y)).lines(2)


def _metadata_rows(record: InvoiceRecord) -> list[tuple[str, str]]:
    rows = [
        ("Invoice Number:", record.invoice_number),
        ("Issue Date:", format_date(record.created_at)),
    ]
    if record.due_date is not None:
        rows.append(("Expiration Date:", format_date(record.due_date)))
    rows.append(("Transaction ID:", record.transaction_id))
    rows.append(("Transaction HASH:", record.transaction_hash))
    return rows


def metadata_block(ctx: LayoutContext, record: InvoiceRecord) -> LayoutContext:
    ctx = text_block(ctx, "Invoice Information:", LABEL_X, font=ctx.bold_font)

    step = line_height(BODY_SIZE)
    for label, value in _metadata_rows(record):
        value_lines = wrap(value, ctx.regular_font, BODY_SIZE, VALUE_WIDTH)
        height = max(META_ROW_STEP, (len(value_lines) - 1) * step + META_ROW_STEP)
        ctx = ctx.ensure(height)
        row_y = ctx.y
        ctx = ctx.draw(TextOp(LABEL_X, row_y, label, ctx.regular_font, BODY_SIZE))
        for i, line in enumerate(value_lines):
            if line:
                ctx = ctx.draw(TextOp(VALUE_X, row_y + i * step, line, ctx.regular_font, BODY_SIZE))
        ctx = ctx.at(row_y + height)

    ctx = ctx.lines(2)
    ctx = text_block(ctx, "Project:", LABEL_X, font=ctx.bold_font)
    ctx = text_block(ctx, record.project.title, LABEL_X, width=PROJECT_TEXT_WIDTH)
    if record.project.description:
        ctx = text_block(ctx, record.project.description, LABEL_X, width=PROJECT_TEXT_WIDTH)
    return ctx.lines(2)


def table_header(ctx: LayoutContext) -> LayoutContext:
    y = ctx.y
    ctx = ctx.draw(RectOp(TABLE_X, y, TABLE_WIDTH, ROW_HEIGHT, HEADER_FILL))
    for col in COLUMNS:
        ctx = ctx.draw(
            TextOp(col.x, y + CELL_PADDING, col.title, ctx.bold_font, BODY_SIZE, col.width, col.align)
        )
    return ctx.at(y + ROW_HEIGHT)


def _item_row(
    ctx: LayoutContext, index: int, item: LineItem, description: list[str], height: float, currency: str
) -> LayoutContext:
    y = ctx.y
    if index % 2 == 0:
        ctx = ctx.draw(RectOp(TABLE_X, y, TABLE_WIDTH, height, STRIPE_FILL))

    text_y = y + CELL_PADDING
    font = ctx.regular_font
    for i, line in enumerate(description):
        ctx = ctx.draw(
            TextOp(DESCRIPTION.x, text_y + i * line_height(BODY_SIZE), line, font, BODY_SIZE, DESCRIPTION.width)
        )
    ctx = ctx.draw(
        TextOp(QUANTITY.x, text_y, str(item.quantity), font, BODY_SIZE, QUANTITY.width, QUANTITY.align),
        TextOp(
            UNIT_PRICE.x,
            text_y,
            format_currency(item.unit_price, currency),
            font,
            BODY_SIZE,
            UNIT_PRICE.width,
            UNIT_PRICE.align,
        ),
        TextOp(
            LINE_TOTAL.x,
            text_y,
            format_currency(item.total, currency),
            font,
            BODY_SIZE,
            LINE_TOTAL.width,
            LINE_TOTAL.align,
        ),
    )
    return ctx.at(y + height)


def _row_layout(ctx: LayoutContext, item: LineItem) -> tuple[list[str], float]:
    """Wrapped description lines and the row height they need."""
    description = wrap(item.description, ctx.regular_font, BODY_SIZE, DESCRIPTION.width)
    return description, ROW_HEIGHT + (len(description) - 1) * line_height(BODY_SIZE)


def items_table(ctx: LayoutContext, record: InvoiceRecord) -> LayoutContext:
    """Shaded header row, then one row per item; the header repeats on each new page."""
    rows = [_row_layout(ctx, item) for item in record.items]
    first_height = rows[0][1] if rows else ROW_HEIGHT
    ctx = table_header(ctx.ensure(ROW_HEIGHT + first_height))
    for index, (item, (description, height)) in enumerate(zip(record.items, rows)):
        if ctx.y + height > BOTTOM:
            ctx = table_header(ctx.new_page())
        ctx = _item_row(ctx, index, item, description, height, record.currency)
    return ctx.lines(1)


def totals_rows(record: InvoiceRecord) -> list[tuple[str, str, bool]]:
    """(label, formatted amount, bold) for each totals row, in display order."""
    totals = record.totals
    rows = [("Subtotal:", format_currency(totals.subtotal, record.currency), False)]
    if totals.shows_tax:
        rows.append(
            (f"Tax({format_rate(totals.tax_rate)}%):", format_currency(totals.tax, record.currency), False)
        )
    rows.append(("Total:", format_currency(totals.total, record.currency), True))
    return rows


def totals_block(ctx: LayoutContext, record: InvoiceRecord) -> LayoutContext:
    rows = totals_rows(record)
    step = 1.5 * line_height(BODY_SIZE)
    ctx = ctx.ensure(line_height(BODY_SIZE) + len(rows) * step)

    y = ctx.y
    ctx = ctx.draw(LineOp(TABLE_X, y, TABLE_X + TABLE_WIDTH, y)).lines(1)
    for label, amount, bold in rows:
        font = ctx.bold_font if bold else ctx.regular_font
        ctx = ctx.draw(
            TextOp(TOTALS_LABEL_X, ctx.y, label, font, BODY_SIZE),
            TextOp(TOTALS_VALUE_X, ctx.y, amount, font, BODY_SIZE, TOTALS_VALUE_WIDTH, "right"),
        ).down(step)
    return ctx.lines(2)


def footer(ctx: LayoutContext, record: InvoiceRecord, platform_name: str) -> LayoutContext:
    provenance = (
        "This invoice has been recorded on the blockchain with the transaction hash: "
        f"{record.transaction_hash}"
    )
    small = wrap(provenance, ctx.regular_font, SMALL_SIZE, CONTENT_WIDTH)
    ctx = ctx.ensure(4 * line_height(BODY_SIZE) + len(small) * line_height(SMALL_SIZE))

    ctx = _centered(ctx, f"Status: {format_status(record.status)}").lines(1)
    ctx = _centered(
        ctx, f"Thank you for using {platform_name} - The decentralized freelance platform"
    ).lines(1)
    return _centered(ctx, provenance, size=SMALL_SIZE)


SECTIONS = (header, party_block, metadata_block, items_table, totals_block)


def layout_invoice(
    record: InvoiceRecord,
    *,
    platform_name: str,
    regular_font: str = "Helvetica",
    bold_font: str = "Helvetica-Bold",
) -> tuple[Page, ...]:
    """Lay out every section in order and return the resulting pages."""
    ctx = LayoutContext(regular_font=regular_font, bold_font=bold_font)
    for section in SECTIONS:
        ctx = section(ctx, record)
    ctx = footer(ctx, record, platform_name)
    return ctx.pages

from __future__ import annotations

import asyncio
import logging

from invoicepdf import config
from invoicepdf.models.invoice import InvoiceRecord
from invoicepdf.services.exceptions import CompositionError
from invoicepdf.services.layout import Page, layout_invoice
from invoicepdf.services.pdf_encoder import register_fonts, render_pdf
from invoicepdf.utils.validators import totals_consistent

logger = logging.getLogger(__name__)


class InvoiceComposer:
    """Render an InvoiceRecord into PDF bytes.

    Composition is a pure function of the record: no timestamps are embedded
    and the encoder runs in invariant mode.
    """

    def __init__(
        self,
        *,
        platform_name: str | None = None,
        regular_font_path: str | None = None,
        bold_font_path: str | None = None,
    ) -> None:
        self.platform_name = platform_name or config.get_platform_name()
        self.regular_font, self.bold_font = register_fonts(regular_font_path, bold_font_path)

    @classmethod
    def from_config(cls) -> InvoiceComposer:
        regular, bold = config.get_font_paths()
        return cls(regular_font_path=regular, bold_font_path=bold)

    def layout(self, record: InvoiceRecord) -> tuple[Page, ...]:
        return layout_invoice(
            record,
            platform_name=self.platform_name,
            regular_font=self.regular_font,
            bold_font=self.bold_font,
        )

    def compose(self, record: InvoiceRecord) -> bytes:
        """Lay out and encode *record*. Raises CompositionError on any failure."""
        if not isinstance(record, InvoiceRecord):
            raise CompositionError(f"Expected an InvoiceRecord, got {type(record).__name__}")
        totals = record.totals
        try:
            if not totals_consistent(totals.subtotal, totals.tax, totals.total):
                logger.warning(
                    "Invoice %s: total %s does not match subtotal %s + tax %s",
                    record.invoice_number,
                    totals.total,
                    totals.subtotal,
                    totals.tax,
                )
            pages = self.layout(record)
            content = render_pdf(
                pages,
                title=f"Invoice {record.invoice_number}",
                author=record.freelancer.name,
                subject=f"Transaction {record.transaction_id}",
            )
        except Exception as exc:
            raise CompositionError(f"Error generating invoice: {exc}") from exc

        logger.info(
            "Invoice %s composed: %d page(s), %d bytes",
            record.invoice_number,
            len(pages),
            len(content),
        )
        return content

    async def compose_async(self, record: InvoiceRecord) -> bytes:
        """Run compose() in a worker thread so the event loop stays responsive."""
        return await asyncio.to_thread(self.compose, record)

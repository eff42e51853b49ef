from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass
from pathlib import Path

from invoicepdf.config import PDF_MEDIA_TYPE, STREAM_CHUNK_SIZE
from invoicepdf.models.invoice import InvoiceRecord
from invoicepdf.services.composer import InvoiceComposer
from invoicepdf.services.exceptions import GenerationError, InvoiceError, NotFoundError
from invoicepdf.services.records import InvoiceRecordSource, YamlRecordSource
from invoicepdf.services.resolver import OutputResolver
from invoicepdf.utils.registry import add_document

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentDownload:
    """A generated document ready to be streamed to a client."""

    path: Path
    media_type: str = PDF_MEDIA_TYPE

    @property
    def filename(self) -> str:
        return self.path.name

    @property
    def headers(self) -> dict[str, str]:
        return {"Content-Disposition": f"attachment; filename={self.filename}"}

    async def iter_bytes(self, chunk_size: int = STREAM_CHUNK_SIZE) -> AsyncIterator[bytes]:
        """Yield the file in chunks; the next chunk is read only when the consumer asks."""
        fh = await asyncio.to_thread(self.path.open, "rb")
        try:
            while chunk := await asyncio.to_thread(fh.read, chunk_size):
                yield chunk
        finally:
            fh.close()


class DeliveryGateway:
    """Generate invoices on demand and hand them out for download.

    There is no generate-or-retrieve cache: download() regenerates the
    document every time, each into its own timestamped file.
    """

    def __init__(
        self,
        records: InvoiceRecordSource,
        composer: InvoiceComposer,
        resolver: OutputResolver,
        *,
        record_history: bool = True,
    ) -> None:
        self.records = records
        self.composer = composer
        self.resolver = resolver
        self.record_history = record_history

    async def _lookup(self, transaction_id: str) -> InvoiceRecord:
        try:
            return await self.records.get_invoice_record(transaction_id)
        except InvoiceError:
            raise
        except Exception as exc:
            raise GenerationError(f"Could not build invoice for {transaction_id}: {exc}") from exc

    async def generate(self, transaction_id: str, output_path: Path | str | None = None) -> Path:
        """Build, render and store the invoice for *transaction_id*; return its path."""
        record = await self._lookup(transaction_id)
        content = await self.composer.compose_async(record)
        destination = self.resolver.resolve(record.id, output_path)
        await self.resolver.write(destination, content)
        if self.record_history:
            self._remember(record, destination, content)
        return destination

    def _remember(self, record: InvoiceRecord, destination: Path, content: bytes) -> None:
        try:
            add_document(
                destination,
                content,
                invoice_id=record.id,
                invoice_number=record.invoice_number,
                transaction_id=record.transaction_id,
            )
        except Exception:
            logger.warning("Failed to register generated document", exc_info=True)

    async def download(self, transaction_id: str) -> DocumentDownload:
        """Generate the invoice, then return a handle to stream it."""
        path = await self.generate(transaction_id)
        if not path.is_file():
            raise NotFoundError("Invoice not found")
        return DocumentDownload(path)


def build_default_gateway() -> DeliveryGateway:
    """Gateway wired from configuration: YAML records, configured storage and fonts."""
    return DeliveryGateway(
        YamlRecordSource(),
        InvoiceComposer.from_config(),
        OutputResolver(),
    )

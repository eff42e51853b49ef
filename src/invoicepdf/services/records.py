from __future__ import annotations

import asyncio
from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

import yaml

from invoicepdf import config
from invoicepdf.models.invoice import InvoiceRecord
from invoicepdf.services.exceptions import CompositionError, RecordNotFoundError


class InvoiceRecordSource(Protocol):
    """Builds the InvoiceRecord for a transaction (transaction, user and project lookups)."""

    async def get_invoice_record(self, transaction_id: str) -> InvoiceRecord: ...


def parse_record(data: object) -> InvoiceRecord:
    """Build an InvoiceRecord from loaded data, raising CompositionError if malformed."""
    if not isinstance(data, dict):
        raise CompositionError("Malformed invoice record: expected a mapping")
    try:
        return InvoiceRecord.from_dict(data)
    except KeyError as exc:
        raise CompositionError(f"Malformed invoice record: missing {exc}") from exc
    except (TypeError, ValueError, AttributeError) as exc:
        raise CompositionError(f"Malformed invoice record: {exc}") from exc


def load_record_file(path: Path) -> InvoiceRecord:
    try:
        data = config.load_yaml(path)
    except yaml.YAMLError as exc:
        raise CompositionError(f"Malformed invoice record {path.name}: {exc}") from exc
    return parse_record(data)


class YamlRecordSource:
    """Read records from ``<records_dir>/<transaction_id>.yaml``."""

    def __init__(self, records_dir: Path | None = None) -> None:
        self._records_dir = records_dir

    @property
    def records_dir(self) -> Path:
        return self._records_dir or config.get_records_dir()

    async def get_invoice_record(self, transaction_id: str) -> InvoiceRecord:
        # Ids that are not a bare file stem could escape the records dir
        if not transaction_id or Path(transaction_id).name != transaction_id:
            raise RecordNotFoundError(f"Transaction not found: {transaction_id}")
        path = self.records_dir / f"{transaction_id}.yaml"
        if not path.is_file():
            raise RecordNotFoundError(f"Transaction not found: {transaction_id}")
        return await asyncio.to_thread(self._read, transaction_id)

    def _read(self, transaction_id: str) -> InvoiceRecord:
        try:
            data = config.load_record(transaction_id, self.records_dir)
        except yaml.YAMLError as exc:
            raise CompositionError(f"Malformed invoice record {transaction_id}.yaml: {exc}") from exc
        return parse_record(data)


class StaticRecordSource:
    """Serve records from an in-memory mapping keyed by transaction id."""

    def __init__(self, records: Mapping[str, InvoiceRecord]) -> None:
        self._records = dict(records)

    async def get_invoice_record(self, transaction_id: str) -> InvoiceRecord:
        try:
            return self._records[transaction_id]
        except KeyError:
            raise RecordNotFoundError(f"Transaction not found: {transaction_id}") from None

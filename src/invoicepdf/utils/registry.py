"""Local ledger of generated invoice documents.

Documents are always regenerated, so the storage area accumulates one file
per request; this JSON file remembers which file belongs to which invoice and
transaction, and a checksum of what was written.
"""

from __future__ import annotations

import hashlib
import json
import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from filelock import FileLock

from invoicepdf import config as _config

logger = logging.getLogger(__name__)


def _registry_path() -> Path:
    return _config.get_data_dir() / "documents.json"


def _backup_corrupt(path: Path) -> Path:
    """Rename a corrupt file to a timestamped backup before it gets overwritten."""
    ts = datetime.now(UTC).strftime("%Y%m%dT%H%M%S")
    backup = path.with_name(f"{path.name}.corrupt.{ts}")
    path.rename(backup)
    logger.warning("Corrupt file backed up: %s → %s", path, backup)
    return backup


@contextmanager
def _locked() -> Iterator[None]:
    """Hold an exclusive file lock during registry read-modify-write."""
    rp = _registry_path()
    rp.parent.mkdir(parents=True, exist_ok=True)
    lock = FileLock(rp.with_suffix(".lock"))
    with lock:
        yield


def _load() -> list[dict[str, Any]]:
    rp = _registry_path()
    if not rp.exists():
        return []
    try:
        return json.loads(rp.read_text())
    except (json.JSONDecodeError, ValueError):
        _backup_corrupt(rp)
        return []


def _save(entries: list[dict[str, Any]]) -> None:
    rp = _registry_path()
    rp.parent.mkdir(parents=True, exist_ok=True)
    tmp = rp.with_suffix(".tmp")
    tmp.write_text(json.dumps(entries, indent=2, ensure_ascii=False) + "\n")
    os.replace(tmp, rp)


def add_document(
    path: Path | str,
    content: bytes,
    *,
    invoice_id: str,
    invoice_number: str,
    transaction_id: str,
) -> dict[str, Any]:
    """Append a generated document to the ledger and return the new entry."""
    entry: dict[str, Any] = {
        "invoice_id": invoice_id,
        "invoice_number": invoice_number,
        "transaction_id": transaction_id,
        "path": str(path),
        "size": len(content),
        "sha256": hashlib.sha256(content).hexdigest(),
        "generated_at": datetime.now(UTC).isoformat(timespec="seconds"),
    }
    with _locked():
        entries = _load()
        entries.append(entry)
        _save(entries)
    return entry


def list_documents(invoice_id: str | None = None) -> list[dict[str, Any]]:
    """Return all ledger entries, optionally filtered by invoice id."""
    with _locked():
        entries = _load()
    if invoice_id:
        entries = [e for e in entries if e.get("invoice_id") == invoice_id]
    return entries


def find_latest(invoice_id: str) -> dict[str, Any] | None:
    """Most recently generated document for *invoice_id*, if any."""
    entries = list_documents(invoice_id)
    return entries[-1] if entries else None

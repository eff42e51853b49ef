from __future__ import annotations

import asyncio
import logging
import os
import re
import threading
import time
from collections.abc import Callable
from pathlib import Path

from invoicepdf import config
from invoicepdf.services.exceptions import StorageWriteError

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return time.time_ns() // 1_000_000


def _safe_segment(value: str) -> str:
    """Make an id usable inside a single filename."""
    return re.sub(r'[\\/:*?"<>|]', "_", value).strip() or "unknown"


class _WriteGuard:
    """Shared between a write worker and the caller that may stop waiting for it.

    The worker holds ``lock`` across its abandoned check and the final replace,
    so after abandon() returns the destination is never left holding the write.
    """

    def __init__(self) -> None:
        self.lock = threading.Lock()
        self.abandoned = False
        self.committed = False

    def abandon(self, destination: Path) -> None:
        with self.lock:
            self.abandoned = True
            if self.committed:
                destination.unlink(missing_ok=True)


class OutputResolver:
    """Decide where rendered invoices go and write them there.

    Every call to resolve() without an explicit path yields a new
    ``invoice-<id>-<millis>.pdf``: documents are always regenerated, never
    reused. Timestamps are strictly increasing per resolver, so two calls in
    the same millisecond still get distinct files.
    """

    def __init__(
        self,
        storage_dir: Path | str | None = None,
        *,
        clock: Callable[[], int] = _now_ms,
        write_timeout: float | None = None,
    ) -> None:
        self.storage_dir = Path(storage_dir) if storage_dir is not None else config.get_storage_dir()
        self.write_timeout = write_timeout if write_timeout is not None else config.get_write_timeout()
        self._clock = clock
        self._lock = threading.Lock()
        self._last_ts = 0

    def _next_timestamp(self) -> int:
        with self._lock:
            ts = max(self._clock(), self._last_ts + 1)
            self._last_ts = ts
            return ts

    @staticmethod
    def ensure_storage(directory: Path) -> Path:
        """Create *directory* if missing. Never fails because it already exists."""
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def resolve(self, invoice_id: str, explicit_path: Path | str | None = None) -> Path:
        if explicit_path is not None:
            destination = Path(explicit_path)
            self.ensure_storage(destination.parent)
            return destination
        self.ensure_storage(self.storage_dir)
        filename = f"invoice-{_safe_segment(invoice_id)}-{self._next_timestamp()}.pdf"
        return self.storage_dir / filename

    @staticmethod
    def _write_atomic(destination: Path, content: bytes, guard: _WriteGuard) -> None:
        tmp = destination.with_name(f".{destination.name}.part")
        try:
            with tmp.open("wb") as fh:
                fh.write(content)
                fh.flush()
                os.fsync(fh.fileno())
            with guard.lock:
                if guard.abandoned:
                    return
                os.replace(tmp, destination)
                guard.committed = True
        finally:
            tmp.unlink(missing_ok=True)

    async def write(self, destination: Path, content: bytes) -> Path:
        """Write *content* to *destination* atomically within ``write_timeout`` seconds.

        Raises StorageWriteError on failure or timeout; nothing is left at
        *destination* in that case.
        """
        guard = _WriteGuard()
        try:
            await asyncio.wait_for(
                asyncio.to_thread(self._write_atomic, destination, content, guard),
                timeout=self.write_timeout,
            )
        except TimeoutError:
            await asyncio.to_thread(guard.abandon, destination)
            logger.error("Timed out after %.1fs writing invoice: %s", self.write_timeout, destination)
            raise StorageWriteError(
                f"Timed out writing invoice to {destination}", str(destination)
            ) from None
        except OSError as exc:
            logger.error("Error writing invoice %s: %s", destination, exc)
            raise StorageWriteError(f"Error writing invoice: {exc}", str(destination)) from exc
        logger.info("Invoice generated successfully: %s", destination)
        return destination

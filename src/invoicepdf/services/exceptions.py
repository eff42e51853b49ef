from __future__ import annotations


class InvoiceError(Exception):
    """Base class for every failure surfaced by invoice generation or delivery."""


class GenerationError(InvoiceError):
    """The invoice document could not be produced."""


class CompositionError(GenerationError):
    """The invoice record is malformed or the PDF encoder failed."""


class StorageWriteError(GenerationError):
    """The rendered document could not be written to its destination."""

    def __init__(self, message: str, destination: str | None = None) -> None:
        super().__init__(message)
        self.destination = destination


class NotFoundError(InvoiceError):
    """No document exists at the resolved destination."""


class RecordNotFoundError(NotFoundError):
    """No invoice record could be found for the requested transaction."""

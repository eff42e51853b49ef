from __future__ import annotations

import io
from decimal import Decimal

import pdfplumber
import pytest

from invoicepdf.models.invoice import InvoiceRecord, LineItem
from invoicepdf.services.composer import InvoiceComposer
from invoicepdf.services.records import StaticRecordSource
from invoicepdf.services.resolver import OutputResolver


def pdf_text(content: bytes) -> str:
    """Extract the visible text of every page of a PDF."""
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        return "\n".join(page.extract_text() or "" for page in pdf.pages)


def pdf_page_count(content: bytes) -> int:
    with pdfplumber.open(io.BytesIO(content)) as pdf:
        return len(pdf.pages)


@pytest.fixture(autouse=True)
def _isolated_dirs(monkeypatch, tmp_path):
    """Keep the document history and records out of the user's real directories."""
    monkeypatch.setenv("INVOICEPDF_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("INVOICEPDF_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.delenv("INVOICEPDF_PLATFORM_NAME", raising=False)


# --- Record fixtures ---


@pytest.fixture
def record_dict() -> dict:
    return {
        "id": "inv-0001",
        "invoice_number": "INV-2024-0001",
        "created_at": "2024-03-12",
        "transaction_id": "tx-001",
        "transaction_hash": "0x9f2c4e1b7a3d5f6081c2e4a6b8d0f1e3c5a7b9d1",
        "amount": "110.00",
        "currency": "USD",
        "status": "completed",
        "client": {
            "id": "client-1",
            "name": "Acme Corp",
            "email": "billing@acme.example",
            "address": "100 Main St, New York",
        },
        "freelancer": {
            "id": "freelancer-1",
            "name": "Jane Doe",
            "email": "jane@example.com",
            "wallet_address": "0x1234567890abcdef1234567890abcdef12345678",
        },
        "project": {
            "id": "project-1",
            "title": "Marketing website",
            "description": "Design and build of the marketing website.",
        },
        "items": [
            {"description": "Design work", "quantity": 1, "unit_price": "40.00", "total": "40.00"},
            {"description": "Development", "quantity": 2, "unit_price": "30.00", "total": "60.00"},
        ],
        "totals": {"subtotal": "100.00", "tax": "10.00", "tax_rate": "10", "total": "110.00"},
    }


@pytest.fixture
def record(record_dict: dict) -> InvoiceRecord:
    return InvoiceRecord.from_dict(record_dict)


@pytest.fixture
def make_items():
    def _make(n: int) -> tuple[LineItem, ...]:
        return tuple(
            LineItem(
                description=f"Item number {i}",
                quantity=1,
                unit_price=Decimal("10.00"),
                total=Decimal("10.00"),
            )
            for i in range(n)
        )

    return _make


# --- Service fixtures ---


@pytest.fixture
def composer() -> InvoiceComposer:
    return InvoiceComposer(platform_name="OFFER-HUB")


@pytest.fixture
def storage_dir(tmp_path):
    return tmp_path / "uploads" / "invoices"


@pytest.fixture
def resolver(storage_dir) -> OutputResolver:
    return OutputResolver(storage_dir, write_timeout=5)


@pytest.fixture
def records(record: InvoiceRecord) -> StaticRecordSource:
    return StaticRecordSource({record.transaction_id: record})

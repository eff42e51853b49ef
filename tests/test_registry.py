from __future__ import annotations

import hashlib
import json
from unittest.mock import patch

from invoicepdf.utils.registry import _backup_corrupt, add_document, find_latest, list_documents


def _add(path, content=b"%PDF-1.4", invoice_id="inv-0001"):
    return add_document(
        path,
        content,
        invoice_id=invoice_id,
        invoice_number="INV-2024-0001",
        transaction_id="tx-001",
    )


def test_add_document_entry(tmp_path):
    rp = tmp_path / "documents.json"
    with patch("invoicepdf.utils.registry._registry_path", return_value=rp):
        entry = _add(tmp_path / "invoice-inv-0001-1.pdf", b"abc")
    assert entry["path"] == str(tmp_path / "invoice-inv-0001-1.pdf")
    assert entry["size"] == 3
    assert entry["sha256"] == hashlib.sha256(b"abc").hexdigest()
    assert entry["generated_at"]
    assert json.loads(rp.read_text()) == [entry]


def test_list_documents_empty(tmp_path):
    with patch("invoicepdf.utils.registry._registry_path", return_value=tmp_path / "documents.json"):
        assert list_documents() == []


def test_list_documents_keeps_order_and_filters(tmp_path):
    rp = tmp_path / "documents.json"
    with patch("invoicepdf.utils.registry._registry_path", return_value=rp):
        _add("a.pdf")
        _add("b.pdf", invoice_id="inv-0002")
        _add("c.pdf")
        assert [e["path"] for e in list_documents()] == ["a.pdf", "b.pdf", "c.pdf"]
        assert [e["path"] for e in list_documents("inv-0001")] == ["a.pdf", "c.pdf"]
        assert list_documents("inv-9999") == []


def test_registry_uses_data_dir(monkeypatch, tmp_path):
    monkeypatch.setenv("INVOICEPDF_DATA_DIR", str(tmp_path / "elsewhere"))
    _add("a.pdf")
    assert (tmp_path / "elsewhere" / "documents.json").is_file()


def test_corrupt_registry_is_backed_up(tmp_path):
    rp = tmp_path / "documents.json"
    rp.write_text("{not json")
    with patch("invoicepdf.utils.registry._registry_path", return_value=rp):
        assert list_documents() == []
        _add("a.pdf")
    backups = list(tmp_path.glob("documents.json.corrupt.*"))
    assert len(backups) == 1
    assert backups[0].read_text() == "{not json"
    assert len(json.loads(rp.read_text())) == 1


def test_backup_corrupt_renames(tmp_path):
    path = tmp_path / "documents.json"
    path.write_text("garbage")
    backup = _backup_corrupt(path)
    assert not path.exists()
    assert backup.read_text() == "garbage"
    assert backup.name.startswith("documents.json.corrupt.")


def test_find_latest(tmp_path):
    with patch("invoicepdf.utils.registry._registry_path", return_value=tmp_path / "documents.json"):
        assert find_latest("inv-0001") is None
        _add("a.pdf")
        _add("b.pdf", invoice_id="inv-0002")
        _add("c.pdf")
        assert find_latest("inv-0001")["path"] == "c.pdf"
        assert find_latest("inv-0002")["path"] == "b.pdf"

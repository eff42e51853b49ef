from __future__ import annotations

import os
import re
import threading
import time

import pytest

from invoicepdf.services.exceptions import StorageWriteError
from invoicepdf.services.resolver import OutputResolver

_DEFAULT_NAME = re.compile(r"^invoice-inv-0001-\d+\.pdf$")


class TestResolve:
    def test_default_location(self, resolver, storage_dir):
        path = resolver.resolve("inv-0001")
        assert path.parent == storage_dir
        assert _DEFAULT_NAME.match(path.name)
        assert storage_dir.is_dir()

    def test_uses_clock(self, storage_dir):
        resolver = OutputResolver(storage_dir, clock=lambda: 1700000000000)
        assert resolver.resolve("inv-0001").name == "invoice-inv-0001-1700000000000.pdf"

    def test_same_millisecond_gets_distinct_names(self, storage_dir):
        resolver = OutputResolver(storage_dir, clock=lambda: 1000)
        names = [resolver.resolve("inv-0001").name for _ in range(3)]
        assert names == [
            "invoice-inv-0001-1000.pdf",
            "invoice-inv-0001-1001.pdf",
            "invoice-inv-0001-1002.pdf",
        ]

    def test_unsafe_id(self, storage_dir):
        resolver = OutputResolver(storage_dir, clock=lambda: 5)
        path = resolver.resolve("../a/b")
        assert path.parent == storage_dir
        assert path.name == "invoice-.._a_b-5.pdf"

    def test_explicit_path(self, resolver, tmp_path, storage_dir):
        target = tmp_path / "custom" / "nested" / "out.pdf"
        assert resolver.resolve("inv-0001", target) == target
        assert target.parent.is_dir()
        assert not storage_dir.exists()

    def test_ensure_storage_is_idempotent(self, tmp_path):
        directory = tmp_path / "a" / "b"
        OutputResolver.ensure_storage(directory)
        OutputResolver.ensure_storage(directory)
        assert directory.is_dir()

    def test_storage_dir_from_env(self, monkeypatch, tmp_path):
        monkeypatch.setenv("INVOICEPDF_STORAGE_DIR", str(tmp_path / "env-storage"))
        assert OutputResolver().storage_dir == tmp_path / "env-storage"


class TestWrite:
    @pytest.mark.asyncio
    async def test_writes_content(self, resolver):
        destination = resolver.resolve("inv-0001")
        assert await resolver.write(destination, b"%PDF-1.4 data") == destination
        assert destination.read_bytes() == b"%PDF-1.4 data"
        assert [p.name for p in destination.parent.iterdir()] == [destination.name]

    @pytest.mark.asyncio
    async def test_overwrites_explicit_target(self, resolver, tmp_path):
        target = tmp_path / "out.pdf"
        target.write_bytes(b"old")
        await resolver.write(resolver.resolve("inv-0001", target), b"new")
        assert target.read_bytes() == b"new"

    @pytest.mark.asyncio
    async def test_missing_directory(self, resolver, tmp_path):
        destination = tmp_path / "missing" / "out.pdf"
        with pytest.raises(StorageWriteError) as exc_info:
            await resolver.write(destination, b"data")
        assert exc_info.value.destination == str(destination)
        assert not destination.exists()

    @pytest.mark.asyncio
    async def test_replace_failure_leaves_nothing(self, resolver, monkeypatch):
        destination = resolver.resolve("inv-0001")

        def fail(src, dst):
            raise PermissionError("read-only volume")

        monkeypatch.setattr("invoicepdf.services.resolver.os.replace", fail)
        with pytest.raises(StorageWriteError, match="read-only volume"):
            await resolver.write(destination, b"data")
        assert list(destination.parent.iterdir()) == []

    @pytest.mark.asyncio
    async def test_timeout(self, storage_dir, monkeypatch):
        resolver = OutputResolver(storage_dir, write_timeout=0.05)
        destination = resolver.resolve("inv-0001")
        real_write = OutputResolver._write_atomic
        finished = threading.Event()

        def slow(dest, content, guard):
            time.sleep(0.3)
            try:
                real_write(dest, content, guard)
            finally:
                finished.set()

        monkeypatch.setattr(OutputResolver, "_write_atomic", staticmethod(slow))
        with pytest.raises(StorageWriteError, match="Timed out"):
            await resolver.write(destination, b"data")

        assert finished.wait(5)
        assert not destination.exists()
        assert list(storage_dir.iterdir()) == []

    @pytest.mark.asyncio
    async def test_timeout_during_replace_removes_file(self, storage_dir, monkeypatch):
        resolver = OutputResolver(storage_dir, write_timeout=0.1)
        destination = resolver.resolve("inv-0001")
        real_replace = os.replace

        def slow_replace(src, dst):
            time.sleep(0.4)
            real_replace(src, dst)

        monkeypatch.setattr("invoicepdf.services.resolver.os.replace", slow_replace)
        with pytest.raises(StorageWriteError, match="Timed out"):
            await resolver.write(destination, b"data")

        assert not destination.exists()
        assert list(storage_dir.iterdir()) == []

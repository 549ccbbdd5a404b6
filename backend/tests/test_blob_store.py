"""
PDF Notes Backend - Blob Store Unit Tests
===========================================

What:  Tests for the inline and external PDF payload backends.
How:   External tests write to a per-test temporary directory; inline tests
       use in-memory Note instances.

Test Strategy:
    ✅ Inline put/get/delete and missing payload
    ✅ External keys: unique, readable, sanitized
    ✅ External put is all-or-nothing (no part files left behind)
    ✅ Missing blobs are NotFound, other I/O failures are BlobStorageError
    ✅ Idempotent delete and keys that try to leave the storage root
"""

import os
from pathlib import Path
from unittest.mock import AsyncMock, patch
from uuid import uuid4

import pytest

from pdfnotes.exceptions import BlobStorageError, NotFoundError
from pdfnotes.models.note import Note
from pdfnotes.services.blob_store import (
    ExternalBlobStore,
    InlineBlobStore,
    StoredPayload,
    create_blob_store,
    sanitize_filename,
)


def _note(**fields) -> Note:
    return Note(id=uuid4(), title="t", subject="s", category="c",
                file_name="a.pdf", file_size=0, **fields)


class TestInlineBlobStore:
    """Bytes kept in the note row."""

    def setup_method(self):
        self.store = InlineBlobStore()

    @pytest.mark.asyncio
    async def test_put_returns_inline_payload(self, sample_pdf_bytes):
        payload = await self.store.put(sample_pdf_bytes, "kalkulus.pdf")

        assert payload.inline_data == sample_pdf_bytes
        assert payload.storage_key is None

    @pytest.mark.asyncio
    async def test_get_returns_row_bytes(self, sample_pdf_bytes):
        note = _note(file_data=sample_pdf_bytes)
        assert await self.store.get(note) == sample_pdf_bytes

    @pytest.mark.asyncio
    async def test_get_missing_payload_raises_not_found(self):
        with pytest.raises(NotFoundError):
            await self.store.get(_note(file_data=None))

    @pytest.mark.asyncio
    async def test_delete_is_noop(self):
        assert await self.store.delete(_note(file_data=b"x")) is True

    @pytest.mark.asyncio
    async def test_health_check(self):
        assert await self.store.health_check() is True


class TestSanitizeFilename:
    """Original names become one safe path component."""

    def test_keeps_safe_names(self):
        assert sanitize_filename("kalkulus-1.pdf") == "kalkulus-1.pdf"

    def test_replaces_spaces_and_symbols(self):
        assert sanitize_filename("Kalkulus 1 (final).pdf") == "Kalkulus_1_final_.pdf"

    def test_drops_directory_parts(self):
        assert sanitize_filename("../../etc/passwd") == "passwd"
        assert sanitize_filename("C:\\Users\\me\\notes.pdf") == "notes.pdf"

    def test_empty_result_falls_back(self):
        assert sanitize_filename("...") == "document.pdf"
        assert sanitize_filename("") == "document.pdf"

    def test_long_names_keep_extension(self):
        cleaned = sanitize_filename("a" * 500 + ".pdf")
        assert len(cleaned) == 200
        assert cleaned.endswith(".pdf")


class TestExternalBlobStore:
    """Bytes kept in files under a storage root."""

    @pytest.fixture(autouse=True)
    def _store(self, temp_storage):
        self.root = Path(temp_storage)
        self.store = ExternalBlobStore(temp_storage)

    @pytest.mark.asyncio
    async def test_put_then_get(self, sample_pdf_bytes):
        payload = await self.store.put(sample_pdf_bytes, "Kalkulus 1.pdf")

        assert payload.inline_data is None
        assert payload.storage_key.endswith("_Kalkulus_1.pdf")
        assert (self.root / payload.storage_key).read_bytes() == sample_pdf_bytes

        note = _note(storage_key=payload.storage_key)
        assert await self.store.get(note) == sample_pdf_bytes

    @pytest.mark.asyncio
    async def test_put_leaves_no_part_files(self, sample_pdf_bytes):
        await self.store.put(sample_pdf_bytes, "a.pdf")
        assert not [p for p in os.listdir(self.root) if p.endswith(".part")]

    @pytest.mark.asyncio
    async def test_same_name_gets_distinct_keys(self, sample_pdf_bytes):
        first = await self.store.put(sample_pdf_bytes, "same.pdf")
        second = await self.store.put(sample_pdf_bytes, "same.pdf")

        assert first.storage_key != second.storage_key
        assert len(list(self.root.iterdir())) == 2

    def test_key_format(self):
        key = self.store.generate_key("notes.pdf")
        timestamp, suffix, name = key.split("_", 2)

        assert timestamp.isdigit()
        assert len(suffix) == 8
        assert name == "notes.pdf"

    @pytest.mark.asyncio
    async def test_put_failure_raises_and_cleans_up(self, sample_pdf_bytes):
        with patch(
            "pdfnotes.services.blob_store.aiofiles.os.replace",
            new=AsyncMock(side_effect=OSError("disk full")),
        ):
            with pytest.raises(BlobStorageError) as exc_info:
                await self.store.put(sample_pdf_bytes, "a.pdf")

        assert exc_info.value.detail == "disk full"
        assert list(self.root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_get_missing_file_raises_not_found(self):
        with pytest.raises(NotFoundError):
            await self.store.get(_note(storage_key="1_deadbeef_gone.pdf"))

    @pytest.mark.asyncio
    async def test_get_without_key_raises_not_found(self):
        with pytest.raises(NotFoundError):
            await self.store.get(_note(storage_key=None))

    @pytest.mark.asyncio
    async def test_get_key_outside_root_raises_not_found(self, tmp_path):
        (tmp_path / "secret.pdf").write_bytes(b"%PDF-secret")
        with pytest.raises(NotFoundError):
            await self.store.get(_note(storage_key="../secret.pdf"))

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(self, sample_pdf_bytes):
        payload = await self.store.put(sample_pdf_bytes, "a.pdf")
        note = _note(storage_key=payload.storage_key)

        assert await self.store.delete(note) is True
        assert await self.store.delete(note) is False
        assert list(self.root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_delete_os_error_raises_blob_storage_error(self, sample_pdf_bytes):
        payload = await self.store.put(sample_pdf_bytes, "a.pdf")
        with patch(
            "pdfnotes.services.blob_store.aiofiles.os.remove",
            new=AsyncMock(side_effect=PermissionError("read-only")),
        ):
            with pytest.raises(BlobStorageError):
                await self.store.delete(_note(storage_key=payload.storage_key))

    @pytest.mark.asyncio
    async def test_discard_removes_blob(self, sample_pdf_bytes):
        payload = await self.store.put(sample_pdf_bytes, "a.pdf")
        await self.store.discard(payload)
        assert list(self.root.iterdir()) == []

    @pytest.mark.asyncio
    async def test_discard_failure_is_logged_not_raised(self, sample_pdf_bytes, caplog):
        payload = await self.store.put(sample_pdf_bytes, "a.pdf")
        with patch(
            "pdfnotes.services.blob_store.aiofiles.os.remove",
            new=AsyncMock(side_effect=PermissionError("read-only")),
        ):
            await self.store.discard(payload)

        assert "Orphaned blob" in caplog.text

    @pytest.mark.asyncio
    async def test_discard_inline_payload_is_ignored(self):
        await self.store.discard(StoredPayload(inline_data=b"x"))

    @pytest.mark.asyncio
    async def test_health_check(self, temp_storage):
        assert await self.store.health_check() is True
        os.rmdir(temp_storage)
        assert await self.store.health_check() is False


class TestCreateBlobStore:

    def test_inline(self):
        assert isinstance(create_blob_store("inline"), InlineBlobStore)

    def test_external(self, temp_storage):
        store = create_blob_store("external", temp_storage)
        assert isinstance(store, ExternalBlobStore)
        assert store.storage_root == Path(temp_storage).resolve()

    def test_unknown_backend(self):
        with pytest.raises(ValueError, match="Unknown storage backend"):
            create_blob_store("s3")

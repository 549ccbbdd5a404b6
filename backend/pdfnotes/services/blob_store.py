"""
PDF Notes Backend - Blob Storage Backends
===========================================

What:  Where the PDF bytes of a note live, behind one interface.
How:   `BlobStore` is the abstract contract; `InlineBlobStore` keeps bytes in
       the note row, `ExternalBlobStore` keeps them in files under a storage
       root. `create_blob_store()` picks one from settings for the whole
       deployment.
Who:   NoteService (upload, payload fetch, delete), health route, lifespan.

Contract shared by both variants:
    put(content, suggested_name) -> StoredPayload
        Atomic from the caller's point of view: stored completely or not at all.
    get(note) -> bytes
        NotFoundError when the payload is absent,
        BlobStorageError when it exists but cannot be read.
    delete(note) -> bool
        Idempotent; False when there was nothing to delete.

External storage layout:
    uploads/
    ├── 1718000000000_3fa2b9c1_kalkulus-1.pdf
    └── 1718000005123_9be01d44_jaringan_komputer.pdf

    {timestamp_ms}_{random hex}_{sanitized original name}; the row stores
    this key only, never a full path.
"""

import logging
import os
import re
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import aiofiles
import aiofiles.os

from pdfnotes.config import settings
from pdfnotes.exceptions import BlobStorageError, NotFoundError
from pdfnotes.models.note import Note

logger = logging.getLogger(__name__)

# Longest sanitized original name kept inside a key
MAX_NAME_LENGTH = 200

_UNSAFE_NAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


@dataclass(frozen=True)
class StoredPayload:
    """Payload reference produced by `put`: inline bytes or an external key."""

    inline_data: Optional[bytes] = None
    storage_key: Optional[str] = None


class BlobStore(ABC):
    """
    Abstract interface for PDF payload storage.

    Implementations:
        - InlineBlobStore: bytes co-located with the note row
        - ExternalBlobStore: bytes in files keyed by a generated name
    """

    kind: str = "abstract"

    @abstractmethod
    async def put(self, content: bytes, suggested_name: str) -> StoredPayload:
        """Store `content` and return the reference to save on the note row."""
        ...

    @abstractmethod
    async def get(self, note: Note) -> bytes:
        """Return the note's PDF bytes."""
        ...

    @abstractmethod
    async def delete(self, note: Note) -> bool:
        """Remove the note's payload; False if it was already gone."""
        ...

    async def discard(self, payload: StoredPayload) -> None:
        """
        Best-effort removal of a payload whose note row was never written.

        Used after a failed metadata write during upload. Failures are logged
        at WARNING; the caller is already reporting an error.
        """
        return None

    async def prepare(self) -> None:
        """Startup hook (create directories, etc.)."""
        return None

    async def health_check(self) -> bool:
        return True


# ══════════════════════════════════════════════════════════════════════════
# Inline Backend
# ══════════════════════════════════════════════════════════════════════════

class InlineBlobStore(BlobStore):
    """
    Keeps PDF bytes in `notes.file_data`.

    put/get/delete never do I/O of their own: the bytes are written, read
    and removed by the same row operations as the metadata.
    """

    kind = "inline"

    async def put(self, content: bytes, suggested_name: str) -> StoredPayload:
        return StoredPayload(inline_data=content)

    async def get(self, note: Note) -> bytes:
        data = note.file_data
        if not data:
            raise NotFoundError(resource="blob", resource_id=str(note.id))
        return data

    async def delete(self, note: Note) -> bool:
        # The bytes leave with the row
        return True


# ══════════════════════════════════════════════════════════════════════════
# External Backend
# ══════════════════════════════════════════════════════════════════════════

def sanitize_filename(name: str) -> str:
    """
    Reduce an uploaded filename to a safe single path component.

    Directory parts are dropped, runs of unsafe characters become "_",
    and an empty result falls back to "document.pdf".

    >>> sanitize_filename("../../Kalkulus 1 (final).pdf")
    'Kalkulus_1_final_.pdf'
    """
    base = name.replace("\\", "/").rsplit("/", 1)[-1]
    cleaned = _UNSAFE_NAME_CHARS.sub("_", base).strip("._")
    return cleaned[-MAX_NAME_LENGTH:] or "document.pdf"


class ExternalBlobStore(BlobStore):
    """
    Keeps PDF bytes in files under a dedicated storage root.

    Lifecycle of a stored file:
        1. put() generates a unique key (timestamp + random suffix + name)
        2. Bytes are written to a hidden ".<key>.part" file in the same directory
        3. The part file is renamed onto the key (os.replace is atomic on one filesystem)
        4. get()/delete() resolve the key strictly inside the storage root

    Concurrent uploads never share a key, so no locking is needed.
    """

    kind = "external"

    def __init__(self, storage_root: Optional[str] = None):
        """
        Args:
            storage_root: Override the configured storage path (used in tests).
        """
        self.storage_root = Path(storage_root or settings.storage_root).resolve()
        self.storage_root.mkdir(parents=True, exist_ok=True)
        logger.info("ExternalBlobStore initialized with storage_root=%s", self.storage_root)

    def generate_key(self, suggested_name: str) -> str:
        """
        Build a collision-free, still readable key.

        Example: 1718000000000_3fa2b9c1_kalkulus-1.pdf
        """
        timestamp_ms = int(time.time() * 1000)
        suffix = uuid.uuid4().hex[:8]
        return f"{timestamp_ms}_{suffix}_{sanitize_filename(suggested_name)}"

    def _path_for(self, key: Optional[str]) -> Path:
        """
        Resolve a stored key to a path directly under the storage root.

        Raises:
            NotFoundError for empty keys and keys that would leave the root.
        """
        if not key or "/" in key or "\\" in key or key in {".", ".."}:
            raise NotFoundError(resource="blob", resource_id=key or None)
        path = (self.storage_root / key).resolve()
        if path.parent != self.storage_root:
            raise NotFoundError(resource="blob", resource_id=key)
        return path

    async def put(self, content: bytes, suggested_name: str) -> StoredPayload:
        """
        Write content under a fresh key.

        Raises:
            BlobStorageError if the write or the final rename fails; the
            partial file is removed before raising.
        """
        key = self.generate_key(suggested_name)
        final_path = self.storage_root / key
        part_path = self.storage_root / f".{key}.part"

        try:
            async with aiofiles.open(part_path, "wb") as f:
                await f.write(content)
            await aiofiles.os.replace(part_path, final_path)
        except OSError as e:
            logger.error("Failed to store blob %s: %s", key, str(e))
            await self._remove_quietly(part_path)
            raise BlobStorageError(
                message="Failed to save uploaded PDF. Please try again.",
                detail=str(e),
                context={"storage_key": key},
            )

        logger.info("Blob stored: %s (%d bytes)", key, len(content))
        return StoredPayload(storage_key=key)

    async def get(self, note: Note) -> bytes:
        path = self._path_for(note.storage_key)
        try:
            async with aiofiles.open(path, "rb") as f:
                return await f.read()
        except FileNotFoundError:
            raise NotFoundError(resource="blob", resource_id=note.storage_key)
        except OSError as e:
            logger.error("Failed to read blob %s: %s", note.storage_key, str(e))
            raise BlobStorageError(
                message="Could not read the stored PDF.",
                detail=str(e),
                context={"storage_key": note.storage_key},
            )

    async def delete(self, note: Note) -> bool:
        return await self.delete_key(note.storage_key)

    async def delete_key(self, key: Optional[str]) -> bool:
        """
        Remove the file stored under `key`.

        Returns False when the key is empty, invalid, or already gone.
        Raises BlobStorageError for other OS errors.
        """
        try:
            path = self._path_for(key)
        except NotFoundError:
            return False

        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            return False
        except OSError as e:
            raise BlobStorageError(
                message="Could not remove the stored PDF.",
                detail=str(e),
                context={"storage_key": key},
            )
        logger.info("Blob removed: %s", key)
        return True

    async def discard(self, payload: StoredPayload) -> None:
        if not payload.storage_key:
            return
        try:
            await self.delete_key(payload.storage_key)
        except BlobStorageError as e:
            logger.warning(
                "Orphaned blob %s left behind after failed upload: %s",
                payload.storage_key,
                e.detail,
            )

    async def _remove_quietly(self, path: Path) -> None:
        try:
            await aiofiles.os.remove(path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Failed to clean up partial file %s: %s", path.name, str(e))

    async def prepare(self) -> None:
        self.storage_root.mkdir(parents=True, exist_ok=True)

    async def health_check(self) -> bool:
        """True when the storage root exists and is writable."""
        if not await aiofiles.os.path.isdir(self.storage_root):
            return False
        return os.access(self.storage_root, os.W_OK)


def create_blob_store(backend: str, storage_root: Optional[str] = None) -> BlobStore:
    """
    Build the deployment's blob store.

    Raises:
        ValueError for an unknown backend name.
    """
    if backend == "inline":
        return InlineBlobStore()
    if backend == "external":
        return ExternalBlobStore(storage_root)
    raise ValueError(f"Unknown storage backend '{backend}'. Expected 'inline' or 'external'.")


# ── Singleton Instance ────────────────────────────────────────────────────
blob_store = create_blob_store(settings.storage_backend, settings.storage_root)

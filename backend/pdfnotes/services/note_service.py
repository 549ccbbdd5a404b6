"""
PDF Notes Backend - Note Service (Business Logic Orchestrator)
================================================================

What:  Central orchestrator for upload, list, payload fetch and delete.
How:   Composes UploadValidator, the configured BlobStore and NoteRepository.
Who:   Called by route handlers; calls the blob store and the metadata store.
When:  For every note operation.

Upload Flow (POST /api/notes/upload):
    ┌──────────┐    ┌─────────────┐    ┌──────────────┐    ┌──────────┐
    │  Upload  │───▶│  Validate   │───▶│  Blob Store  │───▶│  Store   │
    │  (Route) │    │ (Validator) │    │  put()       │    │  (DB)    │
    └──────────┘    └─────────────┘    └──────────────┘    └──────────┘

    On failure at any step:
    - Validation failure → nothing has been written
    - Blob write failure → BlobStorageError, nothing referencing it exists
    - Metadata write/commit failure → the stored blob is discarded
      (best-effort) and DatabaseError propagates; never a silent success

Delete Flow (DELETE /api/notes/{id}):
    lookup row → delete row + commit → remove blob (best-effort, WARNING)
    An unknown id is a successful no-op.

NoteService receives the database session for each call; the blob store
and validator are fixed for the deployment.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from pdfnotes.exceptions import (
    BlobStorageError,
    DatabaseError,
    NotFoundError,
    PayloadMissingError,
)
from pdfnotes.repositories.note_repository import NoteRepository
from pdfnotes.schemas.note import NoteSummary
from pdfnotes.services.blob_store import BlobStore, blob_store
from pdfnotes.services.upload_validator import PDF_CONTENT_TYPE, UploadValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NotePayload:
    """PDF bytes of one note plus what the HTTP layer needs for headers."""

    content: bytes
    file_name: str
    content_type: str = PDF_CONTENT_TYPE

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(frozen=True)
class DeleteOutcome:
    """
    Result of an idempotent delete.

    deleted:       False when there was no such note (still a success)
    blob_warning:  Set when the row was removed but the blob could not be
    """

    deleted: bool
    blob_warning: Optional[str] = None


def _parse_id(note_id: str) -> Optional[UUID]:
    """Path ids that are not UUIDs cannot name a note."""
    try:
        return UUID(str(note_id))
    except ValueError:
        return None


def _to_summary(row) -> NoteSummary:
    return NoteSummary(
        id=row.id,
        title=row.title,
        subject=row.subject,
        category=row.category,
        upload_date=row.uploaded_at,
        file_name=row.file_name,
        file_size=row.file_size,
    )


class NoteService:
    """
    Business logic layer for note operations.

    Responsibilities:
        - upload(): validate → store blob → store metadata
        - list_notes(): summaries, newest first
        - fetch_payload(): bytes for view/download
        - delete_note(): idempotent removal of row and blob

    Error Handling Strategy:
        SQLAlchemy errors become DatabaseError (hides internal details,
        keeps the driver message in `detail`). Validation, not-found and
        blob storage errors propagate with their own type. Nothing is
        retried.
    """

    def __init__(
        self,
        store: Optional[BlobStore] = None,
        validator: Optional[UploadValidator] = None,
    ):
        self.blob_store = store or blob_store
        self.validator = validator or UploadValidator()

    async def upload(
        self,
        db: AsyncSession,
        *,
        content: Optional[bytes],
        content_type: Optional[str],
        file_name: Optional[str],
        title: Optional[str],
        subject: Optional[str],
        category: Optional[str],
        description: Optional[str] = None,
    ) -> NoteSummary:
        """
        Complete workflow: validate → store payload → save metadata → commit.

        Args:
            db: Async database session (injected by FastAPI)
            content: Raw uploaded bytes (None when the file part is missing)
            content_type: Declared Content-Type of the file part
            file_name: Original filename from the upload
            title, subject, category: Required metadata
            description: Optional free text

        Returns:
            NoteSummary of the stored note

        Raises:
            ValidationError: Bad or missing input, before any write
            BlobStorageError: Payload could not be stored
            DatabaseError: Metadata write or commit failed
        """
        upload = self.validator.validate(
            content=content,
            content_type=content_type,
            file_name=file_name,
            title=title,
            subject=subject,
            category=category,
            description=description,
        )

        # ── Step 1: Store payload ─────────────────────────────────────────
        payload = await self.blob_store.put(upload.content, upload.file_name)

        # ── Step 2: Store metadata referencing the payload ────────────────
        try:
            note = await NoteRepository(db).create(
                title=upload.title,
                subject=upload.subject,
                category=upload.category,
                description=upload.description,
                file_name=upload.file_name,
                file_size=upload.file_size,
                file_data=payload.inline_data,
                storage_key=payload.storage_key,
            )
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Failed to save note metadata for %s: %s", upload.file_name, str(e))
            await self.blob_store.discard(payload)
            raise DatabaseError(
                message="Failed to save note. Please try again.",
                detail=str(e),
                context={"error_type": type(e).__name__},
            )

        logger.info(
            "Note uploaded: %s '%s' (%d bytes, backend=%s)",
            note.id,
            note.title,
            note.file_size,
            self.blob_store.kind,
        )
        return _to_summary(note)

    async def list_notes(self, db: AsyncSession) -> List[NoteSummary]:
        """
        All notes, newest first, without payload bytes.

        Query plan:
            SELECT <summary columns> FROM notes ORDER BY uploaded_at DESC
            → idx_notes_uploaded_at

        Raises:
            DatabaseError: Query execution failed (→ 500)
        """
        try:
            rows = await NoteRepository(db).list_summaries()
        except SQLAlchemyError as e:
            logger.error("Database error listing notes: %s", str(e), exc_info=True)
            raise DatabaseError(
                message="Could not retrieve notes. Please try again.",
                detail=str(e),
                context={"error_type": type(e).__name__},
            )
        return [_to_summary(row) for row in rows]

    async def fetch_payload(self, db: AsyncSession, note_id: str) -> NotePayload:
        """
        Resolve a note's PDF bytes for view or download.

        Raises:
            NotFoundError: No note with that id (→ 404)
            PayloadMissingError: Row exists, bytes do not (→ 404, WARNING)
            BlobStorageError / DatabaseError: Storage unreadable (→ 500)
        """
        uid = _parse_id(note_id)
        if uid is None:
            raise NotFoundError(resource="note", resource_id=note_id, message="PDF not found")

        try:
            note = await NoteRepository(db).get(uid, with_payload=True)
        except SQLAlchemyError as e:
            logger.error("Database error fetching note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not retrieve the note. Please try again.",
                detail=str(e),
                context={"note_id": note_id},
            )

        if note is None:
            raise NotFoundError(resource="note", resource_id=note_id, message="PDF not found")

        try:
            content = await self.blob_store.get(note)
        except NotFoundError:
            # Row without bytes: an earlier upload or delete only half completed
            logger.warning(
                "Payload missing for note %s (backend=%s, storage_key=%s)",
                note.id,
                self.blob_store.kind,
                note.storage_key,
            )
            raise PayloadMissingError(note_id=str(note.id))

        return NotePayload(content=content, file_name=note.file_name)

    async def delete_note(self, db: AsyncSession, note_id: str) -> DeleteOutcome:
        """
        Remove a note and its payload. Deleting an unknown id succeeds.

        Raises:
            DatabaseError: Lookup, delete or commit failed (→ 500)
        """
        uid = _parse_id(note_id)
        if uid is None:
            return DeleteOutcome(deleted=False)

        repo = NoteRepository(db)
        try:
            note = await repo.get(uid)
            if note is None:
                return DeleteOutcome(deleted=False)
            deleted = await repo.delete(uid)
            await db.commit()
        except SQLAlchemyError as e:
            logger.error("Database error deleting note %s: %s", note_id, str(e))
            raise DatabaseError(
                message="Could not delete the note. Please try again.",
                detail=str(e),
                context={"note_id": note_id},
            )

        if not deleted:
            # Removed by a concurrent request between lookup and delete
            return DeleteOutcome(deleted=False)

        try:
            await self.blob_store.delete(note)
        except BlobStorageError as e:
            logger.warning(
                "Note %s deleted but its blob %s could not be removed: %s",
                note.id,
                note.storage_key,
                e.detail,
            )
            return DeleteOutcome(
                deleted=True,
                blob_warning="PDF file could not be removed from storage",
            )

        logger.info("Note deleted: %s", note.id)
        return DeleteOutcome(deleted=True)


# ── Singleton Instance ────────────────────────────────────────────────────
note_service = NoteService()


def get_note_service() -> NoteService:
    """FastAPI dependency; overridden in tests to swap the blob backend."""
    return note_service

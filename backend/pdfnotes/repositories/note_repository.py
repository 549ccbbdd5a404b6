"""
PDF Notes Backend - Note Repository (Metadata Store)
======================================================

What:  Create, get, list and delete operations over the `notes` table.
How:   Thin async SQLAlchemy queries bound to the request's AsyncSession.
Who:   NoteService; nothing else writes to `notes`.

Query plans:
    list_summaries: SELECT id, title, subject, category, uploaded_at,
                    file_name, file_size FROM notes ORDER BY uploaded_at DESC
                    → idx_notes_uploaded_at, never touches file_data
    get:            SELECT ... WHERE id = :uuid → primary key lookup
    delete:         DELETE FROM notes WHERE id = :uuid → rowcount tells
                    whether anything was removed

SQLAlchemy errors propagate; NoteService translates them into DatabaseError.
Flushes happen here, commits are left to the caller.
"""

import logging
from typing import Optional, Sequence
from uuid import UUID

from sqlalchemy import Row, delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import undefer

from pdfnotes.models.note import Note

logger = logging.getLogger(__name__)

# Columns returned by list_summaries; the payload reference is excluded
SUMMARY_COLUMNS = (
    Note.id,
    Note.title,
    Note.subject,
    Note.category,
    Note.uploaded_at,
    Note.file_name,
    Note.file_size,
)


class NoteRepository:
    """Metadata store for notes, scoped to one database session."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        *,
        title: str,
        subject: str,
        category: str,
        description: Optional[str],
        file_name: str,
        file_size: int,
        file_data: Optional[bytes] = None,
        storage_key: Optional[str] = None,
    ) -> Note:
        """
        Insert a note row and flush so the id and timestamp are assigned.

        Exactly one of `file_data` / `storage_key` is expected, matching the
        deployment's blob backend.
        """
        note = Note(
            title=title,
            subject=subject,
            category=category,
            description=description,
            file_name=file_name,
            file_size=file_size,
            file_data=file_data,
            storage_key=storage_key,
        )
        self.db.add(note)
        await self.db.flush()
        logger.debug("Note row flushed: %s", note.id)
        return note

    async def get(self, note_id: UUID, with_payload: bool = False) -> Optional[Note]:
        """
        Fetch one note by id, or None.

        with_payload=True also loads the inline `file_data` column.
        """
        query = select(Note).where(Note.id == note_id)
        if with_payload:
            query = query.options(undefer(Note.file_data))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_summaries(self) -> Sequence[Row]:
        """All notes as summary rows, newest first. Each call re-runs the query."""
        result = await self.db.execute(
            select(*SUMMARY_COLUMNS).order_by(desc(Note.uploaded_at))
        )
        return result.all()

    async def delete(self, note_id: UUID) -> bool:
        """Delete one row; False when no row had that id."""
        result = await self.db.execute(
            delete(Note)
            .where(Note.id == note_id)
            .execution_options(synchronize_session=False)
        )
        return (result.rowcount or 0) > 0

    async def count(self) -> int:
        result = await self.db.execute(select(func.count(Note.id)))
        return result.scalar() or 0

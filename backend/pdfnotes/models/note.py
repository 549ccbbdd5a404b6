"""
PDF Notes Backend - Note SQLAlchemy Model
===========================================

What:  ORM model representing the `notes` table.
How:   Inherits from SQLAlchemy's DeclarativeBase; Alembic reads this for migrations.
Who:   Used by NoteRepository for create/get/list/delete and by the blob stores
       to resolve a note's payload.
When:  Instantiated on upload; queried when listing, viewing, downloading, deleting.

Table Design:
    - UUID primary key, generated on insert and never reused
    - file_name: original upload name, used for display and Content-Disposition only
    - file_size: byte count captured at upload, trusted afterwards
    - uploaded_at: UTC creation time, the only ordering key (index DESC)
    - Payload reference, exactly one populated per deployment:
        file_data    inline bytes   (STORAGE_BACKEND=inline)
        storage_key  blob store key (STORAGE_BACKEND=external), never a full path

    file_data is a deferred column: listing and plain lookups never pull
    the PDF bytes; the payload path asks for them explicitly.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import DateTime, Index, Integer, LargeBinary, String, Text, Uuid, text
from sqlalchemy.orm import Mapped, mapped_column

from pdfnotes.database import Base


class Note(Base):
    """
    Represents one uploaded PDF and its metadata.

    Lifecycle:
        1. Created by a successful upload (blob + row as one logical unit)
        2. Read by list, view, download
        3. Deleted by DELETE /api/notes/{id}; there is no update path

    Query Patterns:
        - List notes: SELECT <summary columns> ... ORDER BY uploaded_at DESC
        - Get single note: SELECT ... WHERE id = :uuid
    """

    __tablename__ = "notes"

    # ── Primary Key ───────────────────────────────────────────────────────
    id: Mapped[uuid.UUID] = mapped_column(
        Uuid(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
        comment="Unique identifier, assigned once at upload",
    )

    # ── Metadata ──────────────────────────────────────────────────────────
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    subject: Mapped[str] = mapped_column(String(255), nullable=False)
    category: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True, default=None)

    file_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Original uploaded filename, not used as a storage key",
    )
    file_size: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        comment="Byte length of the uploaded payload",
    )

    # ── Timestamps ────────────────────────────────────────────────────────
    # All storage in UTC; conversion to local time happens in the frontend
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When this note was uploaded (UTC)",
    )

    # ── Payload Reference ─────────────────────────────────────────────────
    file_data: Mapped[bytes | None] = mapped_column(
        LargeBinary,
        nullable=True,
        default=None,
        deferred=True,
        comment="PDF bytes when the inline backend is configured",
    )
    storage_key: Mapped[str | None] = mapped_column(
        String(512),
        nullable=True,
        default=None,
        comment="Blob key under STORAGE_ROOT when the external backend is configured",
    )

    # ── Indexes ───────────────────────────────────────────────────────────
    __table_args__ = (
        Index("idx_notes_uploaded_at", uploaded_at.desc()),
    )

    def __repr__(self) -> str:
        """Developer-friendly string representation for debugging."""
        return (
            f"<Note(id={self.id}, title='{self.title}', "
            f"file_name='{self.file_name}', uploaded_at='{self.uploaded_at}')>"
        )

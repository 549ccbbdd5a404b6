"""Create notes table

Revision ID: 001
Revises: None
Create Date: 2024-06-10 00:00:00.000000+00:00

What:  Creates the `notes` table holding PDF note metadata and the payload
       reference (inline bytes or external storage key).
How:   Portable column types (sa.Uuid, LargeBinary) so the same revision runs
       on PostgreSQL and SQLite.

Rollback: downgrade() drops the table (destructive, inline PDFs included).
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the notes table and its upload-date index."""
    op.create_table(
        "notes",
        # Generated by the application (uuid4) at upload
        sa.Column(
            "id",
            sa.Uuid(as_uuid=True),
            nullable=False,
            comment="Unique identifier, assigned once at upload",
        ),
        sa.Column("title", sa.String(255), nullable=False),
        sa.Column("subject", sa.String(255), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column(
            "file_name",
            sa.String(255),
            nullable=False,
            comment="Original uploaded filename, not used as a storage key",
        ),
        sa.Column(
            "file_size",
            sa.Integer(),
            nullable=False,
            comment="Byte length of the uploaded payload",
        ),
        sa.Column(
            "uploaded_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("CURRENT_TIMESTAMP"),
            nullable=False,
            comment="When this note was uploaded (UTC)",
        ),
        # Payload reference: exactly one is populated, depending on STORAGE_BACKEND
        sa.Column(
            "file_data",
            sa.LargeBinary(),
            nullable=True,
            comment="PDF bytes when the inline backend is configured",
        ),
        sa.Column(
            "storage_key",
            sa.String(512),
            nullable=True,
            comment="Blob key under STORAGE_ROOT when the external backend is configured",
        ),
        sa.PrimaryKeyConstraint("id"),
    )

    # Listing is always ORDER BY uploaded_at DESC
    op.create_index(
        "idx_notes_uploaded_at",
        "notes",
        [sa.text("uploaded_at DESC")],
    )


def downgrade() -> None:
    """Drop the notes table. All notes, and inline PDFs with them, are lost."""
    op.drop_index("idx_notes_uploaded_at", table_name="notes")
    op.drop_table("notes")

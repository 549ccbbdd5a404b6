"""
PDF Notes Backend - Pydantic Request/Response Schemas
=======================================================

What:  Pydantic models defining the API contract between frontend and backend.
How:   FastAPI uses these models to serialize responses and generate the
       OpenAPI documentation. Field names are snake_case in Python and
       camelCase on the wire (`uploadDate`, `fileName`, `fileSize`).
Who:   Used by route handlers as return types and by NoteService as its
       summary type.

Schemas are separate from the SQLAlchemy model: the API never exposes the
payload reference (inline bytes or storage key), only metadata.
"""

import uuid
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base for wire models: camelCase aliases, constructible by field name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Response Models
# ══════════════════════════════════════════════════════════════════════════


class NoteSummary(CamelModel):
    """
    What:  Metadata of one note, without payload bytes.
    Who:   Items of GET /api/notes and the `note` field of the upload response.
    """
    id: uuid.UUID = Field(description="Unique note identifier (UUID)")
    title: str = Field(description="Note title")
    subject: str = Field(description="Subject (course) the note belongs to")
    category: str = Field(description="Category the subject belongs to")
    upload_date: datetime = Field(description="When the note was uploaded (UTC ISO 8601)")
    file_name: str = Field(description="Original uploaded filename")
    file_size: int = Field(description="Size of the uploaded PDF in bytes")


class UploadResponse(CamelModel):
    """
    What:  Response after a PDF is stored.
    Who:   Returned by POST /api/notes/upload with HTTP 200.
    """
    success: bool = Field(default=True, description="Always true on HTTP 200")
    note: NoteSummary = Field(description="Summary of the stored note")


class DeleteResponse(CamelModel):
    """
    What:  Response of DELETE /api/notes/{id}.

    Deleting a note that is already gone returns the same shape with a
    different message. `warning` is present only when the note row was
    removed but its external blob could not be.
    """
    message: str = Field(description="Human-readable outcome")
    warning: Optional[str] = Field(
        default=None,
        description="Set when the stored PDF file could not be removed",
    )


class VocabularyResponse(CamelModel):
    """
    What:  Categories and subjects offered by the upload form and filters.
    Who:   Returned by GET /api/notes/vocabulary.
    """
    categories: List[str] = Field(description="Allowed categories")
    subjects: List[str] = Field(description="Known subjects")
    subject_categories: Dict[str, str] = Field(
        description="Subject -> category lookup table"
    )


# ══════════════════════════════════════════════════════════════════════════
# Error Response Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Error body shared by every endpoint, binary ones included.

    Fields:
        error: Human-readable description for display to users
        code: Machine-readable error code (e.g., "validation_error", "not_found")
        details: Optional extra context (field name, storage diagnostics)
        request_id: Correlation ID for tracing this error in server logs

    Example:
        {
            "error": "Title is required",
            "code": "validation_error",
            "details": {"field": "title"},
            "request_id": "3f2a9c1b"
        }
    """
    error: str = Field(description="Human-readable error description")
    code: Optional[str] = Field(default=None, description="Machine-readable error code")
    details: Optional[Any] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer checks.
    """
    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    storage_backend: str = Field(description="Configured blob backend: inline, external")
    storage: str = Field(description="Blob store status: available, unavailable")
    uptime_seconds: float = Field(description="Seconds since service started")

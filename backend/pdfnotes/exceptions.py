"""
PDF Notes Backend - Custom Exception Hierarchy
================================================

What:  Application-specific exceptions for the note storage subsystem.
How:   Each exception class carries a human-readable message and an optional
       context dict. Global exception handlers (registered in main.py) catch
       these and return JSON error bodies with the matching HTTP status.
Who:   Raised by repositories, blob stores and services; caught by handlers.

Exception Hierarchy:
    PdfNotesError (base)
    ├── ValidationError              → 400 Bad Request (client can fix)
    ├── NotFoundError                → 404 Not Found
    │   └── PayloadMissingError      → 404 Not Found (row exists, bytes do not)
    └── StorageUnavailableError      → 500 Internal Server Error
        ├── DatabaseError            → metadata store failure
        └── BlobStorageError         → blob store I/O failure

Nothing in this hierarchy is retried; each error reaches the client on the
request that caused it.
"""

from typing import Any, Dict, Optional


class PdfNotesError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info for logs and the `details` field
    """

    code = "server_error"

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(PdfNotesError):
    """
    Raised when client input fails validation.

    When:    Missing file, non-PDF content, missing title/subject/category,
             oversized upload, category outside the vocabulary.
    HTTP:    400 Bad Request

    Example response:
        {
            "error": "Only PDF files are allowed",
            "code": "validation_error",
            "details": {"field": "file", "content_type": "image/png"}
        }
    """

    code = "validation_error"

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(PdfNotesError):
    """
    Raised when a requested resource does not exist.

    When:    GET /api/notes/{id}/view for an id with no row, or a blob store
             asked for a key it does not hold.
    HTTP:    404 Not Found
    """

    code = "not_found"

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        if message is None:
            message = f"The requested {resource} was not found"
            if resource_id:
                message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)
        self.resource = resource
        self.resource_id = resource_id


class PayloadMissingError(NotFoundError):
    """
    Raised when a note row exists but its PDF bytes cannot be resolved.

    When:    Inline payload is null, or the external blob is gone from disk.
    HTTP:    404 Not Found, logged at WARNING as a data-integrity issue since
             it points at an earlier partial failure.
    """

    code = "payload_missing"

    def __init__(self, note_id: str, context: Optional[Dict[str, Any]] = None):
        super().__init__(
            resource="note payload",
            resource_id=note_id,
            message="PDF file not found",
            context=context,
        )


class StorageUnavailableError(PdfNotesError):
    """
    Raised when the metadata store or the blob store cannot be read or written.

    HTTP:    500 Internal Server Error, with diagnostic detail in `details`.
    """

    code = "storage_unavailable"

    def __init__(
        self,
        message: str = "Storage is temporarily unavailable",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
        self.detail = detail


class DatabaseError(StorageUnavailableError):
    """
    Raised when a metadata store query, insert, or delete fails.

    When:    Connection lost mid-query, constraint violation, failed commit.
    """

    code = "database_error"

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, detail=detail, context=context)


class BlobStorageError(StorageUnavailableError):
    """
    Raised when blob file operations fail.

    When:    Disk full, permission denied, storage root not writable, I/O error.
    """

    code = "blob_storage_error"

    def __init__(
        self,
        message: str = "File storage operation failed",
        detail: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, detail=detail, context=context)

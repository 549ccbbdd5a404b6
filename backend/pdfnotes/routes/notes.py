"""
PDF Notes Backend - Notes Route Handlers
==========================================

What:  HTTP endpoints for listing, uploading, viewing, downloading and
       deleting notes, plus the vocabulary used by the upload form.
How:   Extracts form fields and path parameters, delegates to NoteService,
       returns JSON metadata or raw PDF bytes.
Who:   Called by the frontend note list, upload form and PDF viewer.

Endpoint Inventory:
    GET    /api/notes                  list (newest first)
    POST   /api/notes/upload           multipart upload
    GET    /api/notes/vocabulary       categories and subjects
    GET    /api/notes/{id}/view        PDF inline
    GET    /api/notes/{id}/download    PDF as attachment
    DELETE /api/notes/{id}             idempotent delete
    GET    /api/notes/view/{id}        older URL shape, same as /{id}/view
    GET    /api/notes/download/{id}    older URL shape, same as /{id}/download

Caching Strategy:
    - Upload/delete: never cached
    - List: not cached (changes with every upload)
    - View: private, 1 hour (payload is immutable after upload)
"""

import logging
import unicodedata
from typing import List, Optional
from urllib.parse import quote

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from pdfnotes.config import settings
from pdfnotes.database import get_db_session
from pdfnotes.schemas.note import (
    DeleteResponse,
    ErrorResponse,
    NoteSummary,
    UploadResponse,
    VocabularyResponse,
)
from pdfnotes.services.note_service import NotePayload, NoteService, get_note_service

logger = logging.getLogger(__name__)

# ── Router Configuration ──────────────────────────────────────────────────
router = APIRouter(prefix="/api", tags=["Notes"])

_PAYLOAD_RESPONSES = {
    200: {"description": "PDF bytes", "content": {"application/pdf": {}}},
    404: {"description": "Note or its PDF not found", "model": ErrorResponse},
    500: {"description": "Server error", "model": ErrorResponse},
}


def content_disposition(disposition: str, file_name: str) -> str:
    """
    Build a Content-Disposition value for the original filename.

    ASCII names go in a quoted `filename`. Other names also get an RFC 5987
    `filename*` with the UTF-8 name, plus an ASCII approximation in
    `filename` for older clients.

    >>> content_disposition("inline", "Kalkulus 1.pdf")
    'inline; filename="Kalkulus 1.pdf"'
    """
    name = file_name.replace("\r", "").replace("\n", "").replace('"', "'").replace("\\", "_")
    try:
        name.encode("ascii")
    except UnicodeEncodeError:
        fallback = (
            unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii").strip()
            or "document.pdf"
        )
        return (
            f'{disposition}; filename="{fallback}"; '
            f"filename*=UTF-8''{quote(name, safe='')}"
        )
    return f'{disposition}; filename="{name}"'


def _pdf_response(payload: NotePayload, disposition: str) -> Response:
    """Raw PDF response; Starlette sets Content-Length from the body."""
    headers = {"Content-Disposition": content_disposition(disposition, payload.file_name)}
    if disposition == "inline":
        headers["Cache-Control"] = "private, max-age=3600"
    return Response(content=payload.content, media_type=payload.content_type, headers=headers)


@router.get(
    "/notes",
    response_model=List[NoteSummary],
    responses={
        200: {"description": "All notes, newest first"},
        500: {"description": "Server error", "model": ErrorResponse},
    },
    summary="List notes",
    description=(
        "Returns the metadata of every stored note ordered by upload date, "
        "newest first. PDF bytes are never included."
    ),
)
async def list_notes(
    response: Response,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> List[NoteSummary]:
    """
    List all notes.

    The frontend filters by title/subject client-side, so there is no
    pagination or server-side search. X-Total-Count carries the count.
    """
    notes = await service.list_notes(db)
    response.headers["X-Total-Count"] = str(len(notes))
    return notes


@router.post(
    "/notes/upload",
    response_model=UploadResponse,
    responses={
        200: {"description": "PDF stored", "model": UploadResponse},
        400: {"description": "Invalid upload", "model": ErrorResponse},
        429: {"description": "Rate limit exceeded", "model": ErrorResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Upload a PDF note",
    description=(
        f"Upload a PDF (max {settings.max_file_size // (1024 * 1024)}MB) with a title, "
        "subject and category. Description is optional."
    ),
)
async def upload_note(
    file: Optional[UploadFile] = File(None, description="PDF file to store"),
    title: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> UploadResponse:
    """
    Store an uploaded PDF with its metadata.

    Every field is optional at the HTTP level so that a missing one is
    reported by the validator as a 400 naming that field.

    Example (curl):
        curl -X POST http://localhost:8000/api/notes/upload \\
             -F "file=@kalkulus.pdf;type=application/pdf" \\
             -F "title=Kalkulus 1" -F "subject=Calculus" -F "category=Matematika"
    """
    # Starlette knows the spooled size before the body is read into memory
    if file is not None and file.size is not None:
        service.validator.validate_size(file.size)

    content = await file.read() if file is not None else None
    note = await service.upload(
        db,
        content=content,
        content_type=file.content_type if file is not None else None,
        file_name=file.filename if file is not None else None,
        title=title,
        subject=subject,
        category=category,
        description=description,
    )
    return UploadResponse(note=note)


@router.get(
    "/notes/vocabulary",
    response_model=VocabularyResponse,
    summary="Categories and subjects",
    description="Category and subject choices offered by the upload form and filters.",
)
async def get_vocabulary() -> VocabularyResponse:
    vocabulary = settings.vocabulary
    return VocabularyResponse(
        categories=list(vocabulary.categories),
        subjects=vocabulary.subjects,
        subject_categories=dict(vocabulary.subject_categories),
    )


@router.get(
    "/notes/{note_id}/view",
    response_class=Response,
    responses=_PAYLOAD_RESPONSES,
    summary="View a PDF inline",
)
async def view_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> Response:
    """
    Serve the PDF for display in the browser.

    Errors are JSON bodies, never a truncated PDF.
    """
    payload = await service.fetch_payload(db, note_id)
    return _pdf_response(payload, "inline")


@router.get(
    "/notes/{note_id}/download",
    response_class=Response,
    responses=_PAYLOAD_RESPONSES,
    summary="Download a PDF",
)
async def download_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> Response:
    payload = await service.fetch_payload(db, note_id)
    return _pdf_response(payload, "attachment")


@router.delete(
    "/notes/{note_id}",
    response_model=DeleteResponse,
    response_model_exclude_none=True,
    responses={
        200: {"description": "Deleted, or already absent", "model": DeleteResponse},
        500: {"description": "Storage failure", "model": ErrorResponse},
    },
    summary="Delete a note",
    description=(
        "Removes the note and its PDF. Deleting an id that does not exist "
        "also returns 200 so clients can retry freely."
    ),
)
async def delete_note(
    note_id: str,
    db: AsyncSession = Depends(get_db_session),
    service: NoteService = Depends(get_note_service),
) -> DeleteResponse:
    outcome = await service.delete_note(db, note_id)
    if not outcome.deleted:
        return DeleteResponse(message="PDF already deleted or not found")
    return DeleteResponse(message="PDF deleted successfully", warning=outcome.blob_warning)


# ── Legacy URL shapes ─────────────────────────────────────────────────────
# Older frontend builds link to /notes/view/{id} and /notes/download/{id}

router.add_api_route(
    "/notes/view/{note_id}",
    view_note,
    methods=["GET"],
    response_class=Response,
    responses=_PAYLOAD_RESPONSES,
    include_in_schema=False,
)
router.add_api_route(
    "/notes/download/{note_id}",
    download_note,
    methods=["GET"],
    response_class=Response,
    responses=_PAYLOAD_RESPONSES,
    include_in_schema=False,
)

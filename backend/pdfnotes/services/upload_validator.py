"""
PDF Notes Backend - Upload Validation
=======================================

What:  Checks an upload before anything is written to storage.
How:   Cheap checks first, each raising ValidationError that names the field:
       1. File present and non-empty
       2. Declared Content-Type is application/pdf
       3. title, subject, category non-empty and within their column lengths
       4. Size within MAX_FILE_SIZE
       5. Leading bytes look like a PDF (libmagic, when VERIFY_PDF_SIGNATURE is on)
       6. Category/subject inside the vocabulary (when ENFORCE_VOCABULARY is on)
Who:   NoteService.upload()
When:  First step of every upload; a failure here means no row and no blob.

The Content-Type check alone trusts the client. The signature check reads the
file header (a PDF starts with "%PDF-"), so a renamed PNG is rejected even
when the browser labels it application/pdf.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional

from pdfnotes.config import settings
from pdfnotes.exceptions import ValidationError
from pdfnotes.models.note import Note
from pdfnotes.vocabulary import Vocabulary

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"

# Bytes handed to libmagic; the PDF header sits at the very start
SIGNATURE_SAMPLE_SIZE = 2048


@dataclass(frozen=True)
class ValidatedUpload:
    """Upload fields after validation: trimmed text, empty description as None."""

    content: bytes
    file_name: str
    title: str
    subject: str
    category: str
    description: Optional[str]

    @property
    def file_size(self) -> int:
        return len(self.content)


def normalize_content_type(content_type: Optional[str]) -> str:
    """'Application/PDF; charset=binary' -> 'application/pdf'."""
    if not content_type:
        return ""
    return content_type.split(";", 1)[0].strip().lower()


class UploadValidator:
    """
    Validates multipart upload fields for a new note.

    Configuration is injected so tests and alternative deployments can run
    with their own vocabulary and limits.
    """

    def __init__(
        self,
        vocabulary: Optional[Vocabulary] = None,
        max_file_size: Optional[int] = None,
        verify_signature: Optional[bool] = None,
        enforce_vocabulary: Optional[bool] = None,
    ):
        self.vocabulary = vocabulary or settings.vocabulary
        self.max_file_size = max_file_size or settings.max_file_size
        self.verify_signature = (
            settings.verify_pdf_signature if verify_signature is None else verify_signature
        )
        self.enforce_vocabulary = (
            settings.enforce_vocabulary if enforce_vocabulary is None else enforce_vocabulary
        )

    def validate_file_present(self, content: Optional[bytes]) -> None:
        if content is None:
            raise ValidationError(message="File is required", field="file")
        if len(content) == 0:
            raise ValidationError(message="Uploaded file is empty", field="file")

    def validate_content_type(self, content_type: Optional[str]) -> None:
        if normalize_content_type(content_type) != PDF_CONTENT_TYPE:
            raise ValidationError(
                message="Only PDF files are allowed",
                field="file",
                context={"content_type": content_type, "allowed": [PDF_CONTENT_TYPE]},
            )

    def validate_required_fields(
        self,
        title: Optional[str],
        subject: Optional[str],
        category: Optional[str],
    ) -> None:
        provided = {"title": title, "subject": subject, "category": category}
        missing: List[str] = [
            name for name, value in provided.items() if not (value or "").strip()
        ]
        if not missing:
            return
        if len(missing) == 1:
            message = f"{missing[0].capitalize()} is required"
        else:
            message = f"Missing required fields: {', '.join(missing)}"
        raise ValidationError(
            message=message,
            field=missing[0],
            context={"missing": missing},
        )

    def validate_lengths(self, **values: str) -> None:
        """
        Reject text longer than its notes column allows.

        Limits come from the mapped column types; a value that fits here
        always fits the row.
        """
        columns = Note.__table__.c
        for name, value in values.items():
            limit = columns[name].type.length
            if limit is not None and len(value) > limit:
                field = "file" if name == "file_name" else name
                label = "File name" if name == "file_name" else name.capitalize()
                raise ValidationError(
                    message=f"{label} must be at most {limit} characters",
                    field=field,
                    context={"max_length": limit, "actual_length": len(value)},
                )

    def validate_size(self, size: int) -> None:
        if size > self.max_file_size:
            max_mb = self.max_file_size / (1024 * 1024)
            raise ValidationError(
                message=(
                    f"File size ({size / (1024 * 1024):.1f}MB) exceeds "
                    f"maximum of {max_mb:.0f}MB."
                ),
                field="file",
                context={"max_size_mb": max_mb, "actual_size": size},
            )

    def validate_signature(self, content: bytes, file_name: str) -> None:
        """
        Inspect the file header with libmagic.

        Raises:
            ValidationError if the detected type is not application/pdf
        """
        if not self.verify_signature:
            return

        import magic

        try:
            detected = magic.from_buffer(content[:SIGNATURE_SAMPLE_SIZE], mime=True)
        except magic.MagicException as e:
            logger.error("PDF signature detection failed for %s: %s", file_name, str(e))
            raise ValidationError(
                message="Could not verify that the file is a PDF. Please try again.",
                field="file",
            )

        if detected != PDF_CONTENT_TYPE:
            raise ValidationError(
                message="File content is not a valid PDF document",
                field="file",
                context={"detected_mime": detected},
            )

    def validate_vocabulary(self, category: str, subject: str) -> None:
        if not self.enforce_vocabulary:
            return
        problem = self.vocabulary.check(category, subject)
        if problem:
            raise ValidationError(
                message=problem,
                field="category" if category not in self.vocabulary.categories else "subject",
            )

    def validate(
        self,
        *,
        content: Optional[bytes],
        content_type: Optional[str],
        file_name: Optional[str],
        title: Optional[str],
        subject: Optional[str],
        category: Optional[str],
        description: Optional[str] = None,
    ) -> ValidatedUpload:
        """
        Run every check in order and return the cleaned upload.

        Raises:
            ValidationError from the first failing check
        """
        self.validate_file_present(content)
        self.validate_content_type(content_type)
        self.validate_required_fields(title, subject, category)

        title, subject, category = title.strip(), subject.strip(), category.strip()
        name = (file_name or "").strip() or "document.pdf"
        self.validate_lengths(title=title, subject=subject, category=category, file_name=name)

        self.validate_size(len(content))
        self.validate_signature(content, name)
        self.validate_vocabulary(category, subject)

        return ValidatedUpload(
            content=content,
            file_name=name,
            title=title,
            subject=subject,
            category=category,
            description=(description or "").strip() or None,
        )

"""
PDF Notes Backend - Upload Validator Unit Tests
=================================================

What:  Tests for UploadValidator (presence, content type, fields, size,
       PDF signature, vocabulary).
How:   Pure in-memory checks; the libmagic test is skipped when
       python-magic is not importable.

Test Strategy:
    ✅ Missing/empty file rejected
    ✅ Only application/pdf accepted (parameters and case ignored)
    ✅ Missing title/subject/category named in the error
    ✅ Text longer than its column rejected
    ✅ Size boundary at max_file_size
    ✅ Signature check accepts PDF bytes and rejects anything else
    ✅ Vocabulary enforcement when switched on
    ✅ Checks run in order; the first failure wins
"""

import pytest

from pdfnotes.exceptions import ValidationError
from pdfnotes.services.upload_validator import UploadValidator, normalize_content_type
from pdfnotes.vocabulary import DEFAULT_VOCABULARY

MB = 1024 * 1024


def _fields(**overrides):
    fields = {
        "content": b"%PDF-1.4\n" + b"0" * 100,
        "content_type": "application/pdf",
        "file_name": "kalkulus.pdf",
        "title": "Kalkulus 1",
        "subject": "Calculus",
        "category": "Matematika",
        "description": None,
    }
    fields.update(overrides)
    return fields


class TestContentType:

    def setup_method(self):
        self.validator = UploadValidator(max_file_size=MB, verify_signature=False)

    def test_pdf_accepted(self):
        self.validator.validate_content_type("application/pdf")

    def test_parameters_and_case_ignored(self):
        self.validator.validate_content_type("Application/PDF; charset=binary")

    @pytest.mark.parametrize("content_type", ["image/png", "text/plain", "", None])
    def test_other_types_rejected(self, content_type):
        with pytest.raises(ValidationError, match="Only PDF files are allowed") as exc_info:
            self.validator.validate_content_type(content_type)
        assert exc_info.value.field == "file"

    def test_normalize(self):
        assert normalize_content_type(" application/PDF ;x=1") == "application/pdf"
        assert normalize_content_type(None) == ""


class TestRequiredFields:

    def setup_method(self):
        self.validator = UploadValidator(max_file_size=MB, verify_signature=False)

    def test_single_missing_field_named(self):
        with pytest.raises(ValidationError, match="Subject is required") as exc_info:
            self.validator.validate_required_fields("Kalkulus 1", "", "Matematika")
        assert exc_info.value.field == "subject"

    def test_whitespace_counts_as_missing(self):
        with pytest.raises(ValidationError, match="Title is required"):
            self.validator.validate_required_fields("   ", "Calculus", "Matematika")

    def test_several_missing_fields_listed(self):
        with pytest.raises(ValidationError, match="title, category") as exc_info:
            self.validator.validate_required_fields(None, "Calculus", None)
        assert exc_info.value.context["missing"] == ["title", "category"]


class TestSizeLimit:

    def setup_method(self):
        self.validator = UploadValidator(max_file_size=MB, verify_signature=False)

    def test_at_limit_passes(self):
        self.validator.validate_size(MB)

    def test_over_limit_rejected(self):
        with pytest.raises(ValidationError, match="exceeds maximum"):
            self.validator.validate_size(MB + 1)


class TestFieldLengths:

    def setup_method(self):
        self.validator = UploadValidator(max_file_size=MB, verify_signature=False)

    def test_at_column_length_passes(self):
        upload = self.validator.validate(**_fields(title="x" * 255, category="c" * 100))
        assert len(upload.title) == 255

    def test_long_title_rejected(self):
        with pytest.raises(ValidationError, match="at most 255 characters") as exc_info:
            self.validator.validate(**_fields(title="x" * 300))
        assert exc_info.value.field == "title"
        assert exc_info.value.context["max_length"] == 255
        assert exc_info.value.context["actual_length"] == 300

    def test_long_category_rejected(self):
        with pytest.raises(ValidationError, match="Category must be at most 100") as exc_info:
            self.validator.validate(**_fields(category="c" * 101))
        assert exc_info.value.field == "category"

    def test_long_file_name_reported_on_file(self):
        with pytest.raises(ValidationError, match="File name") as exc_info:
            self.validator.validate(**_fields(file_name="n" * 252 + ".pdf"))
        assert exc_info.value.field == "file"

    def test_length_measured_after_trimming(self):
        upload = self.validator.validate(**_fields(subject="  " + "s" * 255 + "  "))
        assert upload.subject == "s" * 255


class TestValidate:

    def setup_method(self):
        self.validator = UploadValidator(max_file_size=MB, verify_signature=False)

    def test_returns_trimmed_fields(self):
        upload = self.validator.validate(**_fields(
            title="  Kalkulus 1 ",
            subject=" Calculus",
            category="Matematika  ",
            description="   ",
        ))

        assert upload.title == "Kalkulus 1"
        assert upload.subject == "Calculus"
        assert upload.category == "Matematika"
        assert upload.description is None
        assert upload.file_size == 109

    def test_missing_file(self):
        with pytest.raises(ValidationError, match="File is required"):
            self.validator.validate(**_fields(content=None))

    def test_empty_file(self):
        with pytest.raises(ValidationError, match="empty"):
            self.validator.validate(**_fields(content=b""))

    def test_missing_file_name_defaults(self):
        upload = self.validator.validate(**_fields(file_name=None))
        assert upload.file_name == "document.pdf"

    def test_content_type_checked_before_fields(self):
        with pytest.raises(ValidationError, match="Only PDF files are allowed"):
            self.validator.validate(**_fields(content_type="image/png", title=""))

    def test_fields_checked_before_size(self):
        with pytest.raises(ValidationError, match="Title is required"):
            self.validator.validate(**_fields(content=b"0" * (MB + 1), title=""))

    def test_unknown_category_allowed_when_not_enforced(self):
        upload = self.validator.validate(**_fields(category="Sejarah"))
        assert upload.category == "Sejarah"


class TestVocabulary:

    def setup_method(self):
        self.validator = UploadValidator(
            vocabulary=DEFAULT_VOCABULARY,
            max_file_size=MB,
            verify_signature=False,
            enforce_vocabulary=True,
        )

    def test_known_pair_accepted(self):
        self.validator.validate(**_fields())

    def test_unknown_category_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(**_fields(category="Sejarah"))
        assert exc_info.value.field == "category"

    def test_subject_in_wrong_category_rejected(self):
        with pytest.raises(ValidationError) as exc_info:
            self.validator.validate(**_fields(category="Ekonomi"))
        assert exc_info.value.field == "subject"


class TestSignature:

    def test_disabled_skips_check(self):
        validator = UploadValidator(max_file_size=MB, verify_signature=False)
        validator.validate_signature(b"not a pdf at all", "fake.pdf")

    def test_non_pdf_bytes_rejected(self):
        pytest.importorskip("magic")
        validator = UploadValidator(max_file_size=MB, verify_signature=True)
        png = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64

        with pytest.raises(ValidationError, match="not a valid PDF"):
            validator.validate(**_fields(content=png))

    def test_pdf_bytes_accepted(self):
        pytest.importorskip("magic")
        validator = UploadValidator(max_file_size=MB, verify_signature=True)
        pdf = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n1 0 obj\n<< /Type /Catalog >>\nendobj\n%%EOF\n"

        upload = validator.validate(**_fields(content=pdf))

        assert upload.content == pdf

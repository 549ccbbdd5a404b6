"""
PDF Notes Backend - Test Configuration (conftest.py)
======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.
Who:   Used by all test files in the tests/ directory.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── temp_storage: Temporary directory for external blob tests
    ├── sample_pdf_bytes: Small byte string starting with a PDF header
    ├── make_pdf: Factory for PDF-looking payloads of an exact size
    ├── sample_note: Note instance with summary fields populated
    └── test_client: HTTPX AsyncClient against a fresh SQLite database
"""

import os
import tempfile
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Must run BEFORE any pdfnotes import: settings, engine and blob store are
# module-level singletons built from these values
_TEST_DIR = tempfile.mkdtemp(prefix="pdfnotes_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TEST_DIR}/test.db"
os.environ["STORAGE_BACKEND"] = "inline"
os.environ["STORAGE_ROOT"] = os.path.join(_TEST_DIR, "uploads")
os.environ["VERIFY_PDF_SIGNATURE"] = "false"
os.environ["RATE_LIMIT_REQUESTS"] = "10000"
os.environ["LOG_LEVEL"] = "WARNING"

PDF_HEADER = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_fetch(mock_db_session):
            mock_db_session.execute.return_value.scalar_one_or_none.return_value = note
            payload = await service.fetch_payload(mock_db_session, str(note.id))
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest.fixture
def temp_storage(tmp_path):
    """A fresh storage root for each test (pytest cleans it up)."""
    storage_dir = tmp_path / "storage"
    storage_dir.mkdir()
    return str(storage_dir)


@pytest.fixture
def make_pdf():
    """
    Factory for PDF-looking payloads of an exact byte length.

    Not a renderable document; enough for content-type and size handling.
    """
    def _make(size: int = 1024) -> bytes:
        trailer = b"\n%%EOF\n"
        filler = max(size - len(PDF_HEADER) - len(trailer), 0)
        return (PDF_HEADER + b"0" * filler + trailer)[:size]

    return _make


@pytest.fixture
def sample_pdf_bytes(make_pdf):
    return make_pdf(2048)


@pytest.fixture
def sample_note(sample_pdf_bytes):
    """A Note as the repository would return it, inline payload loaded."""
    from pdfnotes.models.note import Note

    return Note(
        id=uuid4(),
        title="Kalkulus 1",
        subject="Calculus",
        category="Matematika",
        description="Limit dan turunan",
        file_name="kalkulus-1.pdf",
        file_size=len(sample_pdf_bytes),
        uploaded_at=datetime.now(timezone.utc),
        file_data=sample_pdf_bytes,
        storage_key=None,
    )


@pytest_asyncio.fixture
async def test_client():
    """
    Async HTTP client wired to the FastAPI app and a fresh SQLite schema.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from pdfnotes.database import Base, engine
    from pdfnotes.main import app
    from pdfnotes.models import note  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
    await engine.dispose()

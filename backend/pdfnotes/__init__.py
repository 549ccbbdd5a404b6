"""
PDF Notes Backend - Application Package
=========================================

What: Personal PDF note manager: upload, list, view, download, delete.
Who:  Imported by uvicorn (`pdfnotes.main:app`), Alembic and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │   Services (NoteService, Validator) │  ← Orchestration, validation
    ├──────────────────┬──────────────────┤
    │  NoteRepository  │    BlobStore     │  ← Metadata / PDF bytes
    ├──────────────────┴──────────────────┤
    │     Models, Schemas, Database       │  ← SQLAlchemy ORM + Pydantic
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"

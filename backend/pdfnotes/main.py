"""
PDF Notes Backend - FastAPI Application Factory
=================================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn pdfnotes.main:app).
When:  Once at server startup; the returned app handles all subsequent requests.

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware Chain:                                       │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────┐ ┌──────────┐  │
    │  │  Rate Limit  │→│ Req ID   │→│ Logging │→│   CORS   │  │
    │  └──────────────┘ └──────────┘ └─────────┘ └──────────┘  │
    │                                                          │
    │  Routes:                                                 │
    │  ┌───────────────────────────────┐ ┌──────────────────┐  │
    │  │ /api/notes (list, upload,     │ │ GET /health      │  │
    │  │ view, download, delete)       │ │                  │  │
    │  └───────────────────────────────┘ └──────────────────┘  │
    │                                                          │
    │  Exception Handlers:                                     │
    │  ┌────────────────────────────────────────────────────┐  │
    │  │ Validation→400 │ NotFound→404 │ Storage→500        │  │
    │  └────────────────────────────────────────────────────┘  │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:
    1. Initialize logging
    2. Validate configuration
    3. Prepare the blob store (external: create the storage root)
    4. Create tables when DATABASE_AUTO_CREATE is on

    Shutdown:
    1. Dispose database engine (close all connections)

No response compression middleware: PDF responses must go out with the
exact Content-Length of the stored file.
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pdfnotes import __version__
from pdfnotes.config import settings
from pdfnotes.database import create_tables, dispose_engine
from pdfnotes.exceptions import (
    NotFoundError,
    PayloadMissingError,
    PdfNotesError,
    StorageUnavailableError,
    ValidationError,
)
from pdfnotes.middleware.logging import RequestLoggingMiddleware
from pdfnotes.middleware.rate_limit import RateLimitMiddleware
from pdfnotes.middleware.request_id import RequestIDMiddleware, request_id_var
from pdfnotes.routes import health, notes
from pdfnotes.services.blob_store import blob_store

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Output: stdout (Docker captures it).
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("python_multipart").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Manage application lifecycle: startup and shutdown procedures.

    Startup sequence:
        1. Setup logging
        2. Validate configuration (logged, server still starts for /health)
        3. Prepare blob store
        4. Create tables if configured

    Shutdown sequence:
        1. Dispose database engine
    """
    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging()
    logger.info("=" * 60)
    logger.info("PDF Notes Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        logger.error("Fix the configuration and restart the server.")

    await blob_store.prepare()
    logger.info("Blob storage backend: %s", blob_store.kind)
    if blob_store.kind == "external":
        logger.info("Storage root: %s", blob_store.storage_root)

    if settings.database_auto_create:
        await create_tables()
        logger.info("Database tables ensured (DATABASE_AUTO_CREATE)")

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("API docs: http://%s:%d/docs", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("PDF Notes Backend shutting down...")
    await dispose_engine()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def error_body(
    message: str,
    code: Optional[str] = None,
    details: Any = None,
) -> Dict[str, Any]:
    """JSON error shape shared by every endpoint: `error` is always present."""
    return {
        "error": message,
        "code": code,
        "details": details,
        "request_id": request_id_var.get("") or None,
    }


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers for consistent error responses.

    Handler hierarchy:
        ValidationError          → 400 Bad Request (client can fix the input)
        RequestValidationError   → 400 Bad Request (malformed form data)
        PayloadMissingError      → 404 Not Found, WARNING (integrity issue)
        NotFoundError            → 404 Not Found
        StorageUnavailableError  → 500 with diagnostic details
        PdfNotesError (base)     → 500
        StarletteHTTPException   → status preserved (unknown route, 405)
        Exception (fallback)     → 500, stack trace logged only
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        rid = request_id_var.get("")
        logger.warning("[%s] Validation error: %s", rid, exc.message)
        return JSONResponse(
            status_code=400,
            content=error_body(exc.message, exc.code, exc.context or None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation_error(request: Request, exc: RequestValidationError):
        """Malformed request that FastAPI rejected before the handler ran."""
        rid = request_id_var.get("")
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
        message = f"Invalid value for {field}" if field else "Invalid request"
        logger.warning("[%s] Request validation error: %s", rid, message)
        return JSONResponse(
            status_code=400,
            content=error_body(
                message,
                ValidationError.code,
                [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors],
            ),
        )

    @app.exception_handler(PayloadMissingError)
    async def handle_payload_missing(request: Request, exc: PayloadMissingError):
        rid = request_id_var.get("")
        logger.warning(
            "[%s] Data integrity: note %s has no retrievable PDF",
            rid,
            exc.resource_id,
        )
        return JSONResponse(
            status_code=404,
            content=error_body(exc.message, exc.code),
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return JSONResponse(
            status_code=404,
            content=error_body(exc.message, exc.code),
        )

    @app.exception_handler(StorageUnavailableError)
    async def handle_storage_error(request: Request, exc: StorageUnavailableError):
        """Metadata or blob store failure; the driver/OS message goes in details."""
        rid = request_id_var.get("")
        logger.error(
            "[%s] Storage error (%s): %s | detail=%s | context=%s",
            rid,
            exc.code,
            exc.message,
            exc.detail,
            exc.context,
        )
        return JSONResponse(
            status_code=500,
            content=error_body(exc.message, exc.code, exc.detail),
        )

    @app.exception_handler(PdfNotesError)
    async def handle_app_error(request: Request, exc: PdfNotesError):
        rid = request_id_var.get("")
        logger.error("[%s] Application error: %s | Context: %s", rid, exc.message, exc.context)
        return JSONResponse(
            status_code=500,
            content=error_body(exc.message, exc.code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        """Framework-level errors (404 route, 405 method) in the same JSON shape."""
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(str(exc.detail), "http_error"),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        """
        Catch-all for truly unexpected errors.

        The stack trace is logged server-side only, never returned.
        """
        rid = request_id_var.get("")
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=True)
        return JSONResponse(
            status_code=500,
            content=error_body(
                "An unexpected error occurred. Please try again.",
                "internal_server_error",
            ),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="PDF Notes API",
        description=(
            "Personal PDF note manager. Upload PDFs with a title, subject and "
            "category, then list, view, download and delete them."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Register Middleware ───────────────────────────────────────────────
    # Executes in reverse order of addition: RateLimit → RequestID → Logging → CORS

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=[
            "X-Request-ID",
            "X-Total-Count",
            "Retry-After",
            "Content-Disposition",
        ],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(RateLimitMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app)

    # ── Register Routes ───────────────────────────────────────────────────
    app.include_router(notes.router)
    app.include_router(health.router)

    return app


# ── Application Instance ─────────────────────────────────────────────────
app = create_app()

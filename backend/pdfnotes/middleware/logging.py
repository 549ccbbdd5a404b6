"""
PDF Notes Backend - Request Logging Middleware
================================================

What:  One access log line per HTTP request.
How:   Times the request, then logs method, path, status, duration, request
       id and client IP on the `pdfnotes.access` logger. Structured fields
       are passed via `extra` for JSON formatters.
Who:   Applied to every request via Starlette middleware.
When:  Inside RequestIDMiddleware, so the request id is already set.

Example line:
    2024-06-10T12:00:00 [INFO] pdfnotes.access: POST /api/notes/upload 200 48.3ms [3fa2b9c1] from 127.0.0.1

Request bodies (PDF bytes, form fields) are never logged.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from pdfnotes.middleware.request_id import request_id_var

logger = logging.getLogger("pdfnotes.access")

# Probed by Docker every few seconds
QUIET_PATHS = {"/health"}


def _level_for(status: int) -> int:
    """5xx → ERROR, 4xx → WARNING, anything else → INFO."""
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs each request with its outcome and duration.

    Typical durations:
        - GET /api/notes: 5-30ms
        - POST /api/notes/upload: dominated by body size and blob write
        - GET /api/notes/{id}/view: dominated by payload size
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        path = request.url.path
        if path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        status = response.status_code

        logger.log(
            _level_for(status),
            "%s %s %d %.1fms [%s] from %s",
            request.method,
            path,
            status,
            duration_ms,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response

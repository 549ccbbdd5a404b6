"""
PDF Notes Backend - Request ID Middleware
===========================================

What:  Tags each request with a short correlation id.
How:   Reuses the client's X-Request-ID header or generates one, stores it in
       a ContextVar for loggers and error handlers, echoes it in the response.
Who:   Applied to every request via Starlette middleware.

Error bodies carry the same id as `request_id`, so a failed upload reported
by a user can be matched to its log lines.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests in one thread each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

REQUEST_ID_HEADER = "X-Request-ID"


def new_request_id() -> str:
    """8 hex characters; enough to correlate within a log window."""
    return uuid.uuid4().hex[:8]


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Assigns a request id and returns it in the X-Request-ID header.

    Behavior:
        1. Client sent X-Request-ID: use it (frontend-initiated tracing)
        2. Otherwise: generate a new id
        3. Expose it as request_id_var and request.state.request_id
    """

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get(REQUEST_ID_HEADER) or new_request_id()

        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = rid
        return response

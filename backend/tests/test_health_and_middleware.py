"""
PDF Notes Backend - Health Check & Middleware Tests
=====================================================

What:  Tests for GET /health and the rate limiting middleware.
How:   Health goes through the real app; the rate limiter is mounted on a
       bare Starlette app with a tiny limit so it trips quickly.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from starlette.applications import Starlette
from starlette.responses import PlainTextResponse
from starlette.routing import Route

from pdfnotes.middleware.rate_limit import RateLimitMiddleware


class TestHealth:

    @pytest.mark.asyncio
    async def test_health_reports_storage(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage_backend"] == "inline"
        assert body["storage"] == "available"
        assert body["uptime_seconds"] >= 0


def _limited_app(max_requests: int) -> Starlette:
    async def ok(request):
        return PlainTextResponse("ok")

    app = Starlette(routes=[Route("/ping", ok), Route("/health", ok)])
    app.add_middleware(RateLimitMiddleware, max_requests=max_requests, window_seconds=60)
    return app


class TestRateLimit:

    @pytest.mark.asyncio
    async def test_requests_over_limit_get_429(self):
        transport = ASGITransport(app=_limited_app(max_requests=2))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            assert (await client.get("/ping")).status_code == 200
            assert (await client.get("/ping")).status_code == 200
            response = await client.get("/ping")

        assert response.status_code == 429
        assert int(response.headers["retry-after"]) > 0
        body = response.json()
        assert body["code"] == "rate_limit_exceeded"
        assert "Too many requests" in body["error"]

    @pytest.mark.asyncio
    async def test_health_is_never_limited(self):
        transport = ASGITransport(app=_limited_app(max_requests=1))
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            statuses = [(await client.get("/health")).status_code for _ in range(5)]

        assert statuses == [200] * 5

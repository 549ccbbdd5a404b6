# Middleware package init
"""
PDF Notes Backend - Middleware Package
========================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [Rate Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Rate Limit rejects abusive clients before any other work
    2. Request ID sets the correlation id used by logs and error bodies
    3. Logging records status and duration once the response exists
    4. CORS answers preflight requests from the frontend origin
"""

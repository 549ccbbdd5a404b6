# Routes package init
"""
PDF Notes Backend - API Routes Package
========================================

What:  HTTP route handlers that accept requests and return responses.
How:   Each route module handles a specific resource.

Route Inventory:
    - notes.py:   /api/notes...   (list, upload, view, download, delete, vocabulary)
    - health.py:  GET /health     (service health check)

Routes stay thin: they pull data out of the request, call NoteService,
and shape the response (status code, headers, raw bytes or JSON).
Business rules live in the services.
"""

# Middleware package init
"""
NoteGist Backend — Middleware Package
=======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (order matters!):
    Request → [Body Limit] → [Request ID] → [Logging] → [CORS] → Route Handler

    1. Body Limit FIRST: oversized bodies are refused before anything is read
    2. Request ID: correlation ID for logs and error responses
    3. Logging: method, path, status and duration with the request ID
    4. CORS: Applied by FastAPI's CORSMiddleware (handles preflight)
"""

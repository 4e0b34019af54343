# Routes package init
"""
NoteGist Backend — API Routes Package
=======================================

What:  HTTP route handlers that accept requests and return responses.

Route Inventory:
    - summarize.py:  POST /api/summarize   (authenticated notes summary)
    - health.py:     GET  /api/health      (liveness, no auth)
                     GET  /health          (alias for probes)

Design Principle:
    Routes are THIN: authenticate, validate, hand the text to the
    orchestrator, shape the response. Failures are raised as GatewayError
    subclasses and rendered by the handlers registered in main.py.
"""

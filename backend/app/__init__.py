"""
NoteGist Backend — Application Package Initializer
====================================================

What: Marks the `app` directory as a Python package.
Who:  Imported by uvicorn (app.main:app) and pytest.

Architecture Note:
    ┌─────────────────────────────────────┐
    │           Routes (API Layer)        │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │  Services (verifier, validator,     │  ← Auth, validation,
    │  orchestrator, provider adapters)   │    provider fallback
    ├─────────────────────────────────────┤
    │   Schemas & Exceptions (Contract)   │  ← Pydantic models, error kinds
    └─────────────────────────────────────┘

    The gateway is stateless per request: nothing is persisted, and the only
    process-wide objects (settings, verifier, provider chain) are read-only
    after startup.
"""

__version__ = "1.0.0"

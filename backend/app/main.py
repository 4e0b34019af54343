"""
NoteGist Backend — FastAPI Application Factory
================================================

What:  Creates and configures the FastAPI application instance.
Why:   Centralizes app configuration, middleware registration, route mounting,
       and lifecycle management in one place.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn app.main:app).

Application Architecture:
    ┌───────────────────────────────────────────────────────┐
    │                    FastAPI App                        │
    │                                                       │
    │  Middleware Chain:                                    │
    │  ┌──────────────┐ ┌──────────┐ ┌─────────┐ ┌──────┐   │
    │  │  Body Limit  │→│ Req ID   │→│ Logging │→│ CORS │   │
    │  └──────────────┘ └──────────┘ └─────────┘ └──────┘   │
    │                                                       │
    │  Routes:                                              │
    │  ┌──────────────────────┐ ┌────────────────────────┐  │
    │  │ POST /api/summarize  │ │ GET /api/health        │  │
    │  └──────────────────────┘ └────────────────────────┘  │
    │                                                       │
    │  Exception Handlers (via error classifier):           │
    │  ┌─────────────────────────────────────────────────┐  │
    │  │ GatewayError→kind/status │ Exception→500        │  │
    │  └─────────────────────────────────────────────────┘  │
    └───────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging, configuration report, build verifier and provider chain
    Shutdown: log only (no pooled resources to release)
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app import __version__
from app.config import settings
from app.exceptions import GatewayError, ValidationError
from app.middleware.body_limit import BodySizeLimitMiddleware
from app.middleware.logging import RequestLoggingMiddleware
from app.middleware.request_id import RequestIDMiddleware, request_id_var
from app.routes import health, summarize
from app.services.error_classifier import classify
from app.services.orchestrator import get_orchestrator
from app.services.token_verifier import get_token_verifier

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    Format: %(asctime)s [%(levelname)s] %(name)s: %(message)s
    Called once during app startup, before anything else logs.
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # These log every HTTP round-trip to the providers and the JWKS endpoint
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Startup:
        1. Setup logging
        2. Report missing configuration (the server still starts: health
           checks keep working and requests get demo answers or 401s)
        3. Build the token verifier and provider chain once, so the first
           request does not pay for it
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteGist Backend %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))

    get_token_verifier()
    get_orchestrator()

    logger.info("Server ready at http://%s:%d", settings.backend_host, settings.backend_port)
    logger.info("=" * 60)

    yield

    logger.info("NoteGist Backend shutting down...")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "") or request_id_var.get("")


def register_exception_handlers(app: FastAPI) -> None:
    """
    Register global exception handlers that render ClassifiedError bodies.

    Handler hierarchy:
        GatewayError            → status/kind carried by the exception
        RequestValidationError  → 400 validation_error
        Exception (fallback)    → 500 internal_error, stack trace logged only

    Security: Exception handlers NEVER expose internal details (stack traces,
    vendor error text, keys) in the API response. Details are logged server-side.
    """

    @app.exception_handler(GatewayError)
    async def handle_gateway_error(request: Request, exc: GatewayError):
        rid = _request_id(request)
        error = classify(exc)
        if error.http_status >= 500:
            logger.error("[%s] %s: %s | Context: %s", rid, error.kind.value, exc.message, exc.context)
        else:
            logger.warning(
                "[%s] %s: %s%s",
                rid,
                error.kind.value,
                exc.message,
                f" ({exc.detail})" if exc.detail else "",
            )
        return JSONResponse(status_code=error.http_status, content=error.to_response(rid))

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        rid = _request_id(request)
        errors = exc.errors()
        error = classify(ValidationError(detail=errors[0].get("msg") if errors else None))
        return JSONResponse(status_code=error.http_status, content=error.to_response(rid))

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        # Runs in Starlette's outermost ServerErrorMiddleware, outside
        # RequestIDMiddleware and CORSMiddleware: the ID header is set here,
        # CORS headers are not added to 500 responses.
        rid = _request_id(request)
        logger.error("[%s] Unexpected error: %s", rid, str(exc), exc_info=exc)
        error = classify(exc)
        return JSONResponse(
            status_code=error.http_status,
            content=error.to_response(rid),
            headers={"X-Request-ID": rid} if rid else None,
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Middleware executes in REVERSE order of addition: adding CORS → Logging →
    RequestID → BodyLimit makes BodyLimit run first.
    """
    app = FastAPI(
        title="NoteGist API",
        description=(
            "Authenticated notes summarization gateway. Summaries come from the first "
            "configured AI provider that answers (Gemini, then OpenAI), with a "
            "deterministic demo answer when none does."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)
    app.add_middleware(BodySizeLimitMiddleware)

    register_exception_handlers(app)

    app.include_router(summarize.router)
    app.include_router(health.router)

    return app


# uvicorn expects `app.main:app` to be importable
app = create_app()

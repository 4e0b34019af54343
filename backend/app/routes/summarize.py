"""
NoteGist Backend — Summarize Route Handler
============================================

What:  Handles POST /api/summarize.
Why:   Entry point for the core feature: notes in, five bullet points out.
How:   validate token → validate body → orchestrate providers → respond.

Request Flow:
    1. TokenVerifier checks the bearer token (401 on any failure)
    2. The raw body is decoded and validated (400 on any failure)
    3. SummaryOrchestrator walks the provider chain (200, or 429/400/503)
    4. SummarizeResponse is returned with the answering provider's tag

Steps 1 and 2 end the request before any provider is called.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Header, Request

from app.config import settings
from app.exceptions import PayloadTooLargeError
from app.schemas.summary import ErrorResponse, SummarizeRequest, SummarizeResponse
from app.services.input_validator import parse_json_body, validate_summarize_payload
from app.services.orchestrator import SummaryOrchestrator, get_orchestrator
from app.services.token_verifier import TokenVerifier, get_token_verifier

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["Summarize"])


async def read_limited_body(request: Request, limit: int) -> bytes:
    """
    Read the request body, counting bytes as they arrive.

    Chunked uploads carry no Content-Length, so BodySizeLimitMiddleware
    cannot see them; reading stops at the first chunk that crosses `limit`.
    """
    body = bytearray()
    async for chunk in request.stream():
        body.extend(chunk)
        if len(body) > limit:
            logger.warning("Rejected streamed body: more than %d bytes", limit)
            raise PayloadTooLargeError(limit=limit, received=len(body))
    return bytes(body)


@router.post(
    "/summarize",
    response_model=SummarizeResponse,
    responses={
        200: {"description": "Summary (real provider or demo)", "model": SummarizeResponse},
        400: {"description": "Invalid body or misconfigured provider", "model": ErrorResponse},
        401: {"description": "Missing or invalid bearer token", "model": ErrorResponse},
        429: {"description": "Provider quota exceeded", "model": ErrorResponse},
        500: {"description": "Unexpected server error", "model": ErrorResponse},
    },
    summary="Summarize notes into five bullet points",
    description=(
        "Summarizes free-text notes (1 to 20,000 characters) with the first AI "
        "provider that answers. When none answers, a demo summary is returned "
        "with provider 'demo'."
    ),
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": SummarizeRequest.model_json_schema()}},
        }
    },
)
async def summarize(
    request: Request,
    authorization: Optional[str] = Header(default=None),
    verifier: TokenVerifier = Depends(get_token_verifier),
    orchestrator: SummaryOrchestrator = Depends(get_orchestrator),
) -> SummarizeResponse:
    """
    Summarize the notes in the request body.

    Why read the raw body instead of declaring a Pydantic body parameter:
    FastAPI would validate the body before the handler runs and answer with
    its own 422 shape. Reading it here keeps the order (auth first) and the
    400 validation_error contract under our control.
    """
    claims = await verifier.verify(authorization)

    payload = parse_json_body(await read_limited_body(request, settings.max_body_bytes))
    summarize_request = validate_summarize_payload(payload)

    logger.info(
        "Summarize request: subject=%s, length=%d chars",
        claims.subject,
        summarize_request.length,
    )

    result = await orchestrator.summarize(summarize_request.text)

    logger.info("Summarize answered by provider=%s model=%s", result.provider.value, result.model)
    return SummarizeResponse(
        summary=result.summary,
        provider=result.provider.value,
        model=result.model,
    )

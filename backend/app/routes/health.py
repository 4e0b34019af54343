"""
NoteGist Backend — Health Check Route
=======================================

What:  Liveness endpoint for monitoring and load balancer probes.
Why:   Probes must be able to tell "process is up" without a token and
       without spending provider quota.
How:   Returns a fixed payload; no dependency is contacted.
"""

from fastapi import APIRouter

from app import __version__
from app.schemas.summary import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/api/health",
    response_model=HealthResponse,
    summary="Service liveness check",
)
@router.get("/health", response_model=HealthResponse, include_in_schema=False)
async def health_check() -> HealthResponse:
    return HealthResponse(ok=True, version=__version__)

"""
NoteGist Backend — Pydantic Request/Response Schemas
=====================================================

What:  Pydantic models defining the API contract between frontend and backend.
Why:   Strict input validation, automatic serialization, and OpenAPI doc generation.
How:   The input validator builds SummarizeRequest from the raw JSON body;
       routes return SummarizeResponse / HealthResponse; exception handlers
       render ErrorResponse.
Who:   Used by the summarize and health routes and by the frontend as API contracts.
"""

from typing import Optional

from pydantic import BaseModel, Field, StrictStr, field_validator

# Upper bound on the note length, in UTF-16 code units
MAX_TEXT_LENGTH = 20_000


def utf16_length(text: str) -> int:
    """
    Length of `text` in UTF-16 code units.

    Why not len(): the browser measures the textarea with JavaScript's
    string.length, which counts an astral character (emoji) as two units.
    Counting the same way keeps client and server limits in agreement.
    A lone surrogate (valid in a JSON string) counts as one unit.
    """
    return len(text.encode("utf-16-le", "surrogatepass")) // 2


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the client sends
# ══════════════════════════════════════════════════════════════════════════


class SummarizeRequest(BaseModel):
    """
    What:  Validated body of POST /api/summarize.
    When:  Built once per request by the input validator; immutable afterwards.

    Rules:
        - text must be present and a JSON string (no coercion from numbers)
        - 1 ≤ length ≤ 20,000 UTF-16 code units
        - never trimmed or clipped; over-long text is rejected
    """

    text: StrictStr = Field(description="Free-text notes to summarize")

    model_config = {"frozen": True, "extra": "ignore"}

    @field_validator("text")
    @classmethod
    def validate_length(cls, v: str) -> str:
        length = utf16_length(v)
        if length < 1:
            raise ValueError("text must not be empty")
        if length > MAX_TEXT_LENGTH:
            raise ValueError(
                f"text is {length} chars; the limit is {MAX_TEXT_LENGTH:,} chars"
            )
        return v

    @property
    def length(self) -> int:
        return utf16_length(self.text)


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class SummarizeResponse(BaseModel):
    """
    What:  Successful summary.
    Who:   Returned by POST /api/summarize with HTTP 200, including the demo path.

    Fields:
        summary:  Bullet-point summary (non-empty)
        provider: Which path answered: gemini, openai or demo
        model:    Model identifier that produced the summary ("demo" for the demo path)
    """

    summary: str = Field(description="Five concise bullet points")
    provider: str = Field(description="Answering provider: gemini, openai or demo")
    model: str = Field(description="Model identifier that produced the summary")


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.
    Why:   Clients need a consistent structure to parse errors programmatically.

    Example:
        {
            "error": "OpenAI quota exceeded. Check plan/billing or use Gemini.",
            "kind": "provider_quota_exceeded",
            "provider": "openai",
            "model": "gpt-4o-mini",
            "request_id": "1f3a9c2e"
        }
    """

    error: str = Field(description="Human-readable error message, safe to display")
    kind: str = Field(description="Machine-readable error kind")
    provider: Optional[str] = Field(default=None, description="Provider the error belongs to")
    model: Optional[str] = Field(default=None, description="Model the error belongs to")
    detail: Optional[str] = Field(default=None, description="Short diagnostic detail")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Fixed liveness payload returned by GET /api/health."""

    ok: bool = Field(default=True, description="Always true while the process serves requests")
    version: str = Field(description="Application version")

"""
NoteGist Backend — Error Classifier
=====================================

What:  Pure mapping from any exception to a ClassifiedError.
Why:   Callers see one stable error shape whatever went wrong: a bad body, a
       rejected token, a vendor quota, or a bug. Messages are always safe to
       show verbatim; internal faults never leak their text.
How:   GatewayError subclasses carry their own kind/status/message; anything
       else is an internal fault with a generic message.
Who:   Used by the exception handlers registered in main.py and by the body
       size middleware.

Mapping:
    ValidationError               → 400 validation_error
    PayloadTooLargeError          → 413 validation_error
    UnauthorizedError             → 401 unauthorized
    ProviderQuotaExceededError    → 429 provider_quota_exceeded
    ProviderMisconfiguredError    → 400 provider_misconfigured
    ProviderUnavailableError      → 503 provider_unavailable
    anything else                 → 500 internal_error
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from app.exceptions import ErrorKind, GatewayError

INTERNAL_ERROR_MESSAGE = "Unexpected server error. Check server logs."


@dataclass(frozen=True)
class ClassifiedError:
    """Stable external error, constructed once per failure path."""

    kind: ErrorKind
    http_status: int
    message: str
    provider: Optional[str] = None
    model: Optional[str] = None
    detail: Optional[str] = None

    def to_response(self, request_id: Optional[str] = None) -> Dict[str, Any]:
        """JSON body of the error response; optional fields are omitted when unset."""
        body: Dict[str, Any] = {"error": self.message, "kind": self.kind.value}
        if self.provider:
            body["provider"] = self.provider
        if self.model:
            body["model"] = self.model
        if self.detail:
            body["detail"] = self.detail
        if request_id:
            body["request_id"] = request_id
        return body


def classify(exc: BaseException) -> ClassifiedError:
    """Classify an exception raised anywhere in the request lifecycle."""
    if isinstance(exc, GatewayError) and exc.kind != ErrorKind.INTERNAL:
        return ClassifiedError(
            kind=exc.kind,
            http_status=exc.status_code,
            message=exc.message,
            provider=exc.provider,
            model=exc.model,
            detail=exc.detail,
        )
    return ClassifiedError(
        kind=ErrorKind.INTERNAL,
        http_status=500,
        message=INTERNAL_ERROR_MESSAGE,
    )

"""
NoteGist Backend — Custom Exception Hierarchy
===============================================

What:  Defines the typed failures the gateway can end a request with.
Why:   Each exception carries a display-safe message, its HTTP status and an
       error kind, so the error classifier can render any of them into one
       stable response shape without looking at vendor error formats.
How:   Each exception class carries a message, optional context dict, and
       optional provider/model/detail fields. Global exception handlers
       (registered in main.py) pass them through the classifier.
Who:   Raised by the validator, token verifier, orchestrator and routes.
When:  Once per failing request; never retried after being raised.

Exception Hierarchy:
    GatewayError (base)                    → 500 internal_error
    ├── ValidationError                    → 400 validation_error
    ├── PayloadTooLargeError               → 413 validation_error
    ├── UnauthorizedError                  → 401 unauthorized
    ├── ProviderQuotaExceededError         → 429 provider_quota_exceeded
    ├── ProviderMisconfiguredError         → 400 provider_misconfigured
    └── ProviderUnavailableError           → 503 provider_unavailable

Provider adapters do NOT raise these. They return explicit failure values to
the orchestrator (see services/llm_base.py); only the orchestrator turns a
final, unrecoverable outcome into one of the provider exceptions above.
"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorKind(str, Enum):
    """Stable, externally documented error kinds."""

    VALIDATION = "validation_error"
    UNAUTHORIZED = "unauthorized"
    PROVIDER_QUOTA_EXCEEDED = "provider_quota_exceeded"
    PROVIDER_UNAVAILABLE = "provider_unavailable"
    PROVIDER_MISCONFIGURED = "provider_misconfigured"
    INTERNAL = "internal_error"


class GatewayError(Exception):
    """
    Base exception for all gateway errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged but NOT returned to client)
        provider: Adapter identifier the failure belongs to, if any
        model:    Model identifier the failure belongs to, if any
        detail:   Short display-safe diagnostic (e.g. why a token was rejected)
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    status_code: int = 500

    def __init__(
        self,
        message: str = "Unexpected server error. Check server logs.",
        context: Optional[Dict[str, Any]] = None,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.context = context or {}
        self.provider = provider
        self.model = model
        self.detail = detail
        super().__init__(self.message)


class ValidationError(GatewayError):
    """
    Raised when the request body fails validation.

    When:    Missing, non-string, empty or over-long `text`; malformed JSON.
    HTTP:    400 Bad Request
    """

    kind = ErrorKind.VALIDATION
    status_code = 400

    def __init__(
        self,
        message: str = "Invalid body. Provide non-empty 'text' ≤ 20,000 chars.",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        detail: Optional[str] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx, detail=detail)
        self.field = field


class PayloadTooLargeError(ValidationError):
    """
    Raised when the request body exceeds MAX_BODY_BYTES.

    HTTP:    413 Payload Too Large
    Why a ValidationError subclass: the caller fixes it the same way (send less
    text), so it shares the validation_error kind.
    """

    status_code = 413

    def __init__(self, limit: int, received: Optional[int] = None):
        super().__init__(
            message=f"Request body too large. The limit is {limit} bytes.",
            context={"limit": limit, "received": received},
        )
        self.limit = limit


class UnauthorizedError(GatewayError):
    """
    Raised when the bearer token is missing, malformed or fails verification,
    and when token verification is not configured at all.

    HTTP:    401 Unauthorized
    The `detail` distinguishes the cases ("Missing bearer token",
    "Malformed authorization scheme", "Token has expired", ...) without
    introducing separate error kinds.
    """

    kind = ErrorKind.UNAUTHORIZED
    status_code = 401

    def __init__(
        self,
        detail: str = "Invalid bearer token",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message="Unauthorized", context=context, detail=detail)


class ProviderQuotaExceededError(GatewayError):
    """
    Raised when the last adapter in the chain reports quota exhaustion.

    HTTP:    429 Too Many Requests
    Why not degrade to the demo answer: quota is actionable by the caller
    (plan/billing), other provider failures are not.
    """

    kind = ErrorKind.PROVIDER_QUOTA_EXCEEDED
    status_code = 429

    def __init__(
        self,
        message: str = "Provider quota exceeded. Check plan/billing.",
        provider: Optional[str] = None,
        model: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context, provider=provider, model=model)


class ProviderMisconfiguredError(GatewayError):
    """
    Raised when the chain ends on a model/endpoint misconfiguration
    (unknown model name, API not enabled, rejected key) and the demo
    fallback is disabled.

    HTTP:    400 Bad Request
    """

    kind = ErrorKind.PROVIDER_MISCONFIGURED
    status_code = 400

    def __init__(
        self,
        message: str = "Provider is misconfigured.",
        provider: Optional[str] = None,
        model: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context, provider=provider, model=model)


class ProviderUnavailableError(GatewayError):
    """
    Raised when every adapter failed and the demo fallback is disabled.

    HTTP:    503 Service Unavailable (retry later)
    """

    kind = ErrorKind.PROVIDER_UNAVAILABLE
    status_code = 503

    def __init__(
        self,
        message: str = "No AI provider responded. Please try again later.",
        provider: Optional[str] = None,
        model: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context, provider=provider, model=model)

"""
NoteGist Backend — Provider Adapter Interface
===============================================

What:  Abstract base class defining the contract for text-generation backends.
Why:   The orchestrator drives a fallback chain over several vendors. It needs
       one uniform call and one uniform failure vocabulary, whatever SDK sits
       underneath. This is the Strategy design pattern.
How:   Concrete adapters inherit from ProviderAdapter and implement
       generate(). Instead of raising, generate() returns a GenerationResult
       that holds either the summary or a ProviderFailure with a FailureCause.
Who:   Called by SummaryOrchestrator, one adapter at a time.

Design Decision:
    Why result values instead of exceptions between adapter and orchestrator:
    the orchestrator's decision (fall through vs. stop with 429) depends on
    the failure cause. Carrying the cause as an enum keeps that decision a
    plain comparison instead of string-matching vendor error messages.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Prompt contract shared by every adapter
SUMMARY_INSTRUCTION = (
    "Summarize the following notes into exactly 5 concise, factual bullet points."
)


class ProviderName(str, Enum):
    """Identity tag carried by every successful response."""

    GEMINI = "gemini"  # primary
    OPENAI = "openai"  # secondary
    DEMO = "demo"


class FailureCause(str, Enum):
    """Why an adapter could not produce a summary."""

    QUOTA_EXCEEDED = "quota_exceeded"  # billing quota or rate limit exhausted
    MISCONFIGURED = "misconfigured"  # unknown model, API not enabled, bad key
    UNAVAILABLE = "unavailable"  # endpoint reachable but refusing service
    TRANSIENT = "transient"  # network error, timeout, 5xx
    EMPTY_RESPONSE = "empty_response"  # call succeeded with no text


@dataclass(frozen=True)
class ProviderFailure:
    """
    A classified adapter failure.

    Attributes:
        cause:   FailureCause driving the orchestrator's decision
        message: Display-safe explanation (may reach the caller verbatim)
        error:   Vendor error text for server-side logs only
    """

    cause: FailureCause
    message: str
    error: Optional[str] = None


@dataclass(frozen=True)
class GenerationResult:
    """Outcome of one adapter attempt: exactly one of summary/failure is set."""

    summary: Optional[str] = None
    failure: Optional[ProviderFailure] = None

    @classmethod
    def ok(cls, summary: str) -> "GenerationResult":
        return cls(summary=summary)

    @classmethod
    def failed(
        cls, cause: FailureCause, message: str, error: Optional[str] = None
    ) -> "GenerationResult":
        return cls(failure=ProviderFailure(cause=cause, message=message, error=error))

    @property
    def succeeded(self) -> bool:
        return self.failure is None and bool(self.summary)


@dataclass(frozen=True)
class SummarizeResult:
    """Immutable value returned to the caller on every 200 response."""

    summary: str
    provider: ProviderName
    model: str


class ProviderAdapter(ABC):
    """
    Abstract interface for one text-generation backend.

    Contract:
        - generate() receives validated text (≤ 20,000 chars)
        - It applies SUMMARY_INSTRUCTION (five factual bullet points)
        - It never raises for vendor errors; it returns a failed result
        - "Succeeded but empty" is FailureCause.EMPTY_RESPONSE, not a success
        - It keeps no state that another request could observe

    Implementations:
        - GeminiAdapter: Google Gemini via google-generativeai (primary)
        - OpenAIAdapter: OpenAI chat completions (secondary)
    """

    name: ProviderName

    def __init__(self, model: str, api_key: str = ""):
        self.model = model
        self._api_key = api_key

    @property
    def is_configured(self) -> bool:
        """False when the adapter has no API key and must be skipped."""
        return bool(self._api_key)

    @abstractmethod
    async def generate(self, text: str) -> GenerationResult:
        """
        Attempt to summarize `text`.

        Returns:
            GenerationResult.ok(summary) with non-empty stripped text, or
            GenerationResult.failed(cause, message) describing the failure.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}(model={self.model!r}, configured={self.is_configured})"

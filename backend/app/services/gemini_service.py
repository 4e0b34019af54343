"""
NoteGist Backend — Google Gemini Adapter
==========================================

What:  Primary provider adapter using the Google Gemini API.
Why:   Gemini has a free tier (gemini-2.0-flash) that covers the typical
       note-summarizing load, so it is tried before paid backends.
How:   Sends the summary instruction plus the notes to Gemini, retries
       transient failures with tenacity, and classifies every vendor error
       into a FailureCause for the orchestrator.
Who:   Built by the adapter factory at startup; invoked by SummaryOrchestrator.

Error classification (structured first, text heuristics last):
    ResourceExhausted (429)                         → QUOTA_EXCEEDED
    NotFound / PermissionDenied / Unauthenticated /
    InvalidArgument / FailedPrecondition            → MISCONFIGURED
    ServiceUnavailable (503)                        → UNAVAILABLE
    DeadlineExceeded / InternalServerError / other
    5xx, ConnectionError, TimeoutError              → TRANSIENT
    Blocked prompt, no candidates, blank text       → EMPTY_RESPONSE
"""

import logging
import time
from typing import Optional

import google.generativeai as genai
from google.api_core import exceptions as google_exceptions
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential_jitter,
)

from app.config import settings
from app.services.llm_base import (
    SUMMARY_INSTRUCTION,
    FailureCause,
    GenerationResult,
    ProviderAdapter,
    ProviderName,
)

logger = logging.getLogger(__name__)

MISCONFIGURED_MESSAGE = (
    "Gemini model unavailable. Use 'gemini-2.0-flash' or 'gemini-2.5-flash-lite' "
    "and ensure the Generative Language API is enabled for your key/project."
)
QUOTA_MESSAGE = "Gemini quota exceeded. Check plan/billing or use another provider."

_MISCONFIGURED_TYPES = (
    google_exceptions.NotFound,
    google_exceptions.PermissionDenied,
    google_exceptions.Unauthenticated,
    google_exceptions.InvalidArgument,
    google_exceptions.FailedPrecondition,
)
_TRANSIENT_TYPES = (
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    ConnectionError,
    TimeoutError,
)


def _classify_by_message(message: str) -> Optional[FailureCause]:
    """Last-resort heuristics for errors the SDK raises without a status code."""
    lowered = message.lower()
    if "quota" in lowered or "resource has been exhausted" in lowered:
        return FailureCause.QUOTA_EXCEEDED
    if "listmodels" in lowered or "404 not found" in lowered or "models/gemini-pro" in lowered:
        return FailureCause.MISCONFIGURED
    if "api key not valid" in lowered or "api_key_invalid" in lowered:
        return FailureCause.MISCONFIGURED
    return None


def classify_gemini_error(error: BaseException) -> Optional[FailureCause]:
    """
    Map a Gemini SDK exception to a FailureCause.

    Returns None for errors that are not recognizably vendor failures;
    those propagate as internal faults.
    """
    if isinstance(error, google_exceptions.ResourceExhausted):
        return FailureCause.QUOTA_EXCEEDED
    if isinstance(error, _MISCONFIGURED_TYPES):
        return FailureCause.MISCONFIGURED
    if isinstance(error, google_exceptions.ServiceUnavailable):
        return FailureCause.UNAVAILABLE
    if isinstance(error, _TRANSIENT_TYPES):
        return FailureCause.TRANSIENT
    if isinstance(error, google_exceptions.GoogleAPICallError):
        code = error.code or 0
        if code == 429:
            return FailureCause.QUOTA_EXCEEDED
        if 400 <= code < 500:
            return FailureCause.MISCONFIGURED
        return FailureCause.TRANSIENT
    if isinstance(error, (genai.types.BlockedPromptException, genai.types.StopCandidateException)):
        return FailureCause.EMPTY_RESPONSE
    return _classify_by_message(str(error))


def _is_transient(error: BaseException) -> bool:
    return classify_gemini_error(error) == FailureCause.TRANSIENT


class GeminiAdapter(ProviderAdapter):
    """
    Google Gemini implementation of the provider adapter.

    The SDK keeps the API key in module-level state (genai.configure), so the
    key is applied once at construction; the GenerativeModel object is
    created lazily and reused across requests.
    """

    name = ProviderName.GEMINI

    def __init__(self, model: str, api_key: str = "", request_timeout: float = 30.0):
        super().__init__(model=model, api_key=api_key)
        self.request_timeout = request_timeout
        self._client: Optional[genai.GenerativeModel] = None
        if api_key:
            genai.configure(api_key=api_key)
        logger.info("GeminiAdapter initialized with model=%s configured=%s", model, bool(api_key))

    def _get_client(self) -> genai.GenerativeModel:
        if self._client is None:
            self._client = genai.GenerativeModel(self.model)
        return self._client

    async def generate(self, text: str) -> GenerationResult:
        start_time = time.perf_counter()
        try:
            summary = await self._call_gemini(text)
        except Exception as e:
            cause = classify_gemini_error(e)
            if cause is None:
                raise
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "[gemini] %s after %.0fms (model=%s): %s",
                cause.value,
                duration_ms,
                self.model,
                e,
            )
            return GenerationResult.failed(cause, self._message_for(cause), error=str(e))

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not summary:
            logger.warning("[gemini] empty response after %.0fms (model=%s)", duration_ms, self.model)
            return GenerationResult.failed(
                FailureCause.EMPTY_RESPONSE, "Gemini returned an empty response."
            )

        logger.info(
            "[gemini] summary completed in %.0fms, %d chars (model=%s)",
            duration_ms,
            len(summary),
            self.model,
        )
        return GenerationResult.ok(summary)

    @retry(
        retry=retry_if_exception(_is_transient),
        stop=stop_after_attempt(settings.provider_retry_attempts),
        wait=wait_exponential_jitter(
            initial=settings.retry_min_wait,
            max=settings.retry_max_wait,
            jitter=1,
        ),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _call_gemini(self, text: str) -> str:
        """Single SDK round-trip; returns stripped text ("" when Gemini gave none)."""
        prompt = f"{SUMMARY_INSTRUCTION}\n\n{text}"
        response = await self._get_client().generate_content_async(
            prompt,
            request_options={"timeout": self.request_timeout},
        )
        try:
            return (response.text or "").strip()
        except ValueError:
            # .text raises when the response has no candidates/parts (e.g. safety block)
            return ""

    @staticmethod
    def _message_for(cause: FailureCause) -> str:
        if cause == FailureCause.QUOTA_EXCEEDED:
            return QUOTA_MESSAGE
        if cause == FailureCause.MISCONFIGURED:
            return MISCONFIGURED_MESSAGE
        if cause == FailureCause.EMPTY_RESPONSE:
            return "Gemini returned an empty response."
        return "Gemini is temporarily unavailable."

"""
NoteGist Backend — OpenAI Adapter
===================================

What:  Secondary provider adapter using OpenAI chat completions.
Why:   Paid fallback for when Gemini is unconfigured, out of quota or down.
How:   One chat completion per attempt (system instruction + user notes),
       tenacity retry for transient failures, and structured classification
       of the openai SDK's typed errors.
Who:   Built by the adapter factory at startup; invoked by SummaryOrchestrator.
"""

import logging
import time
from typing import Optional

import openai
from openai import AsyncOpenAI
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

QUOTA_MESSAGE = "OpenAI quota exceeded. Check plan/billing or use Gemini."
MISCONFIGURED_MESSAGE = (
    "OpenAI model unavailable. Check OPENAI_MODEL and that the API key is valid "
    "for this project."
)

_MISCONFIGURED_TYPES = (
    openai.AuthenticationError,
    openai.PermissionDeniedError,
    openai.NotFoundError,
    openai.BadRequestError,
    openai.UnprocessableEntityError,
)


def classify_openai_error(error: BaseException) -> Optional[FailureCause]:
    """
    Map an openai SDK exception to a FailureCause.

    Returns None for errors that are not recognizably vendor failures;
    those propagate as internal faults.
    """
    if isinstance(error, openai.RateLimitError):
        return FailureCause.QUOTA_EXCEEDED
    if isinstance(error, _MISCONFIGURED_TYPES):
        return FailureCause.MISCONFIGURED
    # APITimeoutError is a subclass of APIConnectionError
    if isinstance(error, (openai.APIConnectionError, ConnectionError, TimeoutError)):
        return FailureCause.TRANSIENT
    if isinstance(error, openai.APIStatusError):
        if error.status_code == 503:
            return FailureCause.UNAVAILABLE
        if error.status_code >= 500:
            return FailureCause.TRANSIENT
        return FailureCause.MISCONFIGURED
    if isinstance(error, openai.OpenAIError):
        # Last resort: errors raised without an HTTP status
        if "exceeded your current quota" in str(error):
            return FailureCause.QUOTA_EXCEEDED
        return FailureCause.TRANSIENT
    return None


def _is_transient(error: BaseException) -> bool:
    return classify_openai_error(error) == FailureCause.TRANSIENT


class OpenAIAdapter(ProviderAdapter):
    """OpenAI chat-completions implementation of the provider adapter."""

    name = ProviderName.OPENAI

    def __init__(self, model: str, api_key: str = "", request_timeout: float = 30.0):
        super().__init__(model=model, api_key=api_key)
        self.request_timeout = request_timeout
        self._client: Optional[AsyncOpenAI] = None
        logger.info("OpenAIAdapter initialized with model=%s configured=%s", model, bool(api_key))

    def _get_client(self) -> AsyncOpenAI:
        """Lazily built client; the SDK's own retries are off (tenacity owns retrying)."""
        if self._client is None:
            self._client = AsyncOpenAI(
                api_key=self._api_key,
                timeout=self.request_timeout,
                max_retries=0,
            )
        return self._client

    async def generate(self, text: str) -> GenerationResult:
        start_time = time.perf_counter()
        try:
            summary = await self._call_openai(text)
        except Exception as e:
            cause = classify_openai_error(e)
            if cause is None:
                raise
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.warning(
                "[openai] %s after %.0fms (model=%s): %s",
                cause.value,
                duration_ms,
                self.model,
                e,
            )
            return GenerationResult.failed(cause, self._message_for(cause), error=str(e))

        duration_ms = (time.perf_counter() - start_time) * 1000
        if not summary:
            logger.warning("[openai] empty response after %.0fms (model=%s)", duration_ms, self.model)
            return GenerationResult.failed(
                FailureCause.EMPTY_RESPONSE, "OpenAI returned an empty response."
            )

        logger.info(
            "[openai] summary completed in %.0fms, %d chars (model=%s)",
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
    async def _call_openai(self, text: str) -> str:
        completion = await self._get_client().chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": SUMMARY_INSTRUCTION},
                {"role": "user", "content": text},
            ],
        )
        if not completion.choices:
            return ""
        content = completion.choices[0].message.content
        return (content or "").strip()

    @staticmethod
    def _message_for(cause: FailureCause) -> str:
        if cause == FailureCause.QUOTA_EXCEEDED:
            return QUOTA_MESSAGE
        if cause == FailureCause.MISCONFIGURED:
            return MISCONFIGURED_MESSAGE
        if cause == FailureCause.EMPTY_RESPONSE:
            return "OpenAI returned an empty response."
        return "OpenAI is temporarily unavailable."

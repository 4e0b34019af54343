"""
NoteGist Backend — Provider Orchestrator
==========================================

What:  Drives the ordered fallback chain for one summarize request.
Why:   Adapters are ordered by cost/preference. A later, costlier adapter runs
       only after an earlier one has definitively failed, and the caller always
       gets an answer: a real summary, a deterministic demo summary, or (for
       quota exhaustion) an explicit 429.
How:   Sequentially awaits each configured adapter under a per-adapter timeout
       and inspects the returned FailureCause to decide between falling
       through and stopping.

State machine:
    start ──(no configured adapters)──────────────────────────▶ Demo
      │
      ▼
    Trying(i) ──summary──────────────────────────────────────▶ Succeeded(i)
      │  failure, i is not last ─────────────────────────────▶ Trying(i+1)
      │  QUOTA_EXCEEDED, i is last ──────────────────────────▶ 429 ProviderQuotaExceeded
      │  other failure, i is last ───────────────────────────▶ Demo
      ▼
    Demo ── demo_fallback_enabled=False ─────▶ 400 ProviderMisconfigured / 503 ProviderUnavailable

Design Decision:
    The orchestrator holds only read-only references (adapters, timeout,
    primary model) built once at startup, so one instance is shared by all
    concurrent requests without locks.
"""

import asyncio
import logging
from typing import List, Optional, Sequence, Tuple

from app.config import Settings, settings
from app.exceptions import (
    ProviderMisconfiguredError,
    ProviderQuotaExceededError,
    ProviderUnavailableError,
)
from app.schemas.summary import utf16_length
from app.services.gemini_service import GeminiAdapter
from app.services.llm_base import (
    FailureCause,
    GenerationResult,
    ProviderAdapter,
    ProviderFailure,
    ProviderName,
    SummarizeResult,
)
from app.services.openai_service import OpenAIAdapter

logger = logging.getLogger(__name__)

DEMO_MODEL = "demo"


def build_demo_summary(text: str, primary_model: str) -> str:
    """
    Deterministic placeholder summary used when no provider answered.

    Always contains: the no-provider marker, the primary model that was tried,
    configuration hints, and the input length in characters.
    """
    return (
        "• (Demo) No AI provider responded\n"
        f"• Primary model tried: {primary_model}\n"
        "• Tip: set GEMINI_API_KEY with an AI Studio key and "
        "GEMINI_MODEL=gemini-2.0-flash (free tier)\n"
        "• Or add OPENAI_API_KEY (with quota)\n"
        f"• Input length: {utf16_length(text)} chars"
    )


def build_adapters(config: Settings) -> List[ProviderAdapter]:
    """
    Build adapters in PROVIDER_ORDER.

    Unconfigured adapters are still built (their model is reported in the
    demo summary); the orchestrator skips them at request time.
    """
    adapters: List[ProviderAdapter] = []
    for name in config.provider_order_list:
        if name == ProviderName.GEMINI.value:
            adapters.append(
                GeminiAdapter(
                    model=config.gemini_model,
                    api_key=config.gemini_api_key,
                    request_timeout=config.provider_timeout_seconds,
                )
            )
        elif name == ProviderName.OPENAI.value:
            adapters.append(
                OpenAIAdapter(
                    model=config.openai_model,
                    api_key=config.openai_api_key,
                    request_timeout=config.provider_timeout_seconds,
                )
            )
    return adapters


class SummaryOrchestrator:
    """
    Ordered multi-provider fallback with a terminal demo answer.

    Attributes:
        adapters:       All adapters in configured order (configured or not)
        timeout:        Seconds allowed per adapter invocation
        demo_enabled:   Whether exhaustion produces the demo summary
        primary_model:  Model reported by the demo summary
    """

    def __init__(
        self,
        adapters: Sequence[ProviderAdapter],
        timeout: float = 30.0,
        demo_enabled: bool = True,
        primary_model: Optional[str] = None,
    ):
        self.adapters: Tuple[ProviderAdapter, ...] = tuple(adapters)
        self.timeout = timeout
        self.demo_enabled = demo_enabled
        if primary_model is None:
            primary_model = self.adapters[0].model if self.adapters else "none configured"
        self.primary_model = primary_model

    @classmethod
    def from_settings(cls, config: Settings) -> "SummaryOrchestrator":
        adapters = build_adapters(config)
        orchestrator = cls(
            adapters=adapters,
            timeout=config.provider_timeout_seconds,
            demo_enabled=config.demo_fallback_enabled,
        )
        logger.info(
            "Provider chain: %s (demo fallback %s)",
            " → ".join(repr(a) for a in adapters) or "<empty>",
            "on" if orchestrator.demo_enabled else "off",
        )
        return orchestrator

    @property
    def chain(self) -> List[ProviderAdapter]:
        """Adapters that will actually be attempted, in order."""
        return [adapter for adapter in self.adapters if adapter.is_configured]

    async def summarize(self, text: str) -> SummarizeResult:
        """
        Run the fallback chain for one validated text.

        Returns:
            SummarizeResult from the first adapter that produced a summary,
            or the demo result.

        Raises:
            ProviderQuotaExceededError: the last adapter in the chain reported
                quota exhaustion.
            ProviderMisconfiguredError / ProviderUnavailableError: the chain is
                exhausted and the demo fallback is disabled.
        """
        chain = self.chain
        last_failure: Optional[Tuple[ProviderAdapter, ProviderFailure]] = None

        for index, adapter in enumerate(chain):
            is_last = index == len(chain) - 1
            result = await self._attempt(adapter, text)

            if result.succeeded:
                return SummarizeResult(
                    summary=result.summary,
                    provider=adapter.name,
                    model=adapter.model,
                )

            failure = result.failure or ProviderFailure(
                cause=FailureCause.EMPTY_RESPONSE,
                message=f"{adapter.name.value} returned an empty response.",
            )
            last_failure = (adapter, failure)

            if failure.cause == FailureCause.QUOTA_EXCEEDED and is_last:
                raise ProviderQuotaExceededError(
                    message=failure.message,
                    provider=adapter.name.value,
                    model=adapter.model,
                    context={"error": failure.error},
                )

            if not is_last:
                logger.info(
                    "Provider %s failed (%s); falling back to %s",
                    adapter.name.value,
                    failure.cause.value,
                    chain[index + 1].name.value,
                )

        return self._exhausted(text, last_failure)

    async def _attempt(self, adapter: ProviderAdapter, text: str) -> GenerationResult:
        """Invoke one adapter under the per-adapter timeout."""
        try:
            return await asyncio.wait_for(adapter.generate(text), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Provider %s timed out after %.1fs (model=%s)",
                adapter.name.value,
                self.timeout,
                adapter.model,
            )
            return GenerationResult.failed(
                FailureCause.TRANSIENT,
                f"{adapter.name.value} did not respond within {self.timeout:g}s.",
            )

    def _exhausted(
        self,
        text: str,
        last_failure: Optional[Tuple[ProviderAdapter, ProviderFailure]],
    ) -> SummarizeResult:
        if self.demo_enabled:
            logger.warning(
                "No provider produced a summary (%d configured); answering with demo summary",
                len(self.chain),
            )
            return SummarizeResult(
                summary=build_demo_summary(text, self.primary_model),
                provider=ProviderName.DEMO,
                model=DEMO_MODEL,
            )

        if last_failure is None:
            raise ProviderUnavailableError(
                message="No AI provider is configured.",
                model=self.primary_model,
            )

        adapter, failure = last_failure
        if failure.cause == FailureCause.MISCONFIGURED:
            raise ProviderMisconfiguredError(
                message=failure.message,
                provider=adapter.name.value,
                model=adapter.model,
                context={"error": failure.error},
            )
        raise ProviderUnavailableError(
            provider=adapter.name.value,
            model=adapter.model,
            context={"cause": failure.cause.value, "error": failure.error},
        )


_orchestrator: Optional[SummaryOrchestrator] = None


def get_orchestrator() -> SummaryOrchestrator:
    """
    FastAPI dependency returning the process-wide orchestrator.

    Built on first use from the settings singleton; tests replace it through
    app.dependency_overrides.
    """
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = SummaryOrchestrator.from_settings(settings)
    return _orchestrator

"""
NoteGist Backend — Provider Orchestrator Unit Tests
=====================================================

What:  Tests for the ordered fallback chain and the demo answer.
How:   Scripted FakeAdapters (see conftest.py) record their calls, so tests
       assert both the outcome and which adapters ran in which order.

What we test:
    ✅ First success short-circuits the chain
    ✅ Non-quota failure falls through to the next adapter
    ✅ Exhaustion yields the demo summary with the input length
    ✅ Quota on the last adapter → ProviderQuotaExceededError, not demo
    ✅ Quota on an earlier adapter still falls through
    ✅ Unconfigured adapters are skipped; none configured → demo
    ✅ Timeouts fall through
    ✅ Demo disabled → misconfigured / unavailable errors
"""

import pytest

from app.exceptions import (
    ProviderMisconfiguredError,
    ProviderQuotaExceededError,
    ProviderUnavailableError,
)
from app.services.llm_base import FailureCause, GenerationResult, ProviderName
from app.services.orchestrator import SummaryOrchestrator, build_adapters, build_demo_summary

QUOTA = GenerationResult.failed(FailureCause.QUOTA_EXCEEDED, "quota exceeded")
MISCONFIGURED = GenerationResult.failed(FailureCause.MISCONFIGURED, "bad model")
TRANSIENT = GenerationResult.failed(FailureCause.TRANSIENT, "network down")
EMPTY = GenerationResult.failed(FailureCause.EMPTY_RESPONSE, "empty")


class TestFallbackChain:
    """Tests for the order and short-circuit rules."""

    @pytest.mark.asyncio
    async def test_first_success_short_circuits(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, GenerationResult.ok("• from gemini"))
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• from openai"))
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("notes")

        assert result.provider == ProviderName.GEMINI
        assert result.model == gemini.model
        assert result.summary == "• from gemini"
        assert gemini.call_count == 1
        assert openai.call_count == 0

    @pytest.mark.asyncio
    async def test_non_quota_failure_falls_through(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, MISCONFIGURED)
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• from openai"))
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("notes")

        assert result.provider == ProviderName.OPENAI
        assert result.model == openai.model
        assert gemini.calls == ["notes"]
        assert openai.calls == ["notes"]

    @pytest.mark.asyncio
    async def test_configured_order_is_respected(self, make_adapter):
        """OpenAI first when configured first."""
        gemini = make_adapter(ProviderName.GEMINI, GenerationResult.ok("• gemini"))
        openai = make_adapter(ProviderName.OPENAI, TRANSIENT)
        orchestrator = SummaryOrchestrator([openai, gemini])

        result = await orchestrator.summarize("notes")

        assert result.provider == ProviderName.GEMINI
        assert openai.call_count == 1

    @pytest.mark.asyncio
    async def test_empty_response_is_a_failure(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, EMPTY)
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• openai"))
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("notes")
        assert result.provider == ProviderName.OPENAI

    @pytest.mark.asyncio
    async def test_repeated_calls_are_tagged_identically(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, TRANSIENT)
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• openai"))
        orchestrator = SummaryOrchestrator([gemini, openai])

        first = await orchestrator.summarize("same notes")
        second = await orchestrator.summarize("same notes")

        assert (first.provider, first.model) == (second.provider, second.model)


class TestDemoFallback:
    """Tests for chain exhaustion with the demo answer enabled."""

    @pytest.mark.asyncio
    async def test_all_failing_yields_demo(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, TRANSIENT)
        openai = make_adapter(ProviderName.OPENAI, MISCONFIGURED)
        orchestrator = SummaryOrchestrator([gemini, openai])
        text = "x" * 137

        result = await orchestrator.summarize(text)

        assert result.provider == ProviderName.DEMO
        assert result.model == "demo"
        assert "Input length: 137 chars" in result.summary
        assert gemini.call_count == 1
        assert openai.call_count == 1

    @pytest.mark.asyncio
    async def test_no_configured_adapters_yields_demo(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, configured=False, model="gemini-2.0-flash")
        openai = make_adapter(ProviderName.OPENAI, configured=False)
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("hello")

        assert result.provider == ProviderName.DEMO
        assert "gemini-2.0-flash" in result.summary
        assert gemini.call_count == 0
        assert openai.call_count == 0

    @pytest.mark.asyncio
    async def test_empty_adapter_list_yields_demo(self):
        result = await SummaryOrchestrator([]).summarize("hello")
        assert result.provider == ProviderName.DEMO
        assert "Input length: 5 chars" in result.summary

    @pytest.mark.asyncio
    async def test_unconfigured_adapter_is_skipped(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, configured=False)
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• openai"))
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("notes")

        assert result.provider == ProviderName.OPENAI
        assert gemini.call_count == 0

    def test_demo_summary_content(self):
        summary = build_demo_summary("abc", "gemini-2.0-flash")
        assert "No AI provider responded" in summary
        assert "gemini-2.0-flash" in summary
        assert "GEMINI_API_KEY" in summary
        assert summary.endswith("Input length: 3 chars")


class TestQuotaShortCircuit:
    """Tests for quota exhaustion handling."""

    @pytest.mark.asyncio
    async def test_quota_on_sole_adapter_raises(self, make_adapter):
        openai = make_adapter(ProviderName.OPENAI, QUOTA)
        orchestrator = SummaryOrchestrator([openai])

        with pytest.raises(ProviderQuotaExceededError) as exc_info:
            await orchestrator.summarize("notes")

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "openai"
        assert exc_info.value.model == openai.model

    @pytest.mark.asyncio
    async def test_quota_on_last_adapter_raises(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, TRANSIENT)
        openai = make_adapter(ProviderName.OPENAI, QUOTA)
        orchestrator = SummaryOrchestrator([gemini, openai])

        with pytest.raises(ProviderQuotaExceededError):
            await orchestrator.summarize("notes")
        assert gemini.call_count == 1

    @pytest.mark.asyncio
    async def test_quota_with_remaining_adapter_falls_through(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, QUOTA)
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• openai"))
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("notes")
        assert result.provider == ProviderName.OPENAI

    @pytest.mark.asyncio
    async def test_early_quota_then_other_failure_yields_demo(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, QUOTA)
        openai = make_adapter(ProviderName.OPENAI, TRANSIENT)
        orchestrator = SummaryOrchestrator([gemini, openai])

        result = await orchestrator.summarize("notes")
        assert result.provider == ProviderName.DEMO

    @pytest.mark.asyncio
    async def test_quota_on_last_configured_adapter_raises(self, make_adapter):
        """"Last" means last adapter that is actually attempted."""
        gemini = make_adapter(ProviderName.GEMINI, QUOTA)
        openai = make_adapter(ProviderName.OPENAI, configured=False)
        orchestrator = SummaryOrchestrator([gemini, openai])

        with pytest.raises(ProviderQuotaExceededError):
            await orchestrator.summarize("notes")


class TestTimeouts:
    """Tests for the per-adapter timeout."""

    @pytest.mark.asyncio
    async def test_slow_adapter_falls_through(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, GenerationResult.ok("• late"), delay=1.0)
        openai = make_adapter(ProviderName.OPENAI, GenerationResult.ok("• openai"))
        orchestrator = SummaryOrchestrator([gemini, openai], timeout=0.05)

        result = await orchestrator.summarize("notes")

        assert result.provider == ProviderName.OPENAI
        assert gemini.call_count == 1


class TestDemoDisabled:
    """Tests for exhaustion when the demo answer is turned off."""

    @pytest.mark.asyncio
    async def test_misconfiguration_is_surfaced(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, MISCONFIGURED)
        orchestrator = SummaryOrchestrator([gemini], demo_enabled=False)

        with pytest.raises(ProviderMisconfiguredError) as exc_info:
            await orchestrator.summarize("notes")

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "bad model"
        assert exc_info.value.provider == "gemini"

    @pytest.mark.asyncio
    async def test_transient_failure_is_unavailable(self, make_adapter):
        gemini = make_adapter(ProviderName.GEMINI, TRANSIENT)
        orchestrator = SummaryOrchestrator([gemini], demo_enabled=False)

        with pytest.raises(ProviderUnavailableError) as exc_info:
            await orchestrator.summarize("notes")
        assert exc_info.value.status_code == 503

    @pytest.mark.asyncio
    async def test_nothing_configured_is_unavailable(self):
        orchestrator = SummaryOrchestrator([], demo_enabled=False)
        with pytest.raises(ProviderUnavailableError):
            await orchestrator.summarize("notes")


class TestBuildAdapters:
    """Tests for the settings-driven adapter factory."""

    def test_builds_in_configured_order(self):
        from unittest.mock import patch

        from app.config import Settings

        config = Settings(
            provider_order="openai,gemini",
            gemini_api_key="g-key",
            openai_api_key="",
            gemini_model="gemini-2.5-flash-lite",
        )
        with patch("app.services.gemini_service.genai"):
            adapters = build_adapters(config)

        assert [a.name for a in adapters] == [ProviderName.OPENAI, ProviderName.GEMINI]
        assert adapters[0].is_configured is False
        assert adapters[1].is_configured is True
        assert adapters[1].model == "gemini-2.5-flash-lite"

    def test_primary_model_is_first_in_order(self):
        from unittest.mock import patch

        from app.config import Settings

        config = Settings(provider_order="gemini", gemini_model="gemini-2.0-flash")
        with patch("app.services.gemini_service.genai"):
            orchestrator = SummaryOrchestrator.from_settings(config)
        assert orchestrator.primary_model == "gemini-2.0-flash"

    def test_unknown_provider_is_rejected(self):
        from pydantic import ValidationError

        from app.config import Settings

        with pytest.raises(ValidationError, match="Unknown provider"):
            Settings(provider_order="gemini,claude")

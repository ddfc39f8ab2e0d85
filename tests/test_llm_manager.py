"""
Tests for the LLM manager: provider selection, retries and fallback.

Providers are in-memory fakes - no API keys or local Ollama needed.
"""

from unittest.mock import patch

import pytest

from finprofile.llm import (
    LLMConfig,
    LLMManager,
    LLMManagerConfig,
    LLMProvider,
    LLMResponse,
    Message,
    ProviderStatus,
    get_llm_manager,
)


class FakeProvider(LLMProvider):
    def __init__(self, name, *outcomes):
        super().__init__(LLMConfig(provider_name=name, model=f"{name}-model"))
        self._status = ProviderStatus.AVAILABLE
        self.outcomes = list(outcomes)
        self.calls = []

    def is_available(self):
        return True

    def chat(self, messages, temperature=None, max_tokens=None, json_mode=False, **kwargs):
        self.calls.append({"messages": messages, "json_mode": json_mode})
        outcome = self.outcomes.pop(0) if self.outcomes else "{}"
        if isinstance(outcome, Exception):
            raise outcome
        return LLMResponse(
            content=outcome,
            model=self.model,
            provider=self.name,
            usage={"total_tokens": 10},
        )


MESSAGES = [Message(role="user", content="שלום")]


def manager(providers, **config):
    sleeps = []
    llm = LLMManager(
        LLMManagerConfig(provider_priority=list(providers), **config),
        providers=providers,
        sleep=sleeps.append,
    )
    return llm, sleeps


class TestProviderSelection:
    def test_first_available_in_priority(self):
        openai, groq = FakeProvider("openai"), FakeProvider("groq")
        llm, _ = manager({"openai": openai, "groq": groq})

        response = llm.chat(MESSAGES)

        assert response.provider == "openai"
        assert len(openai.calls) == 1
        assert groq.calls == []

    def test_no_providers(self):
        llm, _ = manager({})
        assert not llm.is_available
        with pytest.raises(RuntimeError):
            llm.chat(MESSAGES)

    def test_forced_provider(self):
        openai, groq = FakeProvider("openai"), FakeProvider("groq")
        llm, _ = manager({"openai": openai, "groq": groq})

        assert llm.chat(MESSAGES, provider="groq").provider == "groq"

    def test_json_mode_passed_through(self):
        openai = FakeProvider("openai")
        llm, _ = manager({"openai": openai})

        llm.chat(MESSAGES, json_mode=True)
        assert openai.calls[0]["json_mode"] is True


class TestRetriesAndFallback:
    def test_retry_with_backoff(self):
        openai = FakeProvider("openai", RuntimeError("boom"), '{"ok": true}')
        llm, sleeps = manager({"openai": openai})

        response = llm.chat(MESSAGES)

        assert response.content == '{"ok": true}'
        assert sleeps == [1.0]
        assert len(openai.calls) == 2

    def test_single_attempt_raises_immediately(self):
        openai = FakeProvider("openai", RuntimeError("boom"))
        groq = FakeProvider("groq")
        llm, sleeps = manager({"openai": openai, "groq": groq}, max_retries=0, auto_fallback=False)

        with pytest.raises(RuntimeError):
            llm.chat(MESSAGES)
        assert len(openai.calls) == 1
        assert groq.calls == []
        assert sleeps == []

    def test_rate_limit_switches_provider(self):
        openai = FakeProvider("openai", RuntimeError("Error 429: rate limit reached"))
        groq = FakeProvider("groq")
        llm, _ = manager({"openai": openai, "groq": groq})

        response = llm.chat(MESSAGES)

        assert response.provider == "groq"
        assert openai.status == ProviderStatus.RATE_LIMITED

    def test_usage_tracked(self):
        openai = FakeProvider("openai", RuntimeError("boom"), "{}")
        llm, _ = manager({"openai": openai})
        llm.chat(MESSAGES)

        stats = llm.session_stats
        assert stats["successful_requests"] == 1
        assert stats["failed_requests"] == 1
        assert llm.get_status()["providers"]["openai"]["tokens_today"] == 10


class TestGetLLMManager:
    def test_single_attempt_config(self):
        with patch("finprofile.llm.manager.LLMManager") as mock_manager:
            get_llm_manager(provider_priority=["groq"], openai_model="gpt-4o-mini", single_attempt=True)

        config = mock_manager.call_args.args[0]
        assert config.provider_priority == ["groq"]
        assert config.default_models["openai"] == "gpt-4o-mini"
        assert config.max_retries == 0
        assert config.auto_fallback is False

"""
LLM Manager - Unified interface for multiple LLM providers.

Picks the first available provider in priority order, tracks usage and,
when configured to, retries and falls back to the next provider.
"""

import time
from typing import Optional, List, Dict, Any, Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from ..logging_config import get_logger
from .base import (
    LLMProvider,
    LLMResponse,
    Message,
    ProviderStatus,
    PROVIDER_INFO
)
from .groq_provider import GroqProvider, create_groq_provider
from .ollama_provider import OllamaProvider, create_ollama_provider
from .openai_provider import OpenAIProvider, create_openai_provider

logger = get_logger(__name__)


@dataclass
class ProviderUsage:
    """Track usage for rate limit management."""
    requests_today: int = 0
    tokens_today: int = 0
    last_request: Optional[datetime] = None
    rate_limit_reset: Optional[datetime] = None
    errors: int = 0
    successes: int = 0
    last_error: Optional[str] = None


@dataclass
class LLMManagerConfig:
    """Configuration for the LLM Manager."""
    # Provider preferences (in order of preference)
    provider_priority: List[str] = field(default_factory=lambda: ["openai", "groq", "ollama"])

    # Switch to the next provider after a rate limit or exhausted retries
    auto_fallback: bool = True

    # Retries on the same provider before giving up (exponential backoff)
    max_retries: int = 2

    # Default model preferences per provider
    default_models: Dict[str, str] = field(default_factory=lambda: {
        "openai": OpenAIProvider.DEFAULT_MODEL,
        "groq": GroqProvider.DEFAULT_MODEL,
        "ollama": OllamaProvider.DEFAULT_MODEL
    })

    # Rate limit buffer (don't use last 10% of quota)
    rate_limit_buffer: float = 0.1


_PROVIDER_FACTORIES: Dict[str, Callable[[str], Optional[LLMProvider]]] = {
    "openai": create_openai_provider,
    "groq": create_groq_provider,
    "ollama": create_ollama_provider,
}


class LLMManager:
    """
    Manages multiple LLM providers with automatic selection and failover.

    Usage:
        manager = LLMManager()
        response = manager.chat([Message(role="user", content="שלום")])
    """

    def __init__(
        self,
        config: Optional[LLMManagerConfig] = None,
        providers: Optional[Dict[str, LLMProvider]] = None,
        sleep: Callable[[float], None] = time.sleep
    ):
        """
        Args:
            config: Manager configuration
            providers: Pre-built providers keyed by name; when omitted they
                are created from the environment following provider_priority
            sleep: Backoff sleep function
        """
        self.config = config or LLMManagerConfig()
        self._providers: Dict[str, LLMProvider] = {}
        self._usage: Dict[str, ProviderUsage] = {}
        self._current_provider: Optional[str] = None
        self._sleep = sleep

        if providers is not None:
            for name, provider in providers.items():
                self._providers[name] = provider
                self._usage[name] = ProviderUsage()
            self._select_provider()
        else:
            self._initialize_providers()

    def _initialize_providers(self):
        """Initialize the configured providers that are usable right now."""
        for name in self.config.provider_priority:
            factory = _PROVIDER_FACTORIES.get(name)
            if factory is None:
                logger.warning(f"Unknown LLM provider '{name}' in priority list, ignoring")
                continue
            provider = factory(self.config.default_models.get(name))
            if provider and provider.is_available():
                self._providers[name] = provider
                self._usage[name] = ProviderUsage()
                logger.info(f"{name} provider initialized ({provider.model})")

        self._select_provider()

    def _select_provider(self) -> Optional[str]:
        """Select the best available provider."""
        for provider_name in self.config.provider_priority:
            if provider_name not in self._providers:
                continue
            provider = self._providers[provider_name]
            usage = self._usage.get(provider_name, ProviderUsage())

            if provider.status == ProviderStatus.RATE_LIMITED:
                if usage.rate_limit_reset and datetime.now() < usage.rate_limit_reset:
                    continue  # Still rate limited
                provider._status = ProviderStatus.AVAILABLE

            info = PROVIDER_INFO.get(provider_name)
            if info and not info.is_local:
                limit = info.rate_limit_requests_per_day
                buffer = int(limit * self.config.rate_limit_buffer)
                if usage.requests_today >= (limit - buffer):
                    continue  # Approaching limit, skip

            self._current_provider = provider_name
            return provider_name

        self._current_provider = None
        return None

    @property
    def current_provider(self) -> Optional[LLMProvider]:
        """Get the currently selected provider."""
        if self._current_provider:
            return self._providers.get(self._current_provider)
        return None

    @property
    def available_providers(self) -> List[str]:
        """List of available provider names."""
        return list(self._providers.keys())

    def get_status(self) -> Dict[str, Any]:
        """Get status of all providers."""
        status = {
            "current_provider": self._current_provider,
            "providers": {}
        }

        for name, provider in self._providers.items():
            usage = self._usage.get(name, ProviderUsage())
            info = PROVIDER_INFO.get(name)

            status["providers"][name] = {
                "status": provider.status.value,
                "model": provider.model,
                "is_local": info.is_local if info else False,
                "requests_today": usage.requests_today,
                "tokens_today": usage.tokens_today,
                "errors": usage.errors,
            }

        return status

    def _update_usage(self, provider_name: str, response: LLMResponse):
        """Update usage tracking after a request."""
        usage = self._usage.setdefault(provider_name, ProviderUsage())
        usage.requests_today += 1
        usage.tokens_today += response.tokens_used
        usage.last_request = datetime.now()
        usage.successes += 1

    def _handle_rate_limit(self, provider_name: str):
        """Mark a provider as rate limited for the next hour."""
        usage = self._usage.setdefault(provider_name, ProviderUsage())
        usage.rate_limit_reset = datetime.now() + timedelta(hours=1)

        if provider_name in self._providers:
            self._providers[provider_name]._status = ProviderStatus.RATE_LIMITED

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        provider: Optional[str] = None,
        json_mode: bool = False,
        _retry_count: int = 0,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request with optional retry and fallback.

        Args:
            messages: List of conversation messages
            temperature: Override default temperature
            max_tokens: Override default max tokens
            provider: Force a specific provider (optional)
            json_mode: Ask for a single JSON object response
            **kwargs: Additional provider parameters

        Returns:
            LLMResponse with the model's response

        Raises:
            RuntimeError: If no providers are available
        """
        if provider:
            if provider not in self._providers:
                raise RuntimeError(f"Provider '{provider}' not available")
            target_provider = provider
        else:
            target_provider = self._select_provider()

        if not target_provider:
            raise RuntimeError(
                "No LLM providers available. Set OPENAI_API_KEY or GROQ_API_KEY, "
                "or run a local Ollama server."
            )

        llm = self._providers[target_provider]

        try:
            response = llm.chat(
                messages=messages,
                temperature=temperature,
                max_tokens=max_tokens,
                json_mode=json_mode,
                **kwargs
            )
            self._update_usage(target_provider, response)
            return response

        except Exception as e:
            error_msg = str(e).lower()

            usage = self._usage.setdefault(target_provider, ProviderUsage())
            usage.errors += 1
            usage.last_error = str(e)[:200]

            if "rate" in error_msg or "429" in error_msg:
                self._handle_rate_limit(target_provider)
                if self.config.auto_fallback and not provider:
                    new_provider = self._select_provider()
                    if new_provider and new_provider != target_provider:
                        logger.warning(f"Rate limited on {target_provider}, switching to {new_provider}")
                        return self.chat(
                            messages, temperature, max_tokens,
                            provider=new_provider, json_mode=json_mode, **kwargs
                        )

            if _retry_count < self.config.max_retries:
                wait = (2 ** _retry_count) * 1.0  # 1s, 2s, ...
                logger.warning(
                    f"Error on {target_provider}, retrying in {wait}s "
                    f"({_retry_count + 1}/{self.config.max_retries}): {e}"
                )
                self._sleep(wait)
                return self.chat(
                    messages, temperature, max_tokens,
                    provider=provider, json_mode=json_mode,
                    _retry_count=_retry_count + 1, **kwargs
                )

            if self.config.auto_fallback and not provider:
                for fallback_name in self.config.provider_priority:
                    if fallback_name != target_provider and fallback_name in self._providers:
                        logger.warning(f"All retries failed on {target_provider}, falling back to {fallback_name}")
                        try:
                            return self.chat(
                                messages, temperature, max_tokens,
                                provider=fallback_name, json_mode=json_mode, **kwargs
                            )
                        except Exception:
                            continue

            raise

    def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """Simple completion with a single prompt."""
        messages = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=prompt))

        return self.chat(messages, **kwargs)

    @property
    def is_available(self) -> bool:
        """Check if any LLM provider is available."""
        return self._select_provider() is not None

    @property
    def session_stats(self) -> Dict[str, Any]:
        """Aggregate request counters across providers."""
        total_success = sum(u.successes for u in self._usage.values())
        total_errors = sum(u.errors for u in self._usage.values())
        return {
            "providers_available": list(self._providers.keys()),
            "current_provider": self._current_provider,
            "total_requests": total_success + total_errors,
            "successful_requests": total_success,
            "failed_requests": total_errors,
        }


def get_llm_manager(
    provider_priority: Optional[List[str]] = None,
    openai_model: Optional[str] = None,
    single_attempt: bool = False
) -> LLMManager:
    """
    Get a configured LLM manager instance.

    Args:
        provider_priority: Provider names in order of preference
        openai_model: Model override for the OpenAI provider
        single_attempt: No retries and no fallback - one request per call
    """
    config = LLMManagerConfig()
    if provider_priority:
        config.provider_priority = list(provider_priority)
    if openai_model:
        config.default_models["openai"] = openai_model
    if single_attempt:
        config.max_retries = 0
        config.auto_fallback = False
    return LLMManager(config)

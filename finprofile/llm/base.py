"""
Base classes for LLM providers.

Gives the profile classifier one interface over OpenAI, Groq and a local
Ollama server, so the backing model can change without touching callers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Optional, List, Dict, Any
from enum import Enum


class ProviderStatus(str, Enum):
    """Status of an LLM provider."""
    AVAILABLE = "available"
    RATE_LIMITED = "rate_limited"
    ERROR = "error"
    NOT_CONFIGURED = "not_configured"


@dataclass
class LLMConfig:
    """Configuration for an LLM provider."""
    provider_name: str
    model: str
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    temperature: float = 0.4
    max_tokens: int = 4000
    timeout: int = 120
    extra_params: Dict[str, Any] = field(default_factory=dict)


@dataclass
class Message:
    """A single message in a conversation."""
    role: str  # "system", "user", "assistant"
    content: str


@dataclass
class LLMResponse:
    """Response from an LLM provider."""
    content: str
    model: str
    provider: str
    usage: Dict[str, int] = field(default_factory=dict)  # tokens used
    finish_reason: str = "stop"
    raw_response: Optional[Any] = None

    @property
    def tokens_used(self) -> int:
        """Total tokens used in this request."""
        return self.usage.get("total_tokens", 0)


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.

    All providers (OpenAI, Groq, Ollama) implement this interface.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        self._status = ProviderStatus.NOT_CONFIGURED

    @property
    def name(self) -> str:
        """Provider name."""
        return self.config.provider_name

    @property
    def model(self) -> str:
        """Current model."""
        return self.config.model

    @property
    def status(self) -> ProviderStatus:
        """Current provider status."""
        return self._status

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the provider is available and configured."""
        pass

    @abstractmethod
    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """
        Send a chat completion request.

        Args:
            messages: List of conversation messages
            temperature: Override default temperature
            max_tokens: Override default max tokens
            json_mode: Ask the backend to return a single JSON object
            **kwargs: Provider-specific parameters

        Returns:
            LLMResponse with the model's response
        """
        pass

    def complete(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        **kwargs
    ) -> LLMResponse:
        """
        Simple completion with a single prompt.

        Args:
            prompt: The user prompt
            system_prompt: Optional system prompt
            **kwargs: Additional parameters passed to chat()
        """
        messages = []
        if system_prompt:
            messages.append(Message(role="system", content=system_prompt))
        messages.append(Message(role="user", content=prompt))

        return self.chat(messages, **kwargs)


@dataclass
class ProviderInfo:
    """Information about a provider for selection."""
    name: str
    is_local: bool
    rate_limit_requests_per_day: int
    models: List[str]
    requires_api_key: bool


# Provider metadata for auto-selection
PROVIDER_INFO = {
    "openai": ProviderInfo(
        name="openai",
        is_local=False,
        rate_limit_requests_per_day=10000,
        models=["gpt-4o", "gpt-4o-mini", "gpt-4-turbo"],
        requires_api_key=True
    ),
    "groq": ProviderInfo(
        name="groq",
        is_local=False,
        rate_limit_requests_per_day=1000,
        models=["llama-3.3-70b-versatile", "llama-3.1-8b-instant"],
        requires_api_key=True
    ),
    "ollama": ProviderInfo(
        name="ollama",
        is_local=True,
        rate_limit_requests_per_day=999999,  # Unlimited (local)
        models=["qwen2.5:7b", "llama3.2:7b", "mistral:7b"],
        requires_api_key=False
    ),
}

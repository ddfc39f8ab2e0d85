"""
Groq LLM Provider.

Groq hosts open models behind an OpenAI-compatible API with a free tier,
used as a second choice when no OpenAI key is configured.

Sign up at: https://console.groq.com
"""

import os
from typing import Optional, List

from groq import Groq

from .base import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
    ProviderStatus
)


class GroqProvider(LLMProvider):
    """Groq LLM Provider using their Python SDK."""

    DEFAULT_MODEL = "llama-3.3-70b-versatile"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        **kwargs
    ):
        """
        Initialize Groq provider.

        Args:
            api_key: Groq API key (or set GROQ_API_KEY env var)
            model: Model to use (default: llama-3.3-70b-versatile)
            **kwargs: temperature / max_tokens / timeout overrides
        """
        self.api_key = api_key or os.environ.get("GROQ_API_KEY")

        config = LLMConfig(
            provider_name="groq",
            model=model,
            api_key=self.api_key,
            base_url="https://api.groq.com/openai/v1",
            temperature=kwargs.get("temperature", 0.4),
            max_tokens=kwargs.get("max_tokens", 4000),
            timeout=kwargs.get("timeout", 60)
        )
        super().__init__(config)

        self._client: Optional[Groq] = None
        if self.api_key:
            self._client = Groq(api_key=self.api_key, timeout=self.config.timeout)
            self._status = ProviderStatus.AVAILABLE

    def is_available(self) -> bool:
        """Check if Groq is available."""
        return self._client is not None and self._status != ProviderStatus.NOT_CONFIGURED

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send a chat completion request to Groq."""
        if not self.is_available():
            raise RuntimeError(
                "Groq not available. Set GROQ_API_KEY environment variable.\n"
                "Get your free API key at: https://console.groq.com"
            )

        msg_dicts = [{"role": m.role, "content": m.content} for m in messages]
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=msg_dicts,
                temperature=temperature if temperature is not None else self.config.temperature,
                max_tokens=max_tokens or self.config.max_tokens,
                **kwargs
            )
        except Exception as e:
            if "rate" in str(e).lower() or "429" in str(e):
                self._status = ProviderStatus.RATE_LIMITED
            else:
                self._status = ProviderStatus.ERROR
            raise

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            provider="groq",
            usage={
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens
            },
            finish_reason=response.choices[0].finish_reason or "stop",
            raw_response=response
        )


def create_groq_provider(model: str = GroqProvider.DEFAULT_MODEL) -> Optional[GroqProvider]:
    """
    Factory function to create a Groq provider if configured.

    Returns:
        GroqProvider if GROQ_API_KEY is set, None otherwise
    """
    api_key = os.environ.get("GROQ_API_KEY")
    if not api_key:
        return None

    return GroqProvider(api_key=api_key, model=model)

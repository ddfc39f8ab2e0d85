"""
OpenAI provider for chat completions.
"""

import os
from typing import Optional, List

from openai import OpenAI

from ..logging_config import get_logger
from .base import LLMProvider, LLMConfig, LLMResponse, Message, ProviderStatus

logger = get_logger(__name__)


class OpenAIProvider(LLMProvider):
    """OpenAI chat completions using the official SDK."""

    DEFAULT_MODEL = "gpt-4o"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        base_url: Optional[str] = None,
        organization: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key (or set OPENAI_API_KEY env var)
            model: Model to use (gpt-4o, gpt-4o-mini, ...)
            base_url: Custom base URL (proxies, compatible endpoints)
            organization: OpenAI organization ID (optional)
        """
        self.api_key = api_key or os.getenv("OPENAI_API_KEY")
        self.base_url = base_url or os.getenv("OPENAI_BASE_URL")
        self.organization = organization or os.getenv("OPENAI_ORG_ID")

        config = LLMConfig(
            provider_name="openai",
            model=model,
            api_key=self.api_key,
            base_url=self.base_url,
            **kwargs
        )
        super().__init__(config)

        self._client: Optional[OpenAI] = None
        self._init_client()

    def _init_client(self):
        """Initialize the OpenAI client."""
        if not self.api_key:
            self._status = ProviderStatus.NOT_CONFIGURED
            return

        client_kwargs = {"api_key": self.api_key, "timeout": self.config.timeout}
        if self.base_url:
            client_kwargs["base_url"] = self.base_url
        if self.organization:
            client_kwargs["organization"] = self.organization

        self._client = OpenAI(**client_kwargs)
        self._status = ProviderStatus.AVAILABLE

    @property
    def client(self) -> Optional[OpenAI]:
        return self._client

    def is_available(self) -> bool:
        """Check if OpenAI is available and configured."""
        return self._client is not None and self.api_key is not None

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send a chat completion request to OpenAI."""
        if not self.is_available():
            raise RuntimeError("OpenAI provider is not available. Check API key.")

        openai_messages = [
            {"role": msg.role, "content": msg.content}
            for msg in messages
        ]
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            response = self._client.chat.completions.create(
                model=self.config.model,
                messages=openai_messages,
                temperature=temperature if temperature is not None else self.config.temperature,
                max_tokens=max_tokens or self.config.max_tokens,
                **kwargs
            )
        except Exception as e:
            error_str = str(e).lower()
            if "rate_limit" in error_str or "429" in error_str or "quota" in error_str:
                self._status = ProviderStatus.RATE_LIMITED
                logger.warning("OpenAI rate limit or quota exceeded")
            else:
                self._status = ProviderStatus.ERROR
            raise

        usage = {
            "prompt_tokens": response.usage.prompt_tokens if response.usage else 0,
            "completion_tokens": response.usage.completion_tokens if response.usage else 0,
            "total_tokens": response.usage.total_tokens if response.usage else 0,
        }

        return LLMResponse(
            content=response.choices[0].message.content or "",
            model=response.model,
            provider="openai",
            usage=usage,
            finish_reason=response.choices[0].finish_reason or "stop",
            raw_response=response
        )


def create_openai_provider(model: str = OpenAIProvider.DEFAULT_MODEL) -> Optional[OpenAIProvider]:
    """
    Factory function to create an OpenAI provider if configured.

    Returns:
        OpenAIProvider if OPENAI_API_KEY is set, None otherwise
    """
    if not os.getenv("OPENAI_API_KEY"):
        return None
    return OpenAIProvider(model=model)

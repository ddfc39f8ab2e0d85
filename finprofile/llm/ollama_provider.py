"""
Ollama LLM Provider.

Runs the classifier against a local Ollama server (no API key, no quota).
Useful for development and as the last provider in the priority list.

Pull a model first: ollama pull qwen2.5:7b
"""

import os
from typing import Optional, List

import requests

from ..logging_config import get_logger
from .base import (
    LLMProvider,
    LLMConfig,
    LLMResponse,
    Message,
    ProviderStatus
)

logger = get_logger(__name__)


class OllamaProvider(LLMProvider):
    """Ollama LLM Provider for local model inference."""

    DEFAULT_MODEL = "qwen2.5:7b"
    DEFAULT_HOST = "http://localhost:11434"

    def __init__(
        self,
        model: str = DEFAULT_MODEL,
        host: Optional[str] = None,
        **kwargs
    ):
        """
        Initialize Ollama provider.

        Args:
            model: Model to use (default: qwen2.5:7b, handles Hebrew JSON well)
            host: Ollama server URL (default: http://localhost:11434)
            **kwargs: temperature / max_tokens / timeout overrides
        """
        self.host = host or os.environ.get("OLLAMA_HOST", self.DEFAULT_HOST)

        config = LLMConfig(
            provider_name="ollama",
            model=model,
            base_url=self.host,
            temperature=kwargs.get("temperature", 0.4),
            max_tokens=kwargs.get("max_tokens", 4000),
            timeout=kwargs.get("timeout", 300)  # Local inference can be slower
        )
        super().__init__(config)

        self._check_availability()

    def _check_availability(self):
        """Check if Ollama is running and the model is pulled."""
        try:
            response = requests.get(f"{self.host}/api/tags", timeout=5)
        except requests.exceptions.RequestException:
            self._status = ProviderStatus.NOT_CONFIGURED
            return

        if response.status_code != 200:
            self._status = ProviderStatus.ERROR
            return

        self._status = ProviderStatus.AVAILABLE
        model_names = [m.get("name", "") for m in response.json().get("models", [])]
        if not any(self.config.model in name for name in model_names):
            logger.warning(
                f"Model '{self.config.model}' not found locally (available: {model_names}). "
                f"Pull it with: ollama pull {self.config.model}"
            )

    def is_available(self) -> bool:
        """Check if Ollama is available."""
        return self._status == ProviderStatus.AVAILABLE

    def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        json_mode: bool = False,
        **kwargs
    ) -> LLMResponse:
        """Send a chat completion request to Ollama."""
        if not self.is_available():
            raise RuntimeError(
                "Ollama not available. Please ensure Ollama is running.\n"
                "Start: ollama serve\n"
                f"Pull model: ollama pull {self.config.model}"
            )

        payload = {
            "model": self.config.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "stream": False,
            "options": {
                "temperature": temperature if temperature is not None else self.config.temperature,
                "num_predict": max_tokens or self.config.max_tokens
            }
        }
        if json_mode:
            payload["format"] = "json"

        try:
            response = requests.post(
                f"{self.host}/api/chat",
                json=payload,
                timeout=self.config.timeout
            )
            response.raise_for_status()
        except requests.exceptions.Timeout:
            self._status = ProviderStatus.ERROR
            raise RuntimeError(
                f"Ollama request timed out after {self.config.timeout}s. "
                "Local inference can be slow; try a smaller model."
            )
        except requests.exceptions.RequestException as e:
            self._status = ProviderStatus.ERROR
            raise RuntimeError(f"Ollama request failed: {e}")

        data = response.json()
        prompt_tokens = data.get("prompt_eval_count", 0)
        completion_tokens = data.get("eval_count", 0)

        return LLMResponse(
            content=data["message"]["content"],
            model=data.get("model", self.config.model),
            provider="ollama",
            usage={
                "prompt_tokens": prompt_tokens,
                "completion_tokens": completion_tokens,
                "total_tokens": prompt_tokens + completion_tokens
            },
            finish_reason=data.get("done_reason", "stop"),
            raw_response=data
        )


def create_ollama_provider(model: str = OllamaProvider.DEFAULT_MODEL) -> Optional[OllamaProvider]:
    """
    Factory function to create an Ollama provider if the server is up.

    Returns:
        OllamaProvider if Ollama is running, None otherwise
    """
    provider = OllamaProvider(model=model)
    if provider.is_available():
        return provider
    return None

"""
LLM provider layer used by the profile classifier.

Supports:
- OpenAI (primary)
- Groq (cloud, free tier)
- Ollama (local)
"""

from .base import LLMProvider, LLMResponse, LLMConfig, Message, ProviderStatus
from .openai_provider import OpenAIProvider
from .groq_provider import GroqProvider
from .ollama_provider import OllamaProvider
from .manager import LLMManager, LLMManagerConfig, get_llm_manager

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "LLMConfig",
    "Message",
    "ProviderStatus",
    "OpenAIProvider",
    "GroqProvider",
    "OllamaProvider",
    "LLMManager",
    "LLMManagerConfig",
    "get_llm_manager"
]

"""
LLM Provider abstraction layer.

Supports multiple AI providers (Anthropic, OpenAI, Google) with a unified interface.
"""

from .base import LLMProvider, LLMResponse
from .factory import create_provider, get_provider_from_env, ProviderType

__all__ = [
    "LLMProvider",
    "LLMResponse",
    "create_provider",
    "get_provider_from_env",
    "ProviderType",
]

"""
Provider factory for creating LLM provider instances.

Handles provider selection based on configuration and available API keys.
"""

from enum import Enum

from .base import LLMProvider


class ProviderType(Enum):
    """Available LLM provider types."""
    ANTHROPIC = "anthropic"
    OPENAI = "openai"
    GOOGLE = "google"


def create_provider(
    provider_type: ProviderType | str,
    api_key: str,
    default_model: str | None = None,
) -> LLMProvider:
    """
    Create an LLM provider instance.

    SDKs are imported lazily so only the selected vendor's package is loaded.

    Raises:
        ValueError: If provider_type is unknown
    """
    if isinstance(provider_type, str):
        try:
            provider_type = ProviderType(provider_type.lower())
        except ValueError:
            raise ValueError(
                f"Unknown provider: {provider_type}. "
                f"Available: {[p.value for p in ProviderType]}"
            )

    if provider_type == ProviderType.ANTHROPIC:
        from .anthropic import AnthropicProvider
        return AnthropicProvider(api_key=api_key, default_model=default_model or "claude-haiku-4-5")
    elif provider_type == ProviderType.OPENAI:
        from .openai import OpenAIProvider
        return OpenAIProvider(api_key=api_key, default_model=default_model or "gpt-4o-mini")
    elif provider_type == ProviderType.GOOGLE:
        from .google import GoogleProvider
        return GoogleProvider(api_key=api_key, default_model=default_model or "gemini-2.5-flash")
    else:
        raise ValueError(f"Unknown provider type: {provider_type}")


def get_provider_from_env(
    anthropic_key: str | None = None,
    openai_key: str | None = None,
    google_key: str | None = None,
    preferred_provider: str | None = None,
    default_model: str | None = None,
) -> LLMProvider | None:
    """
    Create a provider from available environment keys.

    Uses the preferred provider when its key is set, otherwise the first
    configured key in order Anthropic > OpenAI > Google.

    Returns:
        Configured LLMProvider or None if no keys available
    """
    providers = {
        ProviderType.ANTHROPIC: anthropic_key,
        ProviderType.OPENAI: openai_key,
        ProviderType.GOOGLE: google_key,
    }

    if preferred_provider:
        try:
            pref_type = ProviderType(preferred_provider.lower())
            if providers.get(pref_type):
                return create_provider(pref_type, providers[pref_type], default_model=default_model)
        except ValueError:
            pass  # Invalid provider name, fall through to default order

    for provider_type, api_key in providers.items():
        if api_key:
            return create_provider(provider_type, api_key, default_model=default_model)

    return None

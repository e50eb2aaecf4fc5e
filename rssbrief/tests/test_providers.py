"""
Tests for LLM provider selection and response normalization.
"""

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from rssbrief.providers import ProviderType, create_provider, get_provider_from_env


class TestProviderSelection:

    def test_no_keys(self):
        assert get_provider_from_env() is None

    def test_default_order_prefers_anthropic(self):
        provider = get_provider_from_env(anthropic_key="a", openai_key="o")
        assert provider.name == "anthropic"
        assert provider.default_model == "claude-haiku-4-5"

    def test_preferred_provider(self):
        provider = get_provider_from_env(anthropic_key="a", openai_key="o", preferred_provider="OpenAI")
        assert provider.name == "openai"

    def test_preferred_without_key_falls_back(self):
        provider = get_provider_from_env(openai_key="o", preferred_provider="google")
        assert provider.name == "openai"

    def test_model_override_and_alias(self):
        provider = create_provider(ProviderType.ANTHROPIC, "a", default_model="sonnet")
        assert provider.default_model == "claude-sonnet-4-5"

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            create_provider("cohere", "k")


class TestResponses:

    def test_anthropic_joins_text_blocks(self):
        provider = create_provider("anthropic", "a")
        provider.client = MagicMock()
        provider.client.messages.create.return_value = SimpleNamespace(
            content=[SimpleNamespace(type="text", text="Council "), SimpleNamespace(type="text", text="votes.")],
            usage=SimpleNamespace(input_tokens=120, output_tokens=4),
            stop_reason="end_turn",
        )

        response = provider.complete("Summarize", system_prompt="Be brief", max_tokens=500)

        assert response.text == "Council votes."
        assert response.input_tokens == 120
        kwargs = provider.client.messages.create.call_args.kwargs
        assert kwargs["system"] == "Be brief"
        assert kwargs["max_tokens"] == 500

    def test_openai_sends_system_message(self):
        provider = create_provider("openai", "o")
        provider.client = MagicMock()
        provider.client.chat.completions.create.return_value = SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content="Summary."), finish_reason="stop")],
            usage=SimpleNamespace(prompt_tokens=50, completion_tokens=2),
        )

        response = provider.complete("Summarize", system_prompt="Be brief")

        assert response.text == "Summary."
        messages = provider.client.chat.completions.create.call_args.kwargs["messages"]
        assert messages[0] == {"role": "system", "content": "Be brief"}

    @pytest.mark.asyncio
    async def test_complete_async_runs_in_executor(self, mock_provider):
        response = await mock_provider.complete_async("Summarize")
        assert response.text == "A short summary."

"""Unit tests for LLM provider adapters — OpenAI, Anthropic, Ollama."""

from __future__ import annotations

from collections.abc import AsyncIterator
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from src.config.settings import Settings
from src.models.document import ChatMessage
from src.utils.errors import LLMError


# ======================================================================
# Shared helpers
# ======================================================================

def _settings(**overrides) -> Settings:
    defaults = {
        "openai_api_key": "sk-test",
        "openai_base_url": "",
        "openai_text_model": "",
        "anthropic_api_key": "test-anthropic",
        "anthropic_model": "",
        "ollama_base_url": "http://localhost:11434",
        "ollama_model": "",
    }
    defaults.update(overrides)
    return Settings(**defaults)


async def _aiter(items: list) -> AsyncIterator:
    for item in items:
        yield item


def _openai_event(content: str | None) -> MagicMock:
    return MagicMock(choices=[MagicMock(delta=MagicMock(content=content))])


async def _drain(stream: AsyncIterator[str]) -> list[str]:
    return [fragment async for fragment in stream]


_HISTORY = [
    ChatMessage(role="user", text="Olá"),
    ChatMessage(role="model", text="Oi! Como posso ajudar?"),
    ChatMessage(role="user", text="Quantos casos de dengue?"),
]


class _FakeAnthropicStream:
    """Stands in for the ``messages.stream`` async context manager."""

    def __init__(self, texts: list[str]) -> None:
        self.text_stream = _aiter(texts)

    async def __aenter__(self) -> _FakeAnthropicStream:
        return self

    async def __aexit__(self, *exc_info: object) -> bool:
        return False


# ======================================================================
# OpenAI LLM Provider
# ======================================================================


class TestOpenAILLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider
        assert OpenAILLMProvider(settings).get_provider_name() == "openai"

    def test_custom_base_url_changes_label(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider
        provider = OpenAILLMProvider(_settings(openai_base_url="https://api.together.xyz/v1"))
        assert provider.get_provider_name() == "openai-compatible"

    def test_is_available_with_key(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider
        assert OpenAILLMProvider(settings).is_available() is True

    def test_is_available_without_key(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider
        assert OpenAILLMProvider(_settings(openai_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_stream_without_key_raises_before_building_client(self) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI") as mock_cls:
            provider = OpenAILLMProvider(_settings(openai_api_key=""))
            with pytest.raises(LLMError):
                await _drain(provider.stream_chat("sistema", _HISTORY))

        mock_cls.assert_not_called()

    def test_message_conversion(self) -> None:
        from src.providers.llm.openai_provider import to_openai_messages

        payload = to_openai_messages("sistema", _HISTORY)
        assert [m["role"] for m in payload] == ["system", "user", "assistant", "user"]
        assert payload[0]["content"] == "sistema"

    @pytest.mark.asyncio
    async def test_stream_chat_success(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider

        events = [
            _openai_event("Foram "),
            MagicMock(choices=[]),
            _openai_event(None),
            _openai_event("42 casos."),
        ]
        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(return_value=_aiter(events))

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            fragments = await _drain(provider.stream_chat("sistema", _HISTORY, temperature=0.2))

        assert fragments == ["Foram ", "42 casos."]
        kwargs = mock_client.chat.completions.create.call_args.kwargs
        assert kwargs["stream"] is True
        assert kwargs["temperature"] == 0.2
        assert kwargs["model"] == "gpt-4o-mini"

    @pytest.mark.asyncio
    async def test_stream_chat_error(self, settings: Settings) -> None:
        from src.providers.llm.openai_provider import OpenAILLMProvider
        import openai

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            side_effect=openai.APIError(
                message="Rate limit exceeded",
                request=MagicMock(),
                body=None,
            )
        )

        with patch("src.providers.llm.openai_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OpenAILLMProvider(settings)
            with pytest.raises(LLMError):
                await _drain(provider.stream_chat("sistema", _HISTORY))


# ======================================================================
# Anthropic LLM Provider
# ======================================================================


class TestAnthropicLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider
        assert AnthropicLLMProvider(settings).get_provider_name() == "anthropic"

    def test_is_available_without_key(self) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider
        assert AnthropicLLMProvider(_settings(anthropic_api_key="")).is_available() is False

    @pytest.mark.asyncio
    async def test_stream_without_key_raises_before_building_client(self) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider

        with patch("src.providers.llm.anthropic_provider.anthropic.AsyncAnthropic") as mock_cls:
            provider = AnthropicLLMProvider(_settings(anthropic_api_key=""))
            with pytest.raises(LLMError):
                await _drain(provider.stream_chat("sistema", _HISTORY))

        mock_cls.assert_not_called()

    def test_message_conversion_merges_and_trims(self) -> None:
        from src.providers.llm.anthropic_provider import to_anthropic_messages

        messages = [
            ChatMessage(role="model", text="Bem-vindo"),
            ChatMessage(role="user", text="a"),
            ChatMessage(role="user", text="b"),
            ChatMessage(role="model", text="c"),
        ]
        turns = to_anthropic_messages(messages)
        assert turns == [
            {"role": "user", "content": "a\n\nb"},
            {"role": "assistant", "content": "c"},
        ]

    @pytest.mark.asyncio
    async def test_stream_chat_success(self, settings: Settings) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider

        mock_client = MagicMock()
        mock_client.messages.stream = MagicMock(
            return_value=_FakeAnthropicStream(["Segundo ", "", "o DATASUS"])
        )

        with patch("src.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=mock_client):
            provider = AnthropicLLMProvider(settings)
            fragments = await _drain(provider.stream_chat("sistema", _HISTORY))

        assert fragments == ["Segundo ", "o DATASUS"]
        kwargs = mock_client.messages.stream.call_args.kwargs
        assert kwargs["system"] == "sistema"
        assert kwargs["messages"][0] == {"role": "user", "content": "Olá"}

    @pytest.mark.asyncio
    async def test_stream_chat_error(self, settings: Settings) -> None:
        from src.providers.llm.anthropic_provider import AnthropicLLMProvider
        import anthropic

        mock_client = MagicMock()
        mock_client.messages.stream = MagicMock(
            side_effect=anthropic.APIError(message="overloaded", request=MagicMock(), body=None)
        )

        with patch("src.providers.llm.anthropic_provider.anthropic.AsyncAnthropic", return_value=mock_client):
            provider = AnthropicLLMProvider(settings)
            with pytest.raises(LLMError):
                await _drain(provider.stream_chat("sistema", _HISTORY))


# ======================================================================
# Ollama LLM Provider
# ======================================================================


class TestOllamaLLMProvider:
    @pytest.fixture()
    def settings(self) -> Settings:
        return _settings()

    def test_get_provider_name(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider
        assert OllamaLLMProvider(settings).get_provider_name() == "ollama"

    def test_is_available(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider
        assert OllamaLLMProvider(settings).is_available() is True
        assert OllamaLLMProvider(_settings(ollama_base_url="")).is_available() is False

    def test_client_points_at_v1_endpoint(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        with patch("src.providers.llm.ollama_provider.openai.AsyncOpenAI") as mock_cls:
            OllamaLLMProvider(settings)
        assert mock_cls.call_args.kwargs["base_url"] == "http://localhost:11434/v1"

    @pytest.mark.asyncio
    async def test_stream_chat_success(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        mock_client = AsyncMock()
        mock_client.chat.completions.create = AsyncMock(
            return_value=_aiter([_openai_event("local "), _openai_event("ok")])
        )

        with patch("src.providers.llm.ollama_provider.openai.AsyncOpenAI", return_value=mock_client):
            provider = OllamaLLMProvider(settings)
            fragments = await _drain(provider.stream_chat("sistema", _HISTORY))

        assert fragments == ["local ", "ok"]
        assert mock_client.chat.completions.create.call_args.kwargs["model"] == "llama3.1"

    @pytest.mark.asyncio
    async def test_validate_connection_failure(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider
        import httpx

        mock_http = AsyncMock()
        mock_http.__aenter__.return_value = mock_http
        mock_http.get = AsyncMock(side_effect=httpx.ConnectError("refused"))

        with patch("src.providers.llm.ollama_provider.httpx.AsyncClient", return_value=mock_http):
            provider = OllamaLLMProvider(settings)
            assert await provider.validate_connection() is False

    @pytest.mark.asyncio
    async def test_validate_connection_success(self, settings: Settings) -> None:
        from src.providers.llm.ollama_provider import OllamaLLMProvider

        mock_http = AsyncMock()
        mock_http.__aenter__.return_value = mock_http
        mock_http.get = AsyncMock(return_value=MagicMock(status_code=200))

        with patch("src.providers.llm.ollama_provider.httpx.AsyncClient", return_value=mock_http):
            provider = OllamaLLMProvider(settings)
            assert await provider.validate_connection() is True

        assert mock_http.get.call_args.args[0] == "http://localhost:11434/api/tags"

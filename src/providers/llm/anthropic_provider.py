"""Anthropic LLM provider adapter.

Wraps the ``anthropic`` async client to implement :class:`ILLMProvider`.

Differences from the OpenAI adapter:
    - Uses the Messages API (not chat.completions)
    - System prompt is a separate parameter, not a message in the list
    - Streaming goes through the ``messages.stream`` context manager,
      whose ``text_stream`` yields only text deltas
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import anthropic
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.models.document import ChatMessage
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

_ROLE_MAP = {"user": "user", "model": "assistant"}


def to_anthropic_messages(messages: list[ChatMessage]) -> list[dict]:
    """Convert chat history into Messages API turns.

    The API rejects two consecutive turns with the same role and requires
    the first turn to come from the user, so adjacent same-role turns are
    merged and a leading assistant turn is dropped.
    """
    turns: list[dict] = []
    for message in messages:
        role = _ROLE_MAP.get(message.role, "user")
        if not turns and role == "assistant":
            continue
        if turns and turns[-1]["role"] == role:
            turns[-1]["content"] = f"{turns[-1]['content']}\n\n{message.text}"
        else:
            turns.append({"role": role, "content": message.text})
    return turns


class AnthropicLLMProvider(ILLMProvider):
    """LLM provider backed by the Anthropic Claude API.

    Model defaults to ``claude-sonnet-4-20250514``; override with
    ``ANTHROPIC_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.anthropic_api_key
        self._client: anthropic.AsyncAnthropic | None = None
        self._model = settings.anthropic_model or "claude-sonnet-4-20250514"

    def _get_client(self) -> anthropic.AsyncAnthropic:
        if not self._api_key:
            raise LLMError(
                message="Anthropic API key is not configured",
                provider_name=self.get_provider_name(),
            )
        if self._client is None:
            self._client = anthropic.AsyncAnthropic(api_key=self._api_key)
        return self._client

    # ------------------------------------------------------------------
    # ILLMProvider implementation
    # ------------------------------------------------------------------

    async def stream_chat(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> AsyncIterator[str]:
        """Stream a completion via the Anthropic Messages API."""
        client = self._get_client()
        fragments = 0
        try:
            async with client.messages.stream(
                model=self._model,
                max_tokens=max_tokens,
                system=system_prompt,
                messages=to_anthropic_messages(messages),
                temperature=temperature,
            ) as stream:
                async for text in stream.text_stream:
                    if text:
                        fragments += 1
                        yield text
        except anthropic.APIError as exc:
            raise LLMError(
                message=f"Anthropic API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info("anthropic_stream_complete", model=self._model, fragments=fragments)

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        return "anthropic"

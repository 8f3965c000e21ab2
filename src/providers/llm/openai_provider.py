"""OpenAI-compatible LLM provider adapter.

Wraps the ``openai`` async client to implement :class:`ILLMProvider`.
When a custom ``openai_base_url`` is configured (e.g. TogetherAI, Groq,
Fireworks), the client points at that URL instead of the default OpenAI
endpoint.

Many hosted LLM services expose OpenAI-compatible REST APIs, so this one
adapter covers most of them.  The Ollama adapter reuses it as well.
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.models.document import ChatMessage
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)

# The client's history uses "model" for assistant turns.
_ROLE_MAP = {"user": "user", "model": "assistant"}


def to_openai_messages(system_prompt: str, messages: list[ChatMessage]) -> list[dict]:
    """Build a chat.completions ``messages`` payload, system prompt first."""
    payload: list[dict] = [{"role": "system", "content": system_prompt}]
    payload.extend(
        {"role": _ROLE_MAP.get(m.role, "user"), "content": m.text} for m in messages
    )
    return payload


class OpenAILLMProvider(ILLMProvider):
    """LLM provider backed by an OpenAI-compatible API.

    Uses ``gpt-4o-mini`` by default; override with ``OPENAI_TEXT_MODEL``.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key
        self._client: openai.AsyncOpenAI | None = None
        self._text_model = settings.openai_text_model or "gpt-4o-mini"
        self._provider_label = (
            "openai-compatible" if settings.openai_base_url else "openai"
        )

    def _get_client(self) -> openai.AsyncOpenAI:
        """Build the SDK client on first use; the SDK rejects an empty key."""
        if not self._api_key:
            raise LLMError(
                message=f"{self._provider_label} API key is not configured",
                provider_name=self.get_provider_name(),
            )
        if self._client is None:
            # Streams can legitimately run long, so only the connect phase is tight.
            client_kwargs: dict = {
                "api_key": self._api_key,
                "timeout": openai.Timeout(120.0, connect=5.0),
            }
            if self._settings.openai_base_url:
                client_kwargs["base_url"] = self._settings.openai_base_url
            self._client = openai.AsyncOpenAI(**client_kwargs)
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
        """Stream a completion from the chat.completions endpoint."""
        client = self._get_client()
        fragments = 0
        try:
            stream = await client.chat.completions.create(
                model=self._text_model,
                messages=to_openai_messages(system_prompt, messages),
                temperature=temperature,
                max_tokens=max_tokens,
                stream=True,
            )
            async for event in stream:
                if not event.choices:
                    continue
                delta = event.choices[0].delta.content
                if delta:
                    fragments += 1
                    yield delta
        except openai.APITimeoutError as exc:
            raise LLMError(
                message=f"{self._provider_label} timed out",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            raise LLMError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.info(
            "openai_stream_complete",
            model=self._text_model,
            provider=self._provider_label,
            fragments=fragments,
        )

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured (doesn't verify it works)."""
        return bool(self._api_key)

    def get_provider_name(self) -> str:
        """Return 'openai' or 'openai-compatible' depending on configuration."""
        return self._provider_label

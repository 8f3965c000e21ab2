"""Ollama LLM provider adapter.

Wraps a local Ollama server via its OpenAI-compatible API endpoint.
Uses the ``openai`` client library pointed at the Ollama base URL.

Ollama runs models locally, so the assistant keeps working without any
cloud API key.  Local models are usually weaker at following the
"answer only from context" instruction than hosted ones.

Setup: Install Ollama (https://ollama.ai), then ``ollama pull llama3.1``.
Set OLLAMA_BASE_URL=http://localhost:11434
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
import openai
import structlog

from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.models.document import ChatMessage
from src.providers.llm.openai_provider import to_openai_messages
from src.utils.errors import LLMError

logger = structlog.get_logger(logger_name=__name__)


class OllamaLLMProvider(ILLMProvider):
    """LLM provider backed by a local Ollama server.

    Ollama exposes an OpenAI-compatible ``/v1`` API, so this adapter
    reuses ``openai.AsyncOpenAI`` pointed at the local URL.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._base_url = settings.ollama_base_url
        self._client = openai.AsyncOpenAI(
            base_url=f"{self._base_url.rstrip('/')}/v1",
            # The SDK insists on a non-empty key; Ollama ignores it.
            api_key="ollama",
        )
        self._text_model = settings.ollama_model or "llama3.1"

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
        """Stream a completion via Ollama's OpenAI-compatible API."""
        try:
            stream = await self._client.chat.completions.create(
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
                    yield delta
        except openai.APIError as exc:
            raise LLMError(
                message=f"Ollama API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("ollama_stream_complete", model=self._text_model)

    def is_available(self) -> bool:
        """Return ``True`` if the Ollama base URL is configured."""
        return bool(self._base_url)

    async def validate_connection(self) -> bool:
        """Check that the Ollama server is running and reachable.

        Hits the native ``/api/tags`` endpoint, which lists installed
        models without running inference.
        """
        if not self.is_available():
            return False
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                response = await client.get(f"{self._base_url.rstrip('/')}/api/tags")
                return response.status_code == 200
        except httpx.HTTPError:
            return False

    def get_provider_name(self) -> str:
        return "ollama"

"""Abstract base class for LLM service providers.

Defines the contract for the streaming chat completion used to answer
user questions from retrieved context.  Implementations wrap the Anthropic
API, OpenAI (or any OpenAI-compatible endpoint), or a local Ollama server,
keeping the Q&A service provider-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import AsyncIterator

from src.models.document import ChatMessage


# Concrete implementations: AnthropicLLMProvider, OpenAILLMProvider, OllamaLLMProvider
# Located in: src/providers/llm/
class ILLMProvider(ABC):
    """Contract for the answer-generation LLM."""

    @abstractmethod
    def stream_chat(
        self,
        system_prompt: str,
        messages: list[ChatMessage],
        temperature: float = 0.3,
        max_tokens: int = 4000,
    ) -> AsyncIterator[str]:
        """Stream a chat completion as text fragments.

        Parameters
        ----------
        system_prompt:
            Instruction message that sets the model's behaviour.
        messages:
            Conversation turns, oldest first.  The last one is the user's
            prompt including the retrieved context.
        temperature:
            Sampling temperature (0.0 = deterministic).
        max_tokens:
            Upper bound on the number of tokens in the response.

        Yields
        ------
        str
            Non-empty text fragments in generation order.

        Raises
        ------
        src.utils.errors.LLMError
            If the API call fails before or during streaming.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier, e.g. ``"openai"``."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured.

        Implementations check credentials/URLs without making a call.
        """

    async def validate_connection(self) -> bool:
        """Return ``True`` if the provider can be reached right now.

        Defaults to :meth:`is_available`; adapters with a cheap liveness
        endpoint override it with a real request.
        """
        return self.is_available()

"""LLM provider adapters.

Three concrete implementations of ILLMProvider (src/interfaces/llm_provider.py):
    - AnthropicLLMProvider — Claude via the Messages streaming API
    - OpenAILLMProvider    — gpt-4o-mini (also any OpenAI-compatible API)
    - OllamaLLMProvider    — local models via an Ollama server

At startup, main.py creates the provider matching the available API key
(ANTHROPIC_API_KEY, then OPENAI_API_KEY), falling back to Ollama, and
hands it to the QAService.
"""

from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider

__all__ = ["OpenAILLMProvider", "AnthropicLLMProvider", "OllamaLLMProvider"]

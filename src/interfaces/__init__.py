"""Public interface definitions for Gonçalinho's swappable components.

Persistence and the LLM are accessed exclusively through the abstract
base classes in this package.  Concrete adapters live in ``src/providers/``
and are wired together in ``src/main.py``, so tests can inject fakes and
deployments can swap backends without touching the services.

CONCRETE PROVIDER MAP:
    Interface         →  Concrete implementations (in src/providers/)
    ─────────────────────────────────────────────────────────────────
    IDocumentStore    →  JSONDocumentStore
    ILLMProvider      →  AnthropicLLMProvider, OpenAILLMProvider,
                         OllamaLLMProvider
"""

from src.interfaces.document_store import IDocumentStore
from src.interfaces.llm_provider import ILLMProvider

__all__ = [
    "IDocumentStore",
    "ILLMProvider",
]

"""Document store provider implementations.

JSONDocumentStore is the sole implementation: two whole-file JSON
collections (documents, chunks) under the configured data directory.

To move to SQLite or an append-only log, create a new class implementing
IDocumentStore and register it in main.py; the services only see the
interface.
"""

from src.providers.store.json_document_store import JSONDocumentStore

__all__ = ["JSONDocumentStore"]

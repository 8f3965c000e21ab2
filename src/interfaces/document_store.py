"""Abstract base class for the document/chunk store.

The store exclusively owns every Document and Chunk record.  Other
components hold only transient working copies during a single operation.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import Chunk, Document


# Concrete implementation: JSONDocumentStore
# Located in: src/providers/store/
class IDocumentStore(ABC):
    """Contract for durable document and chunk persistence.

    Implementations must serialise mutations (a single writer) and make
    each write atomic so concurrent readers never observe a partial file.
    """

    @abstractmethod
    async def list_documents(self) -> list[Document]:
        """Return every document in insertion order."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document with *document_id*, or ``None``."""

    @abstractmethod
    async def append_document(self, document: Document) -> None:
        """Persist one new document.

        Raises
        ------
        src.utils.errors.StoreWriteError
            If the backing medium cannot be written.
        """

    @abstractmethod
    async def append_chunks(self, chunks: list[Chunk]) -> None:
        """Persist a batch of chunks, preserving their order.

        Raises
        ------
        src.utils.errors.StoreWriteError
            If the backing medium cannot be written.
        """

    @abstractmethod
    async def delete_document(self, document_id: str) -> bool:
        """Remove a document and every chunk whose ``document_id`` matches.

        Deleting an unknown id is a no-op, not an error.

        Returns
        -------
        bool
            ``True`` if a document or any chunk was removed.
        """

    @abstractmethod
    async def list_chunks(self) -> list[Chunk]:
        """Return every stored chunk in storage order."""

"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **extract -> chunk -> tag -> store**.

The :class:`IngestionService` coordinates the extractor registry, the two
chunkers and the document store without any of them knowing about each
other.  For one upload it:

    1. Allocates the document id
    2. Extracts text or row records (in a worker thread; parsers block)
    3. Chunks them with the strategy matching the extractor output
    4. Tags each block with ``{document_id}_{index}`` and a full copy of
       the document metadata
    5. Persists the Document, then its Chunks

The store is injected via the constructor, so tests run against a
temporary directory and a different backend needs no change here.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from datetime import datetime, timezone
from pathlib import Path

import structlog

from src.interfaces.document_store import IDocumentStore
from src.models.document import Chunk, Document, DocumentMetadata, ExtractedContent
from src.services.ingestion.chunker import TableChunker, TextChunker
from src.services.ingestion.extractors import extract_content, file_extension
from src.utils.errors import (
    ExtractionError,
    GoncalinhoError,
    ProcessingError,
    StoreError,
    UnsupportedFormatError,
)

logger = structlog.get_logger(logger_name=__name__)

DEFAULT_TEXT_CHUNK_SIZES: dict[str, int] = {"pdf": 1000, "txt": 1000, "docx": 1500}
_FALLBACK_TEXT_CHUNK_SIZE = 1000


class IngestionService:
    """Turns one uploaded file plus its metadata into a stored Document.

    Parameters
    ----------
    store:
        Persistence for documents and chunks.
    text_chunk_sizes:
        Character budget per text format (``{"pdf": 1000, "docx": 1500}``).
        Formats not listed use 1000.
    table_group_size:
        Rows per table chunk.
    """

    def __init__(
        self,
        store: IDocumentStore,
        text_chunk_sizes: dict[str, int] | None = None,
        table_group_size: int = 20,
    ) -> None:
        self._store = store
        self._text_chunk_sizes = {**DEFAULT_TEXT_CHUNK_SIZES, **(text_chunk_sizes or {})}
        self._table_chunker = TableChunker(group_size=table_group_size)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(
        self,
        data: bytes,
        filename: str,
        metadata: DocumentMetadata,
        media_type: str | None = None,
    ) -> Document:
        """Extract, chunk and persist one file held in memory.

        Raises
        ------
        ProcessingError
            If extraction or persistence failed.  The cause is chained and
            logged; nothing of the document remains in the store.
        """
        start = time.monotonic()
        document_id = uuid.uuid4().hex
        doc_type = file_extension(filename, media_type)
        log = logger.bind(document_id=document_id, file_name=filename)

        # Step 1: extract and chunk.
        try:
            blocks = await asyncio.to_thread(self._extract_blocks, data, filename, media_type)
        except ExtractionError as exc:
            log.error("ingestion_extraction_failed", error=str(exc))
            raise ProcessingError(
                message=f"Could not extract content from {filename}",
                provider_name="ingestion",
            ) from exc

        # Step 2: build the document and its chunks.
        document = Document(
            id=document_id,
            name=filename,
            type=doc_type,
            created_at=datetime.now(timezone.utc),
            description=metadata.description,
            source=metadata.source,
            period=metadata.period,
            case_name=metadata.case_name,
            category=metadata.category,
        )
        chunks = self._build_chunks(document, blocks)

        # Step 3: persist, document first.
        try:
            await self._store.append_document(document)
        except StoreError as exc:
            log.error("ingestion_store_failed", stage="document", error=str(exc))
            raise ProcessingError(
                message=f"Could not store {filename}",
                provider_name="ingestion",
            ) from exc

        try:
            await self._store.append_chunks(chunks)
        except StoreError as exc:
            log.error("ingestion_store_failed", stage="chunks", error=str(exc))
            await self._rollback(document_id)
            raise ProcessingError(
                message=f"Could not store chunks for {filename}",
                provider_name="ingestion",
            ) from exc

        log.info(
            "ingestion_complete",
            type=doc_type,
            chunks=len(chunks),
            category=document.category.value,
            duration_s=round(time.monotonic() - start, 3),
        )
        return document

    async def ingest_file(
        self,
        path: str | Path,
        filename: str | None = None,
        metadata: DocumentMetadata | None = None,
        media_type: str | None = None,
    ) -> Document:
        """Ingest a temporary file on disk, deleting it afterwards.

        The file is removed on every exit path, including failures and
        task cancellation.
        """
        file_path = Path(path)
        try:
            try:
                data = await asyncio.to_thread(file_path.read_bytes)
            except OSError as exc:
                logger.error("ingestion_read_failed", path=str(file_path), error=str(exc))
                raise ProcessingError(
                    message=f"Could not read {file_path.name}",
                    provider_name="ingestion",
                ) from exc
            return await self.ingest(
                data,
                filename or file_path.name,
                metadata or DocumentMetadata(),
                media_type,
            )
        finally:
            self._remove_temp_file(file_path)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _extract_blocks(self, data: bytes, filename: str, media_type: str | None) -> list[str]:
        """Run the extractor for *filename* and chunk its output."""
        try:
            content = extract_content(data, filename, media_type)
        except UnsupportedFormatError as exc:
            logger.warning("ingestion_unsupported_format", file_name=filename, error=str(exc))
            return []
        return self._chunk(content)

    def _chunk(self, content: ExtractedContent) -> list[str]:
        if content.kind == "table":
            return self._table_chunker.chunk(content.rows)
        if content.kind == "text":
            size = self._text_chunk_sizes.get(content.format, _FALLBACK_TEXT_CHUNK_SIZE)
            return TextChunker(target_size=size).chunk(content.text)
        return []

    @staticmethod
    def _build_chunks(document: Document, blocks: list[str]) -> list[Chunk]:
        return [
            Chunk(
                id=f"{document.id}_{index}",
                document_id=document.id,
                index=index,
                content=block,
                category=document.category,
                case_name=document.case_name,
                description=document.description,
                source=document.source,
                period=document.period,
                file_name=document.name,
            )
            for index, block in enumerate(blocks)
        ]

    async def _rollback(self, document_id: str) -> None:
        """Best-effort removal of a document whose chunks failed to persist."""
        try:
            await self._store.delete_document(document_id)
            logger.info("ingestion_rolled_back", document_id=document_id)
        except GoncalinhoError as exc:
            # Leaves a document with zero chunks: an empty index, not corruption.
            logger.error("ingestion_rollback_failed", document_id=document_id, error=str(exc))

    @staticmethod
    def _remove_temp_file(path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("temp_file_cleanup_failed", path=str(path), error=str(exc))

"""JSON-file backed document store.

Persists two collections under the data directory:

- ``documents.json`` -- list of Document records
- ``chunks.json``    -- list of Chunk records

Each file is rewritten whole on every mutation (read-modify-write).  That
is fine for the small corpora this assistant serves, and it keeps the
on-disk state human-readable.  Two rules keep it safe:

1. **Single writer** -- every mutation is one read-modify-write in a
   worker thread, run under one ``asyncio.Lock`` as a shielded task, so
   two concurrent uploads can never both read the old contents, even when
   a caller is cancelled mid-write.
2. **Atomic replace** -- each file is written to a temporary sibling,
   fsync'd and moved into place with ``os.replace``.  Readers take no lock
   and see either the old or the new file, never a torn one.

Blocking file I/O runs in worker threads via ``asyncio.to_thread``.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar

import structlog
from pydantic import ValidationError

from src.interfaces.document_store import IDocumentStore
from src.models.document import Chunk, Document
from src.utils.errors import StoreError, StoreWriteError

logger = structlog.get_logger(logger_name=__name__)

_DOCUMENTS_FILE = "documents.json"
_CHUNKS_FILE = "chunks.json"
_PROVIDER = "json_store"

_T = TypeVar("_T")


class JSONDocumentStore(IDocumentStore):
    """Whole-file JSON persistence for documents and chunks.

    Parameters
    ----------
    data_dir:
        Directory holding ``documents.json`` and ``chunks.json``.  Created
        on first use.
    """

    def __init__(self, data_dir: str | Path) -> None:
        self._data_dir = Path(data_dir)
        self._documents_path = self._data_dir / _DOCUMENTS_FILE
        self._chunks_path = self._data_dir / _CHUNKS_FILE
        self._write_lock = asyncio.Lock()
        self._pending: set[asyncio.Future] = set()

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    # ------------------------------------------------------------------
    # IDocumentStore implementation
    # ------------------------------------------------------------------

    async def list_documents(self) -> list[Document]:
        records = await asyncio.to_thread(self._read_records, self._documents_path)
        return [self._load(Document, record, self._documents_path) for record in records]

    async def get_document(self, document_id: str) -> Document | None:
        for document in await self.list_documents():
            if document.id == document_id:
                return document
        return None

    async def list_chunks(self) -> list[Chunk]:
        records = await asyncio.to_thread(self._read_records, self._chunks_path)
        return [self._load(Chunk, record, self._chunks_path) for record in records]

    async def append_document(self, document: Document) -> None:
        await self._run_exclusive(self._append_records, self._documents_path, [self._dump(document)])
        logger.info("document_stored", document_id=document.id, file_name=document.name)

    async def append_chunks(self, chunks: list[Chunk]) -> None:
        if not chunks:
            return
        await self._run_exclusive(
            self._append_records, self._chunks_path, [self._dump(c) for c in chunks]
        )
        logger.info(
            "chunks_stored",
            document_id=chunks[0].document_id,
            chunks=len(chunks),
        )

    async def delete_document(self, document_id: str) -> bool:
        removed_chunks, removed_docs = await self._run_exclusive(self._delete_records, document_id)
        removed = bool(removed_chunks or removed_docs)
        logger.info(
            "document_deleted" if removed else "document_delete_noop",
            document_id=document_id,
            chunks_removed=removed_chunks,
        )
        return removed

    # ------------------------------------------------------------------
    # Writer serialisation
    # ------------------------------------------------------------------

    async def _run_exclusive(self, func: Callable[..., _T], *args: Any) -> _T:
        """Run one read-modify-write *func* in a worker thread under the lock.

        The locked section runs as its own shielded task: cancelling the
        caller does not release the lock while the thread is still writing.
        """

        async def _locked() -> _T:
            async with self._write_lock:
                return await asyncio.to_thread(func, *args)

        task = asyncio.ensure_future(_locked())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return await asyncio.shield(task)

    # ------------------------------------------------------------------
    # File helpers (run in worker threads)
    # ------------------------------------------------------------------

    def _append_records(self, path: Path, new_records: list[dict[str, Any]]) -> None:
        records = self._read_records(path)
        records.extend(new_records)
        self._write_records(path, records)

    def _delete_records(self, document_id: str) -> tuple[int, int]:
        """Drop *document_id* and its chunks; return ``(chunks, documents)`` removed."""
        chunk_records = self._read_records(self._chunks_path)
        remaining_chunks = [r for r in chunk_records if r.get("documentId") != document_id]
        doc_records = self._read_records(self._documents_path)
        remaining_docs = [r for r in doc_records if r.get("id") != document_id]

        removed_chunks = len(chunk_records) - len(remaining_chunks)
        removed_docs = len(doc_records) - len(remaining_docs)

        # Chunks go first: a crash in between leaves a document with no
        # chunks (an empty index), never chunks without a document.
        if removed_chunks:
            self._write_records(self._chunks_path, remaining_chunks)
        if removed_docs:
            self._write_records(self._documents_path, remaining_docs)
        return removed_chunks, removed_docs

    @staticmethod
    def _dump(model: Document | Chunk) -> dict[str, Any]:
        return model.model_dump(mode="json", by_alias=True)

    @staticmethod
    def _load(model_cls: type[Document] | type[Chunk], record: dict[str, Any], path: Path):  # noqa: ANN205
        try:
            return model_cls.model_validate(record)
        except ValidationError as exc:
            raise StoreError(
                message=f"Invalid record in {path.name}: {exc}",
                provider_name=_PROVIDER,
            ) from exc

    @staticmethod
    def _read_records(path: Path) -> list[dict[str, Any]]:
        """Return the JSON list stored at *path*; a missing file is empty."""
        if not path.exists():
            return []
        try:
            with open(path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, json.JSONDecodeError) as exc:
            logger.error("store_read_failed", path=str(path), error=str(exc))
            raise StoreError(
                message=f"Could not read {path.name}: {exc}",
                provider_name=_PROVIDER,
            ) from exc
        if not isinstance(data, list):
            raise StoreError(
                message=f"{path.name} does not contain a JSON list",
                provider_name=_PROVIDER,
            )
        return data

    @staticmethod
    def _write_records(path: Path, records: list[dict[str, Any]]) -> None:
        """Atomically replace *path* with *records*."""
        tmp_name: str | None = None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=path.parent,
                prefix=f".{path.name}.",
                suffix=".tmp",
                delete=False,
            ) as fh:
                tmp_name = fh.name
                json.dump(records, fh, ensure_ascii=False, indent=2)
                fh.flush()
                os.fsync(fh.fileno())
            os.replace(tmp_name, path)
            tmp_name = None
        except OSError as exc:
            logger.error("store_write_failed", path=str(path), error=str(exc))
            raise StoreWriteError(
                message=f"Could not write {path.name}: {exc}",
                provider_name=_PROVIDER,
            ) from exc
        finally:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)

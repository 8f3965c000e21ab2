"""FastAPI API routes for the Gonçalinho assistant.

Provides REST endpoints for document upload, listing and deletion,
lexical search, streamed question answering, and health checks.  Service
dependencies are resolved from ``app.state`` via FastAPI's ``Depends``
using the ``Annotated`` pattern.

# ─── API ROUTE MAP ─────────────────────────────────────────────────────
#
# Endpoint               Method  Description
# ─────────────────────────────────────────────────────────────────────
# /api/health            GET     Health check + store counts (?check_llm=true pings the LLM)
# /api/auth/verify       POST    Check the shared upload password
# /api/files             GET     List ingested documents
# /api/upload            POST    Upload a file + metadata → extract/chunk/store
# /api/files/{id}        DELETE  Remove a document and its chunks
# /api/search            POST    Lexical search over stored chunks
# /api/ask               POST    Streamed answer grounded in retrieved chunks
#
# Upload and delete require the ``X-Access-Password`` header when an
# ACCESS_PASSWORD is configured.  Failed uploads answer 422 when the file
# could not be parsed and 503 when the store could not be written.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

import hmac
import uuid
from pathlib import Path
from typing import Annotated

import structlog
from fastapi import APIRouter, Depends, File, Form, Header, HTTPException, Request, UploadFile
from fastapi.responses import StreamingResponse

from src.api.schemas import (
    AskRequest,
    DeleteResponse,
    ErrorResponse,
    HealthResponse,
    SearchRequest,
    SearchResponse,
    VerifyPasswordRequest,
    VerifyPasswordResponse,
)
from src.interfaces.document_store import IDocumentStore
from src.models.document import Category, Document, DocumentMetadata
from src.services.ingestion.extractors import file_extension
from src.services.ingestion.ingestion_service import IngestionService
from src.services.qa_service import QAService
from src.services.retriever import LexicalRetriever
from src.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api")

APP_VERSION = "0.1.0"

# Uploads are streamed to disk in 64 KB slices so oversized files are
# rejected as soon as they cross the limit.
_UPLOAD_CHUNK_SIZE = 64 * 1024


# ---------------------------------------------------------------------------
# Dependency injection helpers — resolve singletons from app.state
# ---------------------------------------------------------------------------


def _get_store(request: Request) -> IDocumentStore:
    return request.app.state.store


def _get_ingestion_service(request: Request) -> IngestionService:
    return request.app.state.ingestion_service


def _get_retriever(request: Request) -> LexicalRetriever:
    return request.app.state.retriever


def _get_qa_service(request: Request) -> QAService | None:
    """Return the Q&A service, or ``None`` when no LLM is configured."""
    return getattr(request.app.state, "qa_service", None)


def _password_matches(expected: str, supplied: str | None) -> bool:
    return hmac.compare_digest(expected.encode("utf-8"), (supplied or "").encode("utf-8"))


def _require_access(
    request: Request,
    x_access_password: Annotated[str | None, Header()] = None,
) -> None:
    """Reject mutations without the shared password (when one is configured)."""
    expected: str = request.app.state.access_password
    if expected and not _password_matches(expected, x_access_password):
        _logger.warning("access_denied", path=str(request.url.path))
        raise HTTPException(status_code=401, detail="Invalid access password")


StoreDep = Annotated[IDocumentStore, Depends(_get_store)]
IngestionDep = Annotated[IngestionService, Depends(_get_ingestion_service)]
RetrieverDep = Annotated[LexicalRetriever, Depends(_get_retriever)]
QAServiceDep = Annotated[QAService | None, Depends(_get_qa_service)]
AccessDep = Depends(_require_access)


# ---------------------------------------------------------------------------
# Health / auth
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse, summary="Health check")
async def health(
    store: StoreDep,
    qa_service: QAServiceDep,
    check_llm: bool = False,
) -> HealthResponse:
    """Report store counts; with ``?check_llm=true`` also ping the LLM provider."""
    documents = await store.list_documents()
    chunks = await store.list_chunks()
    reachable: bool | None = None
    if check_llm and qa_service is not None:
        reachable = await qa_service.llm_reachable()
        if not reachable:
            _logger.warning("llm_unreachable", provider=qa_service.provider_name)
    return HealthResponse(
        status="ok",
        version=APP_VERSION,
        documents=len(documents),
        chunks=len(chunks),
        llm_provider=qa_service.provider_name if qa_service else None,
        llm_reachable=reachable,
    )


@router.post(
    "/auth/verify",
    response_model=VerifyPasswordResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Check the shared upload password",
)
async def verify_password(body: VerifyPasswordRequest, request: Request) -> VerifyPasswordResponse:
    expected: str = request.app.state.access_password
    if expected and not _password_matches(expected, body.password):
        raise HTTPException(status_code=401, detail="Invalid access password")
    return VerifyPasswordResponse(success=True)


# ---------------------------------------------------------------------------
# Documents
# ---------------------------------------------------------------------------


@router.get("/files", response_model=list[Document], summary="List ingested documents")
async def list_files(store: StoreDep) -> list[Document]:
    return await store.list_documents()


@router.post(
    "/upload",
    response_model=Document,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        413: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
    dependencies=[AccessDep],
    summary="Upload a document with its metadata",
)
async def upload_file(
    request: Request,
    ingestion: IngestionDep,
    file: Annotated[UploadFile | None, File()] = None,
    description: Annotated[str, Form()] = "",
    source: Annotated[str, Form()] = "",
    period: Annotated[str, Form()] = "",
    case_name: Annotated[str, Form(alias="caseName")] = "",
    category: Annotated[str, Form()] = "",
) -> Document:
    """Stream the upload to disk, then extract, chunk and store it."""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file")

    try:
        parsed_category = Category.parse(category)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc

    metadata = DocumentMetadata(
        description=description.strip(),
        source=source.strip(),
        period=period.strip(),
        case_name=case_name.strip(),
        category=parsed_category,
    )

    upload_dir: Path = request.app.state.upload_dir
    max_bytes: int = request.app.state.max_upload_bytes
    extension = file_extension(file.filename, file.content_type)
    tmp_path = upload_dir / f"{uuid.uuid4().hex}.{extension or 'bin'}"

    size = await _save_upload(file, tmp_path, max_bytes)
    _logger.info("upload_received", file_name=file.filename, size=size, category=parsed_category.value)

    # ingest_file removes tmp_path whatever the outcome.
    return await ingestion.ingest_file(tmp_path, file.filename, metadata, file.content_type)


@router.delete(
    "/files/{document_id}",
    response_model=DeleteResponse,
    responses={401: {"model": ErrorResponse}},
    dependencies=[AccessDep],
    summary="Delete a document and all its chunks",
)
async def delete_file(document_id: str, store: StoreDep) -> DeleteResponse:
    await store.delete_document(document_id)
    return DeleteResponse(success=True)


# ---------------------------------------------------------------------------
# Retrieval / answers
# ---------------------------------------------------------------------------


@router.post("/search", response_model=SearchResponse, summary="Lexical search over stored chunks")
async def search(body: SearchRequest, retriever: RetrieverDep) -> SearchResponse:
    results = await retriever.search(body.query, category=body.category, top_k=body.top_k)
    return SearchResponse(query=body.query, total=len(results), results=results)


@router.post(
    "/ask",
    response_class=StreamingResponse,
    responses={503: {"model": ErrorResponse}},
    summary="Answer a question from the stored documents (streamed)",
)
async def ask(body: AskRequest, qa_service: QAServiceDep) -> StreamingResponse:
    if qa_service is None:
        raise HTTPException(status_code=503, detail="No LLM provider configured")
    return StreamingResponse(
        qa_service.stream_answer(body.message, body.history, body.category),
        media_type="text/plain; charset=utf-8",
    )


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _save_upload(file: UploadFile, path: Path, max_bytes: int) -> int:
    """Copy *file* to *path* in slices, enforcing *max_bytes*.

    The partial file is removed if the copy does not complete.
    """
    total = 0
    try:
        with open(path, "wb") as fh:
            while True:
                chunk = await file.read(_UPLOAD_CHUNK_SIZE)
                if not chunk:
                    break
                total += len(chunk)
                if total > max_bytes:
                    raise HTTPException(
                        status_code=413,
                        detail=f"File too large: maximum is {max_bytes // (1024 * 1024)} MB",
                    )
                fh.write(chunk)
    except BaseException:
        path.unlink(missing_ok=True)
        raise
    return total

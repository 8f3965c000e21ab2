"""Gonçalinho FastAPI application entry point.

Wires together the document store, ingestion pipeline, retriever and
answer service via dependency injection.  Loads configuration from
``.env`` and ``config/config.yaml`` and configures structured logging.

``build_components`` is shared with the ingestion CLI so both entry
points run the same pipeline against the same storage root.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI

from src.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
)
from src.api.routes import APP_VERSION
from src.api.routes import router as api_router
from src.config.loader import load_config, resolve_data_dir
from src.config.settings import Settings
from src.interfaces.llm_provider import ILLMProvider
from src.providers.llm.anthropic_provider import AnthropicLLMProvider
from src.providers.llm.ollama_provider import OllamaLLMProvider
from src.providers.llm.openai_provider import OpenAILLMProvider
from src.providers.store.json_document_store import JSONDocumentStore
from src.services.ingestion.ingestion_service import IngestionService
from src.services.qa_service import QAService
from src.services.retriever import LexicalRetriever, RetrievalConfig
from src.utils.logging import configure_logging, get_logger

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config" / "config.yaml"

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# LLM provider selection
# ---------------------------------------------------------------------------


def _build_llm_provider(app_settings: Settings) -> ILLMProvider:
    """Select the first available LLM provider based on configured API keys.

    Priority order: Anthropic -> OpenAI -> Ollama (always available).
    """
    if app_settings.anthropic_api_key:
        return AnthropicLLMProvider(settings=app_settings)
    if app_settings.openai_api_key:
        return OpenAILLMProvider(settings=app_settings)
    return OllamaLLMProvider(settings=app_settings)


# ---------------------------------------------------------------------------
# Component wiring
# ---------------------------------------------------------------------------


def build_components(
    app_settings: Settings,
    llm_provider: ILLMProvider | None = None,
    config_path: str | Path = _CONFIG_PATH,
) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    """
    config = load_config(str(config_path), settings=app_settings)
    chunking = config.get("chunking", {})
    retrieval = config.get("retrieval", {})
    llm_config = config.get("llm", {})

    # -- Storage --
    data_dir = resolve_data_dir(app_settings)
    store = JSONDocumentStore(data_dir)

    # -- Ingestion --
    text_size = int(chunking.get("text_chunk_size", 1000))
    ingestion_service = IngestionService(
        store=store,
        text_chunk_sizes={
            "pdf": text_size,
            "txt": text_size,
            "docx": int(chunking.get("docx_chunk_size", 1500)),
        },
        table_group_size=int(chunking.get("table_group_size", 20)),
    )

    # -- Retrieval --
    retrieval_config = RetrievalConfig(
        **{k: v for k, v in retrieval.items() if k in RetrievalConfig.model_fields}
    )
    retriever = LexicalRetriever(store=store, config=retrieval_config)

    # -- Answer generation --
    llm = llm_provider or _build_llm_provider(app_settings)
    qa_service = QAService(
        retriever=retriever,
        llm=llm,
        temperature=float(llm_config.get("temperature", app_settings.llm_temperature)),
        history_window=int(llm_config.get("history_window", app_settings.history_window)),
    )

    return {
        "settings": app_settings,
        "config": config,
        "data_dir": data_dir,
        "upload_dir": data_dir / "uploads",
        "max_upload_bytes": app_settings.max_upload_mb * 1024 * 1024,
        "access_password": app_settings.access_password,
        "store": store,
        "ingestion_service": ingestion_service,
        "retriever": retriever,
        "qa_service": qa_service,
        "primary_llm_name": llm.get_provider_name(),
    }


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app(
    settings: Settings | None = None,
    llm_provider: ILLMProvider | None = None,
) -> FastAPI:
    """Build and configure the FastAPI application.

    Components are constructed in the lifespan handler, so they exist
    once the server (or a ``with TestClient(app)`` block) has started.
    """
    app_settings = settings or Settings()

    @asynccontextmanager
    async def _lifespan(application: FastAPI):  # noqa: ANN202
        components = build_components(app_settings, llm_provider=llm_provider)
        for key, value in components.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=APP_VERSION,
            environment=app_settings.app_env,
            data_dir=str(components["data_dir"]),
            primary_llm=components["primary_llm_name"],
            upload_gated=bool(app_settings.access_password),
        )
        yield
        _logger.info("app_shutdown")

    application = FastAPI(
        title="Gonçalinho API",
        version=APP_VERSION,
        description=(
            "Upload public-indicator documents (PDF, DOCX, CSV, XLSX, TXT), "
            "search them lexically and ask questions answered from their content."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def main() -> None:
    """Run the API server with uvicorn."""
    settings = Settings()
    configure_logging(
        log_level=settings.log_level,
        json_output=(settings.app_env == "production"),
    )
    uvicorn.run(
        "src.main:create_app",
        factory=True,
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )


if __name__ == "__main__":
    main()

# =============================================================================
# src/cli/ingest.py — CLI Ingest Command (knowledge base management)
# =============================================================================
#
# Standalone CLI for managing the documents the assistant answers from.
# It runs the same pipeline as POST /api/upload: extract -> chunk -> tag
# -> store, against the storage root chosen from DATA_DIR /
# FALLBACK_DATA_DIR.
#
# Supported subcommands:
#
#   file    — Ingest one local file (PDF, DOCX, CSV, XLSX, XLS, TXT)
#   list    — List stored documents
#   delete  — Delete a document and all its chunks
#   search  — Run a lexical search and print the ranked chunks
#
# Usage examples:
#   python -m src.cli.ingest file --path dengue_2023.csv \
#       --case-name Dengue --period 2023 --source "Secretaria de Saúde" \
#       --category Saúde
#   python -m src.cli.ingest list
#   python -m src.cli.ingest delete --id 3f2a...
#   python -m src.cli.ingest search --query "casos de dengue 2023"
# =============================================================================

"""Standalone CLI for the Gonçalinho document store.

Usage::

    python -m src.cli.ingest file --path /path/to/report.pdf --category Educação

    python -m src.cli.ingest list

    python -m src.cli.ingest search --query "matrículas 2022" --top-k 5
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Any

from src.config.loader import load_config, resolve_data_dir
from src.config.settings import Settings
from src.models.document import Category, DocumentMetadata
from src.providers.store.json_document_store import JSONDocumentStore
from src.services.ingestion.ingestion_service import IngestionService
from src.services.retriever import LexicalRetriever, RetrievalConfig
from src.utils.errors import GoncalinhoError

_PREVIEW_CHARS = 160


def _build_services(app_settings: Settings) -> dict[str, Any]:
    """Build store, ingestion service and retriever.

    Mirrors ``src.main.build_components`` minus the LLM, which the CLI
    never calls.
    """
    config = load_config(settings=app_settings)
    chunking = config.get("chunking", {})
    retrieval = config.get("retrieval", {})

    store = JSONDocumentStore(resolve_data_dir(app_settings))
    text_size = int(chunking.get("text_chunk_size", 1000))
    ingestion = IngestionService(
        store=store,
        text_chunk_sizes={
            "pdf": text_size,
            "txt": text_size,
            "docx": int(chunking.get("docx_chunk_size", 1500)),
        },
        table_group_size=int(chunking.get("table_group_size", 20)),
    )
    retriever = LexicalRetriever(
        store=store,
        config=RetrievalConfig(
            **{k: v for k, v in retrieval.items() if k in RetrievalConfig.model_fields}
        ),
    )
    return {"store": store, "ingestion": ingestion, "retriever": retriever}


# ---------------------------------------------------------------------------
# Command handlers
# ---------------------------------------------------------------------------


async def _handle_file(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Ingest one local file."""
    path = Path(args.path)
    if not path.is_file():
        print(f"Error: file not found: {path}", file=sys.stderr)
        return 1

    metadata = DocumentMetadata(
        description=args.description,
        source=args.source,
        period=args.period,
        case_name=args.case_name,
        category=args.category,
    )
    print(f"Ingesting: {path.name} [{metadata.category.value}]")

    # ingest() rather than ingest_file(): the operator's file must survive.
    document = await services["ingestion"].ingest(path.read_bytes(), path.name, metadata)
    chunks = [c for c in await services["store"].list_chunks() if c.document_id == document.id]

    print("\nIngestion complete:")
    print(f"  Document ID:    {document.id}")
    print(f"  Type:           {document.type}")
    print(f"  Chunks created: {len(chunks)}")
    return 0


async def _handle_list(services: dict[str, Any]) -> int:
    """Print every stored document."""
    documents = await services["store"].list_documents()
    if not documents:
        print("No documents stored.")
        return 0

    print(f"{'ID':<34} {'TYPE':<5} {'CATEGORY':<24} NAME")
    for doc in documents:
        print(f"{doc.id:<34} {doc.type:<5} {doc.category.value:<24} {doc.name}")
    print(f"\n{len(documents)} document(s)")
    return 0


async def _handle_delete(args: argparse.Namespace, services: dict[str, Any]) -> int:
    removed = await services["store"].delete_document(args.id)
    print(f"Deleted {args.id}" if removed else f"Nothing stored under {args.id}")
    return 0


async def _handle_search(args: argparse.Namespace, services: dict[str, Any]) -> int:
    """Run a lexical search and print the ranked chunks."""
    results = await services["retriever"].search(
        args.query, category=args.category, top_k=args.top_k
    )
    if not results:
        print("No matching chunks.")
        return 0

    for rank, result in enumerate(results, start=1):
        chunk = result.chunk
        preview = " ".join(chunk.content.split())[:_PREVIEW_CHARS]
        print(f"{rank:>2}. score={result.score}  {chunk.file_name}  ({chunk.id})")
        print(f"    {preview}")
    return 0


# ---------------------------------------------------------------------------
# Argument parser
# ---------------------------------------------------------------------------


def _category(value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(str(exc)) from exc


def _build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the ingestion CLI."""
    parser = argparse.ArgumentParser(
        prog="python -m src.cli.ingest",
        description="Manage the Gonçalinho document store.",
    )
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # -- file --
    file_parser = subparsers.add_parser("file", help="Ingest a local document")
    file_parser.add_argument("--path", required=True, help="Path to the file")
    file_parser.add_argument("--description", default="", help="Free-text description")
    file_parser.add_argument("--source", default="", help="Publishing body / origin")
    file_parser.add_argument("--period", default="", help="Reference period, e.g. 2023")
    file_parser.add_argument(
        "--case-name", default="", dest="case_name", help="Indicator name, e.g. Dengue"
    )
    file_parser.add_argument(
        "--category",
        type=_category,
        default=Category.GENERAL,
        help="Category label (e.g. Saúde) or name (e.g. HEALTH); default Geral",
    )

    # -- list --
    subparsers.add_parser("list", help="List stored documents")

    # -- delete --
    delete_parser = subparsers.add_parser("delete", help="Delete a document and its chunks")
    delete_parser.add_argument("--id", required=True, help="Document ID")

    # -- search --
    search_parser = subparsers.add_parser("search", help="Lexical search over stored chunks")
    search_parser.add_argument("--query", required=True, help="Free-text query")
    search_parser.add_argument("--category", type=_category, default=None, help="Category filter")
    search_parser.add_argument("--top-k", type=int, default=None, dest="top_k", help="Max results")

    return parser


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for the ingestion tool.

    Exits with status 1 when no command is given or processing fails.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    app_settings = Settings()

    try:
        services = _build_services(app_settings)
        if args.command == "file":
            exit_code = asyncio.run(_handle_file(args, services))
        elif args.command == "list":
            exit_code = asyncio.run(_handle_list(services))
        elif args.command == "delete":
            exit_code = asyncio.run(_handle_delete(args, services))
        elif args.command == "search":
            exit_code = asyncio.run(_handle_search(args, services))
        else:
            parser.print_help()
            exit_code = 1
    except GoncalinhoError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        exit_code = 1

    sys.exit(exit_code)


if __name__ == "__main__":
    main()

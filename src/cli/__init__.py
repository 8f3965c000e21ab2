# =============================================================================
# src/cli/__init__.py — CLI Module Overview
# =============================================================================
#
# Command-line access to the Gonçalinho knowledge base for operators who
# need to load or inspect documents without the web client:
#
#   INGESTION (ingest.py)
#      Ingest a local file with its metadata, list stored documents,
#      delete a document (cascading to its chunks) and run a lexical
#      search exactly as the chat endpoint would.
#
# Architecture Notes:
#   - argparse for argument parsing (not Click/Typer).
#   - The CLI builds its own store, ingestion service and retriever from
#     the same Settings and config/config.yaml as the server, so both
#     operate on the same storage root.
# =============================================================================

"""CLI tools for the Gonçalinho assistant.

- ``python -m src.cli.ingest`` — ingest, list, delete and search documents.
"""

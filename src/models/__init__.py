"""Gonçalinho domain models — re-exports all public model classes.

Other parts of the codebase import from ``src.models`` rather than from
the individual module (``from src.models import Chunk``).
"""

from __future__ import annotations

from src.models.document import (
    Category,
    ChatMessage,
    Chunk,
    Document,
    DocumentMetadata,
    ExtractedContent,
    ScoredChunk,
)

__all__ = [
    "Category",
    "ChatMessage",
    "Chunk",
    "Document",
    "DocumentMetadata",
    "ExtractedContent",
    "ScoredChunk",
]

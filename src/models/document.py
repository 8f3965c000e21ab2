"""Document, chunk and retrieval models for the Gonçalinho knowledge base.

Defines Pydantic v2 models for uploaded documents, the chunks derived from
them, extractor output, retrieval results and chat history.  All models
use frozen config to enforce immutability: a Document is never mutated
after ingestion and its Chunks are only ever created or cascade-deleted.

Serialisation uses camelCase aliases (``caseName``, ``documentId``,
``fileName``, ``createdAt``) because that is the shape the web client and
the persisted JSON files exchange.  ``populate_by_name`` lets Python code
construct models with the snake_case field names.

Data ownership overview:
    Document  1 ──< Chunk
    - A Chunk's ``document_id`` points back at its Document.
    - The Document's metadata (category, case name, description, source,
      period, file name) is deliberately COPIED onto every Chunk so the
      retriever can score and the answer generator can cite provenance
      without a join.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class Category(str, Enum):  # noqa: UP042 — StrEnum requires Python 3.11+
    """Fixed classification tags for uploaded documents.

    Values are the Portuguese labels shown in the client and stored on
    disk; member names are used in code.  ``GENERAL`` is the default and,
    when used as a search filter, means "no filter".
    """

    FINANCE = "Finanças"
    EDUCATION = "Educação"
    SOCIAL_DEVELOPMENT = "Desenvolvimento Social"
    INFRASTRUCTURE = "Infraestrutura"
    PLANNING = "Planejamento"
    SPORTS_CULTURE_LEISURE = "Esporte cultura e lazer"
    HEALTH = "Saúde"
    OFFICE = "Gabinete"
    GENERAL = "Geral"

    @classmethod
    def parse(cls, value: str | Category | None) -> Category:
        """Resolve a user-supplied category label.

        Empty values map to :attr:`GENERAL`.  Both the stored value
        ("Saúde") and the member name ("HEALTH", case-insensitive) are
        accepted.

        Raises
        ------
        ValueError
            If *value* names no known category.
        """
        if isinstance(value, Category):
            return value
        if value is None or not value.strip():
            return cls.GENERAL
        cleaned = value.strip()
        for member in cls:
            if cleaned == member.value or cleaned.upper() == member.name:
                return member
        lowered = cleaned.lower()
        for member in cls:
            if lowered == member.value.lower():
                return member
        raise ValueError(f"Unknown category: {value!r}")


class _CamelModel(BaseModel):
    """Frozen base model serialising with camelCase aliases."""

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )


# ---------------------------------------------------------------------------
# DocumentMetadata — what the uploader tells us about a file.
# ---------------------------------------------------------------------------
class DocumentMetadata(_CamelModel):
    """User-supplied metadata attached to an upload."""

    description: str = ""
    source: str = ""
    period: str = ""
    case_name: str = Field(default="", description="Indicator / theme name, e.g. 'Dengue'.")
    category: Category = Category.GENERAL


# ---------------------------------------------------------------------------
# Document — one ingested file.
# ---------------------------------------------------------------------------
class Document(_CamelModel):
    """One ingested upload and its metadata.

    Created by :class:`~src.services.ingestion.ingestion_service.IngestionService`
    after successful extraction; destroyed with all its chunks on delete.
    """

    id: str = Field(description="Opaque unique identifier assigned at ingestion.")
    name: str = Field(description="Original filename, display only.")
    type: str = Field(description="Lower-cased extension without the dot.")
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    description: str = ""
    source: str = ""
    period: str = ""
    case_name: str = ""
    category: Category = Category.GENERAL

    @property
    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata(
            description=self.description,
            source=self.source,
            period=self.period,
            case_name=self.case_name,
            category=self.category,
        )


# ---------------------------------------------------------------------------
# Chunk — the atomic unit of retrieval.
# ---------------------------------------------------------------------------
class Chunk(_CamelModel):
    """A bounded block of extracted content with denormalised provenance."""

    id: str = Field(description="'{document_id}_{index}' — unique and stable.")
    document_id: str
    index: int = Field(default=0, ge=0, description="Position within the owning document.")
    content: str
    category: Category = Category.GENERAL
    case_name: str = ""
    description: str = ""
    source: str = ""
    period: str = ""
    file_name: str = ""


class ScoredChunk(_CamelModel):
    """A chunk returned by the lexical retriever together with its score."""

    chunk: Chunk
    score: int = Field(ge=0)


# ---------------------------------------------------------------------------
# ExtractedContent — what an extractor hands to the chunkers.
# ---------------------------------------------------------------------------
class ExtractedContent(_CamelModel):
    """Output of a format extractor: either prose text or row records.

    ``rows`` holds one ordered ``column -> value`` mapping per table row;
    column order follows the source file.  ``kind`` tells the ingestion
    service which chunker applies.
    """

    format: str
    kind: Literal["text", "table", "empty"]
    text: str = ""
    rows: list[dict[str, str]] = Field(default_factory=list)

    @classmethod
    def from_text(cls, fmt: str, text: str) -> ExtractedContent:
        return cls(format=fmt, kind="text" if text.strip() else "empty", text=text)

    @classmethod
    def from_rows(cls, fmt: str, rows: list[dict[str, str]]) -> ExtractedContent:
        return cls(format=fmt, kind="table" if rows else "empty", rows=rows)

    @classmethod
    def empty(cls, fmt: str) -> ExtractedContent:
        return cls(format=fmt, kind="empty")


# ---------------------------------------------------------------------------
# ChatMessage — conversation history forwarded to the LLM.
# ---------------------------------------------------------------------------
class ChatMessage(_CamelModel):
    """One turn of chat history as sent by the client."""

    role: Literal["user", "model"] = "user"
    text: str = ""

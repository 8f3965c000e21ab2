"""Pydantic request/response schemas for the Gonçalinho API.

Defines the public contract for the REST endpoints — health, password
check, document listing, upload, delete, search and ask.

# ─── HOW SCHEMAS WORK ─────────────────────────────────────────────────
#
# FastAPI uses these models for:
#
#   1. **Validation** — Incoming JSON is validated against the schema.
#      Invalid requests get a 422 error with details.
#   2. **Serialization** — Outgoing objects are converted to JSON
#      matching the schema (via response_model=...).
#   3. **Documentation** — OpenAPI docs at /docs.
#
# Documents and chunks are returned as the domain models themselves
# (src/models/document.py), serialised with their camelCase aliases so
# the web client sees ``caseName`` / ``documentId`` / ``fileName``.
# ──────────────────────────────────────────────────────────────────────
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from src.models.document import Category, ChatMessage, ScoredChunk


class HealthResponse(BaseModel):
    """Application health check response."""

    status: str
    version: str
    documents: int
    chunks: int
    llm_provider: str | None = None
    llm_reachable: bool | None = None


class ErrorResponse(BaseModel):
    """Standard error response body.

    ``request_id`` matches the ``X-Request-ID`` response header and the
    ``request_id`` field of the server log lines for the same request.
    """

    error: str
    detail: str | None = None
    request_id: str | None = None


class VerifyPasswordRequest(BaseModel):
    password: str = ""


class VerifyPasswordResponse(BaseModel):
    success: bool


class DeleteResponse(BaseModel):
    """Delete is idempotent: ``success`` is true for unknown ids too."""

    success: bool = True


class _CategoryFilterRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    category: Category | None = None

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> object:
        # Accept "Saúde", "HEALTH" or "" the same way uploads do.
        if value is None or isinstance(value, Category):
            return value
        return Category.parse(str(value))


class SearchRequest(_CategoryFilterRequest):
    """Free-text lexical search, optionally restricted to one category."""

    query: str = Field(..., min_length=1, max_length=2000)
    top_k: int | None = Field(default=None, ge=1, le=100)


class SearchResponse(BaseModel):
    query: str
    total: int
    results: list[ScoredChunk] = Field(default_factory=list)


class AskRequest(_CategoryFilterRequest):
    """User question plus recent chat history."""

    message: str = Field(..., min_length=1, max_length=4000)
    history: list[ChatMessage] = Field(default_factory=list)

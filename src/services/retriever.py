"""Lexical retrieval over the stored chunk collection.

Scores every chunk against a free-text query by plain substring overlap
and returns the best ``top_k``.  There is no index: the store is scanned
on every search, which is fast enough for the few thousand chunks a
municipal indicator corpus holds.

Scoring, per chunk:

- ``term_weight`` for each query term (>= ``min_term_length``
  characters) found anywhere in the lower-cased chunk content;
- ``case_name_bonus`` when the chunk's indicator name appears in the query;
- ``description_bonus`` when the chunk's description appears in the query;
- ``period_bonus`` when the chunk's period appears in the query (0, i.e.
  disabled, unless configured).

A category filter other than ``GENERAL`` excludes every chunk of another
category before scoring.
"""

from __future__ import annotations

import structlog
from pydantic import BaseModel, ConfigDict, Field

from src.interfaces.document_store import IDocumentStore
from src.models.document import Category, Chunk, ScoredChunk

logger = structlog.get_logger(logger_name=__name__)

_EXCLUDED = -1


class RetrievalConfig(BaseModel):
    """Weights and limits for :class:`LexicalRetriever`."""

    model_config = ConfigDict(frozen=True)

    top_k: int = Field(default=15, ge=1)
    min_term_length: int = Field(default=3, ge=1)
    term_weight: int = Field(default=1, ge=0)
    case_name_bonus: int = Field(default=3, ge=0)
    description_bonus: int = Field(default=2, ge=0)
    period_bonus: int = Field(default=0, ge=0)


class LexicalRetriever:
    """Keyword retriever reading chunks from an :class:`IDocumentStore`.

    Parameters
    ----------
    store:
        Source of the chunk collection.
    config:
        Scoring weights and ``top_k``; defaults to :class:`RetrievalConfig`.
    """

    def __init__(self, store: IDocumentStore, config: RetrievalConfig | None = None) -> None:
        self._store = store
        self._config = config or RetrievalConfig()

    @property
    def config(self) -> RetrievalConfig:
        return self._config

    async def search(
        self,
        query: str,
        category: Category | None = None,
        top_k: int | None = None,
    ) -> list[ScoredChunk]:
        """Return the highest-scoring chunks for *query*.

        An empty store or a query without usable terms yields ``[]``.
        """
        if not self.query_terms(query):
            logger.debug("retrieval_no_terms", query=query)
            return []
        chunks = await self._store.list_chunks()
        results = self.rank(chunks, query, category, top_k=top_k)
        logger.info(
            "retrieval_complete",
            query=query,
            category=category.value if category else None,
            scanned=len(chunks),
            results=len(results),
        )
        return results

    def rank(
        self,
        chunks: list[Chunk],
        query: str,
        category: Category | None = None,
        top_k: int | None = None,
    ) -> list[ScoredChunk]:
        """Score *chunks* against *query* and keep the top results.

        Pure function of its inputs; ties keep scan order.
        """
        terms = self.query_terms(query)
        if not terms:
            return []
        lowered_query = query.lower()

        scored = [
            ScoredChunk(chunk=chunk, score=score)
            for chunk in chunks
            if (score := self._score(chunk, terms, lowered_query, category)) > 0
        ]
        # sort() is stable, so equal scores stay in scan order.
        scored.sort(key=lambda item: item.score, reverse=True)
        return scored[: top_k or self._config.top_k]

    def query_terms(self, query: str) -> list[str]:
        """Lower-cased whitespace terms long enough to score.

        Repeated words are kept, so each occurrence in the query scores.
        """
        return [t for t in query.lower().split() if len(t) >= self._config.min_term_length]

    def _score(
        self,
        chunk: Chunk,
        terms: list[str],
        lowered_query: str,
        category: Category | None,
    ) -> int:
        if category is not None and category != Category.GENERAL and chunk.category != category:
            return _EXCLUDED

        cfg = self._config
        content = chunk.content.lower()
        score = sum(cfg.term_weight for term in terms if term in content)

        if chunk.case_name and chunk.case_name.lower() in lowered_query:
            score += cfg.case_name_bonus
        if chunk.description and chunk.description.lower() in lowered_query:
            score += cfg.description_bonus
        if cfg.period_bonus and chunk.period and chunk.period.lower() in lowered_query:
            score += cfg.period_bonus
        return score

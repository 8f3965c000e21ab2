"""Boundary-preserving chunking for prose and tabular content.

Two strategies, selected by the shape of the extractor output:

1. **TextChunker** -- Paragraph-preserving.  Chunk boundaries align with
   blank-line paragraph breaks so no chunk starts or ends mid-thought.
   Paragraphs are packed greedily until the next one would push the chunk
   past its character budget.  A paragraph that alone exceeds the budget
   becomes its own oversized chunk; it is never cut.

2. **TableChunker** -- Row-group based.  Consecutive rows are batched
   (20 per chunk by default) and rendered as a header line followed by
   one line per row, columns separated by ``" ; "``.  The semicolon keeps
   Brazilian decimal commas ("1,50") unambiguous for the LLM.

Both return plain strings; the ingestion service turns them into
:class:`~src.models.document.Chunk` records.
"""

from __future__ import annotations

import re

import structlog

logger = structlog.get_logger(logger_name=__name__)

_PARAGRAPH_BREAK = re.compile(r"\n\s*\n")
_CELL_LINE_BREAKS = re.compile(r"[\n\r]+")

PARAGRAPH_SEPARATOR = "\n\n"
COLUMN_SEPARATOR = " ; "


class TextChunker:
    """Packs paragraphs into chunks of at most ``target_size`` characters.

    Parameters
    ----------
    target_size:
        Character budget per chunk.  The separator between paragraphs
        counts towards the budget.
    """

    def __init__(self, target_size: int = 1000) -> None:
        if target_size <= 0:
            raise ValueError("target_size must be positive")
        self._target_size = target_size

    @property
    def target_size(self) -> int:
        return self._target_size

    def chunk(self, text: str) -> list[str]:
        """Split *text* into paragraph-aligned chunks.

        Empty or whitespace-only input returns an empty list.
        """
        if not text or not text.strip():
            return []

        chunks: list[str] = []
        buffer = ""
        for para in self._split_paragraphs(text):
            projected = len(buffer) + len(PARAGRAPH_SEPARATOR) + len(para)
            if buffer and projected > self._target_size:
                chunks.append(buffer.strip())
                buffer = para
            elif buffer:
                buffer = f"{buffer}{PARAGRAPH_SEPARATOR}{para}"
            else:
                buffer = para

        if buffer:
            chunks.append(buffer.strip())

        logger.debug(
            "text_chunking_complete",
            num_chunks=len(chunks),
            target_size=self._target_size,
        )
        return chunks

    @staticmethod
    def _split_paragraphs(text: str) -> list[str]:
        """Split *text* on blank lines, discarding empty paragraphs."""
        parts = _PARAGRAPH_BREAK.split(text)
        return [p.strip() for p in parts if p.strip()]


class TableChunker:
    """Renders row records as ``" ; "``-delimited blocks of ``group_size`` rows.

    The header is taken from the first row's keys and reused for every
    chunk, so column order is stable across the whole document even when
    later rows carry different or missing keys.
    """

    def __init__(self, group_size: int = 20) -> None:
        if group_size <= 0:
            raise ValueError("group_size must be positive")
        self._group_size = group_size

    @property
    def group_size(self) -> int:
        return self._group_size

    def chunk(self, rows: list[dict[str, str]]) -> list[str]:
        """Render *rows* into table blocks.  Empty input returns no chunks."""
        if not rows:
            return []

        headers = list(rows[0].keys())
        header_line = COLUMN_SEPARATOR.join(headers)

        chunks: list[str] = []
        for start in range(0, len(rows), self._group_size):
            batch = rows[start : start + self._group_size]
            lines = [header_line]
            lines.extend(
                COLUMN_SEPARATOR.join(self._render_cell(row.get(h)) for h in headers)
                for row in batch
            )
            chunks.append("\n".join(lines))

        logger.debug(
            "table_chunking_complete",
            rows=len(rows),
            columns=len(headers),
            num_chunks=len(chunks),
        )
        return chunks

    @staticmethod
    def _render_cell(value: object) -> str:
        if value is None:
            return ""
        return _CELL_LINE_BREAKS.sub(" ", str(value)).strip()

"""Extractor for CSV exports.

Government open-data portals produce CSVs that are rarely clean: Latin-1
encodings, byte-order marks, semicolon delimiters (the comma is the
decimal separator in pt-BR), unbalanced quotes, ragged rows.  The
extractor therefore favours salvaging rows over strictness:

- **Encoding** -- UTF-8 first, Latin-1 when UTF-8 produced replacement
  characters (see :mod:`src.utils.text_decoding`).
- **Delimiter** -- Candidates are tried in priority order ``;``, ``,``,
  tab, ``|``.  The first one that splits the header line into two or more
  fields wins; a header no candidate splits is read as a single column.
- **Quotes** -- Parsed non-strictly, so a stray quote becomes part of the
  field instead of aborting the file.
- **Ragged rows** -- Short rows are padded with empty strings, surplus
  fields beyond the header are dropped.
- **Broken rows** -- A row the csv module rejects is logged and skipped;
  parsing resumes with the next line.
"""

from __future__ import annotations

import csv
import io

import structlog

from src.models.document import ExtractedContent
from src.services.ingestion.extractors.base import BaseExtractor
from src.utils.text_decoding import decode_with_fallback

logger = structlog.get_logger(logger_name=__name__)

DELIMITER_PRIORITY: tuple[str, ...] = (";", ",", "\t", "|")


def detect_delimiter(header_line: str) -> str:
    """Return the highest-priority delimiter that splits *header_line*.

    Falls back to the first candidate when none produces two fields.
    """
    for candidate in DELIMITER_PRIORITY:
        fields = next(csv.reader([header_line], delimiter=candidate, strict=False), [])
        if len(fields) >= 2:
            return candidate
    return DELIMITER_PRIORITY[0]


class CSVExtractor(BaseExtractor):
    """Parses a CSV file into ordered ``column -> value`` row records."""

    format_name = "csv"

    def process(self, data: bytes) -> ExtractedContent:
        text = decode_with_fallback(data)
        header_line = self._first_non_empty_line(text)
        if header_line is None:
            logger.warning("csv_empty", size=len(data))
            return ExtractedContent.empty(self.format_name)

        delimiter = detect_delimiter(header_line)
        rows, skipped = self._parse(text, delimiter)

        logger.info(
            "csv_extracted",
            delimiter=delimiter,
            rows=len(rows),
            skipped_rows=skipped,
        )
        return ExtractedContent.from_rows(self.format_name, rows)

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _first_non_empty_line(text: str) -> str | None:
        for line in text.splitlines():
            if line.strip():
                return line
        return None

    def _parse(self, text: str, delimiter: str) -> tuple[list[dict[str, str]], int]:
        """Read every record, returning ``(rows, skipped_count)``."""
        reader = csv.reader(
            io.StringIO(text, newline=""),
            delimiter=delimiter,
            skipinitialspace=True,
            strict=False,
        )

        headers: list[str] | None = None
        rows: list[dict[str, str]] = []
        skipped = 0

        while True:
            try:
                fields = next(reader)
            except StopIteration:
                break
            except csv.Error as exc:
                skipped += 1
                logger.warning(
                    "csv_row_skipped",
                    line=reader.line_num,
                    error=str(exc),
                )
                continue

            values = [field.strip() for field in fields]
            if not any(values):
                continue

            if headers is None:
                headers = self._unique_headers(values)
                continue

            if len(values) < len(headers):
                values.extend([""] * (len(headers) - len(values)))
            rows.append(dict(zip(headers, values)))

        return rows, skipped

    @staticmethod
    def _unique_headers(names: list[str]) -> list[str]:
        """Name blank header cells and disambiguate duplicates."""
        headers: list[str] = []
        seen: dict[str, int] = {}
        for position, raw in enumerate(names, start=1):
            name = raw or f"column_{position}"
            if name in seen:
                seen[name] += 1
                name = f"{name}_{seen[name]}"
            else:
                seen[name] = 1
            headers.append(name)
        return headers

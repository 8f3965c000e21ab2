"""Extractor for Excel workbooks (.xlsx via openpyxl, legacy .xls via xlrd).

Every sheet is read with pandas and flattened into row records.  Each
record starts with a ``_sheet`` column naming the sheet it came from, so
when all sheets are concatenated into one table the LLM can still tell
"2022" and "2023" tabs apart.  Cells are rendered as strings; empty cells
become ``""`` and rows with no values at all are dropped.
"""

from __future__ import annotations

import io
import math
from datetime import date, datetime

import pandas as pd
import structlog

from src.models.document import ExtractedContent
from src.services.ingestion.extractors.base import BaseExtractor
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

SHEET_COLUMN = "_sheet"


class SpreadsheetExtractor(BaseExtractor):
    """Reads every sheet of a workbook into one concatenated row sequence."""

    format_name = "xlsx"

    def process(self, data: bytes) -> ExtractedContent:
        try:
            sheets: dict[str, pd.DataFrame] = pd.read_excel(
                io.BytesIO(data),
                sheet_name=None,
                dtype=object,
            )
        except Exception as exc:  # noqa: BLE001 -- openpyxl/xlrd/zipfile errors alike
            raise ExtractionError(
                message=f"Could not read workbook: {exc}",
                provider_name=self.format_name,
            ) from exc

        rows: list[dict[str, str]] = []
        for sheet_name, frame in sheets.items():
            sheet_rows = self._frame_to_rows(str(sheet_name), frame)
            logger.debug("sheet_extracted", sheet=sheet_name, rows=len(sheet_rows))
            rows.extend(sheet_rows)

        logger.info("workbook_extracted", sheets=len(sheets), rows=len(rows))
        return ExtractedContent.from_rows(self.format_name, rows)

    @classmethod
    def _frame_to_rows(cls, sheet_name: str, frame: pd.DataFrame) -> list[dict[str, str]]:
        frame = frame.dropna(how="all")
        columns = [str(col) for col in frame.columns]
        rows: list[dict[str, str]] = []
        for values in frame.itertuples(index=False, name=None):
            record = {SHEET_COLUMN: sheet_name}
            record.update(
                (column, cls._cell_to_str(value)) for column, value in zip(columns, values)
            )
            rows.append(record)
        return rows

    @staticmethod
    def _cell_to_str(value: object) -> str:
        """Render a cell the way it reads in the spreadsheet."""
        if value is None:
            return ""
        if isinstance(value, float):
            if math.isnan(value):
                return ""
            if value.is_integer():
                return str(int(value))
            return str(value)
        if value is pd.NaT:
            return ""
        if isinstance(value, datetime):
            if value.time() == datetime.min.time():
                return value.date().isoformat()
            return value.isoformat(sep=" ")
        if isinstance(value, date):
            return value.isoformat()
        return str(value).strip()

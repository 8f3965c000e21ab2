"""Extension-based dispatch to the format extractors."""

from __future__ import annotations

from pathlib import PurePath

import structlog

from src.models.document import ExtractedContent
from src.services.ingestion.extractors.base import BaseExtractor
from src.services.ingestion.extractors.csv_extractor import CSVExtractor
from src.services.ingestion.extractors.docx_extractor import DOCXExtractor
from src.services.ingestion.extractors.pdf_extractor import PDFExtractor
from src.services.ingestion.extractors.spreadsheet_extractor import SpreadsheetExtractor
from src.services.ingestion.extractors.text_extractor import TextFileExtractor
from src.utils.errors import UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

_EXTRACTORS: dict[str, type[BaseExtractor]] = {
    "pdf": PDFExtractor,
    "docx": DOCXExtractor,
    "csv": CSVExtractor,
    "xlsx": SpreadsheetExtractor,
    "xls": SpreadsheetExtractor,
    "txt": TextFileExtractor,
}

# Used only when the filename carries no extension.
_MEDIA_TYPE_EXTENSIONS: dict[str, str] = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/csv": "csv",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-excel": "xls",
    "text/plain": "txt",
}


def supported_extensions() -> list[str]:
    return sorted(_EXTRACTORS)


def file_extension(filename: str, media_type: str | None = None) -> str:
    """Return the lower-cased extension of *filename* without the dot.

    When the name has no extension the declared *media_type* is consulted.
    """
    suffix = PurePath(filename).suffix.lower().lstrip(".")
    if suffix:
        return suffix
    if media_type:
        return _MEDIA_TYPE_EXTENSIONS.get(media_type.split(";")[0].strip().lower(), "")
    return ""


def get_extractor(extension: str) -> BaseExtractor:
    """Instantiate the extractor registered for *extension*.

    Raises
    ------
    UnsupportedFormatError
        If no extractor handles the extension.
    """
    extractor_cls = _EXTRACTORS.get(extension.lower())
    if extractor_cls is None:
        raise UnsupportedFormatError(
            message=f"No extractor for extension {extension!r}",
            provider_name="extractor",
        )
    return extractor_cls()


def extract_content(
    data: bytes,
    filename: str,
    media_type: str | None = None,
) -> ExtractedContent:
    """Dispatch *data* to the extractor matching *filename*.

    Raises
    ------
    UnsupportedFormatError
        For unknown extensions.
    src.utils.errors.ExtractionError
        When the format parser fails.
    """
    extension = file_extension(filename, media_type)
    extractor = get_extractor(extension)
    logger.debug(
        "extraction_started",
        file_name=filename,
        extension=extension,
        media_type=media_type,
        size=len(data),
    )
    return extractor.process(data)

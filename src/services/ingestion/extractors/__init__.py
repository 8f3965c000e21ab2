"""Format extractors for the Gonçalinho ingestion pipeline.

Each extractor converts the raw bytes of one upload into
:class:`~src.models.document.ExtractedContent`: prose text for the
:class:`~src.services.ingestion.chunker.TextChunker`, or row records for
the :class:`~src.services.ingestion.chunker.TableChunker`.

- **PDFExtractor**          -- embedded text layer via PyMuPDF (no OCR)
- **DOCXExtractor**         -- raw paragraph text via python-docx
- **CSVExtractor**          -- tolerant row parsing with delimiter detection
- **SpreadsheetExtractor**  -- every sheet of an XLSX/XLS workbook via pandas
- **TextFileExtractor**     -- plain text with encoding fallback
"""

from src.services.ingestion.extractors.base import BaseExtractor
from src.services.ingestion.extractors.csv_extractor import CSVExtractor, detect_delimiter
from src.services.ingestion.extractors.docx_extractor import DOCXExtractor
from src.services.ingestion.extractors.pdf_extractor import PDFExtractor
from src.services.ingestion.extractors.registry import (
    extract_content,
    file_extension,
    get_extractor,
    supported_extensions,
)
from src.services.ingestion.extractors.spreadsheet_extractor import SpreadsheetExtractor
from src.services.ingestion.extractors.text_extractor import TextFileExtractor

__all__ = [
    "BaseExtractor",
    "CSVExtractor",
    "DOCXExtractor",
    "PDFExtractor",
    "SpreadsheetExtractor",
    "TextFileExtractor",
    "detect_delimiter",
    "extract_content",
    "file_extension",
    "get_extractor",
    "supported_extensions",
]

"""Extractor for PDF documents.

Reads the embedded text layer with PyMuPDF (fitz), page by page, and joins
the pages with a blank line so page boundaries double as paragraph
boundaries for the text chunker.  Scanned PDFs without a text layer yield
no content: there is no OCR step.
"""

from __future__ import annotations

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from src.models.document import ExtractedContent
from src.services.ingestion.extractors.base import BaseExtractor
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)


class PDFExtractor(BaseExtractor):
    """Extracts the plain text of every page of a PDF."""

    format_name = "pdf"

    def process(self, data: bytes) -> ExtractedContent:
        pages = self._extract_pages(data)
        if not pages:
            logger.warning("pdf_no_text_extracted", size=len(data))
            return ExtractedContent.empty(self.format_name)

        text = "\n\n".join(pages)
        logger.info("pdf_extracted", pages=len(pages), characters=len(text))
        return ExtractedContent.from_text(self.format_name, text)

    def _extract_pages(self, data: bytes) -> list[str]:
        """Return the stripped text of each page that has any."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except Exception as exc:  # noqa: BLE001 -- fitz raises several unrelated types
            raise ExtractionError(
                message=f"Could not open PDF: {exc}",
                provider_name=self.format_name,
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                text = page.get_text("text").strip()
                if text:
                    pages.append(text)
        except Exception as exc:  # noqa: BLE001
            raise ExtractionError(
                message=f"Could not read PDF page text: {exc}",
                provider_name=self.format_name,
            ) from exc
        finally:
            doc.close()
        return pages

"""Extractor for Word (.docx) documents.

Produces raw text only: styles, numbering and images are discarded.  Body
paragraphs and the paragraphs inside table cells are emitted in document
order, one per block, separated by blank lines so the text chunker sees
each of them as a paragraph.
"""

from __future__ import annotations

import io

import structlog
from docx import Document as load_docx
from docx.oxml.ns import qn
from docx.table import Table
from docx.text.paragraph import Paragraph

from src.models.document import ExtractedContent
from src.services.ingestion.extractors.base import BaseExtractor
from src.utils.errors import ExtractionError

logger = structlog.get_logger(logger_name=__name__)

_PARAGRAPH_TAG = qn("w:p")
_TABLE_TAG = qn("w:tbl")


class DOCXExtractor(BaseExtractor):
    """Extracts raw paragraph text from a .docx file."""

    format_name = "docx"

    def process(self, data: bytes) -> ExtractedContent:
        try:
            document = load_docx(io.BytesIO(data))
            blocks = self._collect_blocks(document)
        except Exception as exc:  # noqa: BLE001 -- zipfile, lxml and docx errors alike
            raise ExtractionError(
                message=f"Could not parse DOCX: {exc}",
                provider_name=self.format_name,
            ) from exc

        text = "\n\n".join(blocks)
        logger.info("docx_extracted", blocks=len(blocks), characters=len(text))
        return ExtractedContent.from_text(self.format_name, text)

    @staticmethod
    def _collect_blocks(document) -> list[str]:  # noqa: ANN001 -- python-docx Document
        """Walk the body in order, yielding non-empty paragraph texts."""
        blocks: list[str] = []
        for element in document.element.body.iterchildren():
            if element.tag == _PARAGRAPH_TAG:
                text = Paragraph(element, document).text.strip()
                if text:
                    blocks.append(text)
            elif element.tag == _TABLE_TAG:
                table = Table(element, document)
                for row in table.rows:
                    # Merged cells are repeated by python-docx; emit each once.
                    seen: set[int] = set()
                    for cell in row.cells:
                        if id(cell._tc) in seen:
                            continue
                        seen.add(id(cell._tc))
                        for para in cell.paragraphs:
                            text = para.text.strip()
                            if text:
                                blocks.append(text)
        return blocks

"""Extractor for plain-text (.txt) files."""

from __future__ import annotations

import structlog

from src.models.document import ExtractedContent
from src.services.ingestion.extractors.base import BaseExtractor
from src.utils.text_decoding import decode_with_fallback

logger = structlog.get_logger(logger_name=__name__)


class TextFileExtractor(BaseExtractor):
    """Decodes a text file (UTF-8, Latin-1 fallback) into a single blob."""

    format_name = "txt"

    def process(self, data: bytes) -> ExtractedContent:
        text = decode_with_fallback(data)
        logger.info("txt_extracted", characters=len(text))
        return ExtractedContent.from_text(self.format_name, text)

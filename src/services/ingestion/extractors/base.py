"""Common contract for the per-format extractors."""

from __future__ import annotations

from abc import ABC, abstractmethod

from src.models.document import ExtractedContent


class BaseExtractor(ABC):
    """Turns the raw bytes of one uploaded file into :class:`ExtractedContent`.

    Extractors are stateless and synchronous; the ingestion service runs
    them in a worker thread so parsing a large PDF never blocks the event
    loop.
    """

    #: Lower-cased format tag recorded on the extracted content.
    format_name: str = ""

    @abstractmethod
    def process(self, data: bytes) -> ExtractedContent:
        """Extract text or row records from *data*.

        Raises
        ------
        src.utils.errors.ExtractionError
            If the bytes cannot be parsed at all.
        """

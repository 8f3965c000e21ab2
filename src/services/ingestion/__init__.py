"""Document ingestion pipeline for the Gonçalinho knowledge base.

Orchestrates the pipeline: **extract -> chunk -> tag -> store**.

1. **Extract** (extractors/) -- Format-specific readers turn raw upload
   bytes (PDF, DOCX, CSV, XLSX/XLS, TXT) into plain text or ordered row
   records.

2. **Chunk** (chunker.py) -- TextChunker packs paragraphs up to a
   character budget; TableChunker renders fixed-size row groups.

3. **Tag** -- Every chunk receives ``{document_id}_{index}`` and a copy of
   the document metadata (category, indicator, description, source,
   period, file name).

4. **Store** (via IDocumentStore) -- The Document, then its Chunks.

The IngestionService class orchestrates all four stages.
"""

from src.services.ingestion.chunker import TableChunker, TextChunker
from src.services.ingestion.ingestion_service import IngestionService

__all__ = [
    "IngestionService",
    "TableChunker",
    "TextChunker",
]

"""Document ingestion pipeline.

Orchestrates: **fetch -> extract -> sanitize -> chunk -> embed -> store**.

1. **Extract** (text_extractor.py / TextExtractor) -- decodes text, JSON and
   Markdown uploads and reads PDFs page by page; office formats are refused.

2. **Sanitize** (sanitizer.py) -- strips characters that break JSON or text
   columns, with a printable-ASCII fallback.

3. **Chunk** (chunker.py / TextChunker) -- splits text into ~2000-token
   chunks along paragraph, sentence or whitespace boundaries.

4. **Embed** (embedding_client.py / EmbeddingClient) -- one vector per chunk,
   with a cap check, timeout, one transient retry and token-limit halving.

5. **Store** (persistence_writer.py / PersistenceWriter) -- batch insert with
   per-item and ASCII-only fallbacks.

The IngestionService class drives all five stages for one document.
"""

from docingest.services.ingestion.chunker import TextChunker
from docingest.services.ingestion.embedding_client import EmbeddingClient
from docingest.services.ingestion.ingestion_service import IngestionService
from docingest.services.ingestion.persistence_writer import PersistenceWriter
from docingest.services.ingestion.text_extractor import TextExtractor

__all__ = [
    "EmbeddingClient",
    "IngestionService",
    "PersistenceWriter",
    "TextChunker",
    "TextExtractor",
]

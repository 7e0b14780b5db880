"""docingest domain models -- re-exports all public model classes.

    - document.py -- uploaded document records and ingestion triggers
    - rag.py      -- embedded chunks, embedding outcomes, persistence and
                    ingestion results
"""

from __future__ import annotations

from docingest.models.document import Document, IngestionRequest
from docingest.models.rag import (
    ChunkMetadata,
    DocumentChunk,
    EmbeddingOutcome,
    IngestionResult,
    IngestionStatus,
    PersistenceReport,
)

__all__ = [
    "ChunkMetadata",
    "Document",
    "DocumentChunk",
    "EmbeddingOutcome",
    "IngestionRequest",
    "IngestionResult",
    "IngestionStatus",
    "PersistenceReport",
]

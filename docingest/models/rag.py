"""Chunk, embedding and ingestion-result models.

Defines Pydantic v2 models for the records the ingestion pipeline produces:
embedded chunks with their metadata, per-chunk embedding outcomes, the
PersistenceWriter's report and the final per-document result.  All models
use frozen config.

Pipeline overview:

    1. EXTRACTION: raw upload bytes are decoded into plain text.
    2. CHUNKING: text is split into windows of at most ~2000 tokens.
    3. EMBEDDING: each window becomes a fixed-dimension vector.
    4. STORAGE: chunk + vector + metadata rows are written to the chunk
       store for later similarity search.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


# ---------------------------------------------------------------------------
# ChunkMetadata -- provenance copied onto every stored chunk.
# ---------------------------------------------------------------------------
class ChunkMetadata(BaseModel):
    """Provenance stored alongside each chunk.

    ``total_chunks`` is the number of chunks that received an embedding,
    which is only known once every unit of the document has been embedded.
    """

    model_config = ConfigDict(frozen=True)

    file_name: str = Field(description="Display name of the source document.")
    file_type: str = Field(description="MIME type of the source document.")
    chunk_index: int = Field(ge=0, description="Position of this chunk among embedded chunks.")
    total_chunks: int = Field(ge=1, description="Number of embedded chunks for the document.")
    folder_id: str | None = Field(default=None, description="Parent folder of the document.")


# ---------------------------------------------------------------------------
# DocumentChunk -- the unit written to the chunk store.
# ---------------------------------------------------------------------------
class DocumentChunk(BaseModel):
    """A chunk of document text paired with its embedding vector.

    A chunk is only ever built once its embedding exists; chunks whose
    embedding failed are dropped before this model is constructed.
    """

    model_config = ConfigDict(frozen=True)

    chunk_id: str = Field(description="Unique identifier (UUID4) for this chunk.")
    document_id: str = Field(description="Identifier of the parent document.")
    chunk_index: int = Field(ge=0, description="Sequence index within the document.")
    content: str = Field(min_length=1, description="The chunk's sanitized text.")
    embedding: list[float] = Field(min_length=1, description="Embedding vector for content.")
    metadata: ChunkMetadata
    created_at: datetime = Field(default_factory=_utcnow)


# ---------------------------------------------------------------------------
# EmbeddingOutcome -- result of embedding one unit of text.
# ---------------------------------------------------------------------------
class EmbeddingOutcome(BaseModel):
    """Vector for one chunk, or the reason none was produced."""

    model_config = ConfigDict(frozen=True)

    vector: list[float] | None = None
    reason: str | None = Field(
        default=None,
        description='Why no vector was produced, e.g. "over_cap", "token_limit_exhausted".',
    )
    halvings: int = Field(default=0, ge=0, description="Token-limit halvings performed.")

    @property
    def embedded(self) -> bool:
        return self.vector is not None


# ---------------------------------------------------------------------------
# PersistenceReport -- what the PersistenceWriter managed to store.
# ---------------------------------------------------------------------------
class PersistenceReport(BaseModel):
    """Outcome of writing one document's chunks."""

    model_config = ConfigDict(frozen=True)

    stored_count: int = Field(default=0, ge=0)
    failed_chunk_ids: frozenset[str] = Field(default_factory=frozenset)
    batch_succeeded: bool = False
    aggressive_retries: int = Field(
        default=0, ge=0, description="Chunks stored only after ASCII-only sanitization."
    )

    @property
    def succeeded(self) -> bool:
        return self.stored_count > 0


# ---------------------------------------------------------------------------
# IngestionResult -- output of the pipeline for one document.
# ---------------------------------------------------------------------------
class IngestionStatus(str, Enum):
    """Terminal state of a document ingestion."""

    EMBEDDED = "embedded"
    FAILED = "failed"


class IngestionResult(BaseModel):
    """Summary of a single document ingestion run.

    Returned by :meth:`IngestionService.ingest` for every outcome; failures
    are described by ``error_type`` / ``detail`` rather than raised.
    """

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Identifier of the ingested document.")
    status: IngestionStatus
    stored_chunk_count: int = Field(default=0, ge=0, description="Chunks durably stored.")
    dropped_chunk_count: int = Field(
        default=0, ge=0, description="Chunks that never received an embedding."
    )
    failed_chunk_ids: list[str] = Field(
        default_factory=list, description="Embedded chunks the store rejected."
    )
    error_type: str | None = Field(default=None, description="Exception class name on failure.")
    detail: str | None = Field(default=None, description="Human-readable failure detail.")
    retryable: bool = Field(
        default=False, description="Whether the trigger should redeliver this job."
    )
    ingestion_time: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall-clock time in seconds for the ingestion run.",
    )

    @property
    def succeeded(self) -> bool:
        return self.status is IngestionStatus.EMBEDDED

"""Pydantic request/response schemas for the docingest API.

The trigger body is :class:`~docingest.models.document.IngestionRequest`
(camelCase wire names, shared with the job queue).  Responses use the same
camelCase convention.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from docingest.models.rag import IngestionResult


class ProcessEmbeddingResponse(BaseModel):
    """Outcome of a ``POST /api/v1/process-embedding`` call."""

    model_config = ConfigDict(populate_by_name=True)

    success: bool
    document_id: str = Field(alias="fileId")
    status: str
    stored_chunk_count: int = Field(default=0, alias="chunks")
    dropped_chunk_count: int = Field(default=0, alias="droppedChunks")
    failed_chunk_ids: list[str] = Field(default_factory=list, alias="failedChunkIds")
    error: str | None = None
    detail: str | None = None

    @classmethod
    def from_result(cls, result: IngestionResult) -> ProcessEmbeddingResponse:
        return cls(
            success=result.succeeded,
            document_id=result.document_id,
            status=result.status.value,
            stored_chunk_count=result.stored_chunk_count,
            dropped_chunk_count=result.dropped_chunk_count,
            failed_chunk_ids=result.failed_chunk_ids,
            error=result.error_type,
            detail=result.detail,
        )


class HealthResponse(BaseModel):
    """Application health status."""

    status: str
    version: str
    providers: dict[str, Any] = Field(default_factory=dict)


class ErrorResponse(BaseModel):
    """Standard error response body."""

    error: str
    detail: str | None = None

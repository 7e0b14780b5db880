"""FastAPI route definitions for the docingest API.

Endpoint                              Method  Description
─────────────────────────────────────────────────────────────────────
/api/v1/process-embedding             POST    Ingest one uploaded document
/api/v1/health                        GET     Health check + provider status

The process-embedding endpoint is the job-queue trigger.  Delivery is
at-least-once and the queue retries on any 5xx, so the status code carries
the retry decision: 200 on success, 4xx for failures a retry cannot fix,
500 for failures worth redelivering.

Dependencies are resolved from ``app.state`` (populated at startup in
``main.py``) via ``Depends`` using the ``Annotated`` pattern.
"""

from __future__ import annotations

from typing import Annotated, Any

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from docingest import __version__
from docingest.api.middleware import http_status_for
from docingest.api.schemas import HealthResponse, ProcessEmbeddingResponse
from docingest.models.document import IngestionRequest
from docingest.services.ingestion.ingestion_service import IngestionService
from docingest.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)

router = APIRouter(prefix="/api/v1")


# ---------------------------------------------------------------------------
# Dependencies
# ---------------------------------------------------------------------------


def _get_ingestion_service(request: Request) -> IngestionService:
    """Return the ingestion orchestrator from application state."""
    return request.app.state.ingestion_service


IngestionServiceDep = Annotated[IngestionService, Depends(_get_ingestion_service)]


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@router.post(
    "/process-embedding",
    response_model=ProcessEmbeddingResponse,
    summary="Extract, chunk, embed and store one uploaded document",
)
async def process_embedding(
    payload: IngestionRequest,
    service: IngestionServiceDep,
) -> JSONResponse:
    """Run the ingestion pipeline for the document named in *payload*."""
    _logger.info(
        "process_embedding_requested",
        document_id=payload.document_id,
        file_type=payload.file_type,
    )
    result = await service.ingest(payload)

    body = ProcessEmbeddingResponse.from_result(result)
    status_code = 200 if result.succeeded else http_status_for(result.error_type, result.retryable)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(by_alias=True, exclude_none=True),
    )


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Application health check",
)
async def health_check(request: Request) -> HealthResponse:
    """Return application health, version, and provider availability."""
    providers: dict[str, Any] = {}
    if hasattr(request.app.state, "provider_registry"):
        providers = dict(request.app.state.provider_registry)

    required = ("embedding", "storage", "chunk_store")
    if all(providers.get(name, False) for name in required):
        status = "healthy"
    elif providers.get("chunk_store", False):
        status = "degraded"
    else:
        status = "unhealthy"

    return HealthResponse(
        status=status,
        version=__version__,
        providers=providers,
    )

"""docingest API layer -- routes, schemas, and middleware."""

from docingest.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    http_status_for,
)
from docingest.api.routes import router
from docingest.api.schemas import ErrorResponse, HealthResponse, ProcessEmbeddingResponse

__all__ = [
    "ErrorHandlingMiddleware",
    "ErrorResponse",
    "HealthResponse",
    "ProcessEmbeddingResponse",
    "RequestLoggingMiddleware",
    "http_status_for",
    "router",
]

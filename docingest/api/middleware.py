"""API middleware -- request logging and error handling.

Middleware is a stack (last added, first executed).  ``create_app`` adds
``ErrorHandlingMiddleware`` first and ``RequestLoggingMiddleware`` second,
so request logging wraps everything and sees the final status code even
when the error handler replaced an exception with a JSON error body.
"""

from __future__ import annotations

import time

import structlog
from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from docingest.api.schemas import ErrorResponse
from docingest.utils.errors import (
    DocumentNotFoundError,
    DownloadError,
    IngestionError,
    StorageObjectNotFoundError,
)
from docingest.utils.logging import get_logger

_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Request Logging
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every HTTP request with method, path, status code, and duration."""

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response: Response | None = None

        try:
            response = await call_next(request)
            return response
        finally:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            status_code = response.status_code if response else 500
            _logger.info(
                "http_request",
                method=request.method,
                path=str(request.url.path),
                status=status_code,
                duration_ms=duration_ms,
            )


# ---------------------------------------------------------------------------
# Error Handling
# ---------------------------------------------------------------------------


_NOT_FOUND_ERRORS = frozenset(
    cls.__name__ for cls in (DocumentNotFoundError, DownloadError, StorageObjectNotFoundError)
)


def http_status_for(error_type: str | None, retryable: bool) -> int:
    """Map a failure to an HTTP status for the job queue.

    Retryable failures become 500 so the queue redelivers; everything else
    is a 4xx the queue will not retry.
    """
    if retryable:
        return 500
    if error_type in _NOT_FOUND_ERRORS:
        return 404
    return 400


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch ``IngestionError`` subclasses and return structured JSON errors.

    Stack traces are logged server-side only; the client sees the error
    class name and message.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        try:
            return await call_next(request)
        except IngestionError as exc:
            _logger.error(
                "application_error",
                error_type=type(exc).__name__,
                message=exc.message,
                provider=exc.provider_name,
                path=str(request.url.path),
            )
            body = ErrorResponse(
                error=type(exc).__name__,
                detail=exc.message,
            )
            return JSONResponse(
                status_code=http_status_for(type(exc).__name__, exc.retryable),
                content=body.model_dump(),
            )

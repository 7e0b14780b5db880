"""Utility modules for docingest.

- **errors** -- Domain exception hierarchy rooted at IngestionError; each
  pipeline stage raises its own subclass so the orchestrator can turn any
  failure into a typed ingestion result.
- **logging** -- structlog setup with console output in development and
  structured JSON in production.
- **tokens** -- Character-ratio token estimator used by the chunker and the
  embedding client.
"""

from docingest.utils.errors import (
    ConfigurationError,
    DocumentNotFoundError,
    DownloadError,
    EmbeddingProviderError,
    ExtractionError,
    IngestionError,
    InvalidRequestError,
    PersistenceError,
    ProviderUnavailableError,
    StorageObjectNotFoundError,
    TokenLimitError,
    UnsupportedFormatError,
)
from docingest.utils.logging import configure_logging, get_logger
from docingest.utils.tokens import CharRatioTokenEstimator

__all__ = [
    "CharRatioTokenEstimator",
    "ConfigurationError",
    "DocumentNotFoundError",
    "DownloadError",
    "EmbeddingProviderError",
    "ExtractionError",
    "IngestionError",
    "InvalidRequestError",
    "PersistenceError",
    "ProviderUnavailableError",
    "StorageObjectNotFoundError",
    "TokenLimitError",
    "UnsupportedFormatError",
    "configure_logging",
    "get_logger",
]

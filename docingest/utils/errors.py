"""Custom exception hierarchy for docingest.

All application exceptions inherit from :class:`IngestionError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "openai_embedding", "sqlite", "local_storage") caused
the failure.

The hierarchy is organized by pipeline stage:

    IngestionError  (base -- catch-all for any docingest error)
    +-- InvalidRequestError          (malformed trigger payload)
    +-- DocumentNotFoundError        (no document record for the id)
    +-- DownloadError                (document bytes could not be fetched)
    +-- StorageObjectNotFoundError   (storage has no object at the path)
    +-- UnsupportedFormatError       (MIME type / extension not handled)
    +-- ExtractionError              (no usable text in the document)
    +-- EmbeddingProviderError       (embedding API rejected the request)
    |   +-- TokenLimitError          (input exceeded the model context)
    +-- ProviderUnavailableError     (external service down / unreachable)
    +-- PersistenceError             (chunk store write / read failure)
    +-- ConfigurationError           (startup / missing config)

Each class declares whether a failed ingestion caused by it is worth a
redelivery from the job queue (``retryable``).  The HTTP layer turns that
flag into a 5xx (queue retries) or a 4xx (queue gives up).
"""


class IngestionError(Exception):
    """Base exception for all docingest errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    The ``__str__`` method prefixes the provider name in brackets for
    structured log output, e.g. ``[openai_embedding] request timed out``.
    """

    retryable: bool = True

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Request / document lookup errors
# ---------------------------------------------------------------------------

class InvalidRequestError(IngestionError):
    """Raised when an ingestion trigger is missing required fields."""

    retryable = False

    def __init__(
        self,
        message: str = "Missing required fields",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DocumentNotFoundError(IngestionError):
    """Raised when the document record referenced by a trigger does not exist."""

    retryable = False

    def __init__(
        self,
        message: str = "File not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class StorageObjectNotFoundError(IngestionError):
    """Raised by storage providers when no object exists at a path."""

    retryable = False

    def __init__(
        self,
        message: str = "Storage object not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DownloadError(IngestionError):
    """Raised when the raw document bytes cannot be fetched from storage."""

    retryable = False

    def __init__(
        self,
        message: str = "Failed to download file",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Extraction errors
# ---------------------------------------------------------------------------

class UnsupportedFormatError(IngestionError):
    """Raised when a document's MIME type or extension is not supported."""

    retryable = False

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ExtractionError(IngestionError):
    """Raised when a supported document yields no usable text."""

    retryable = False

    def __init__(
        self,
        message: str = "No valid content found to process",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# External service / provider errors
# ---------------------------------------------------------------------------

class EmbeddingProviderError(IngestionError):
    """Raised when the embedding API rejects or fails a request."""

    def __init__(
        self,
        message: str = "Embedding request failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class TokenLimitError(EmbeddingProviderError):
    """Raised when an embedding input exceeds the model's context window.

    :class:`~docingest.services.ingestion.embedding_client.EmbeddingClient`
    catches this to halve the input and try again.
    """

    def __init__(
        self,
        message: str = "Input exceeds the model token limit",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnavailableError(IngestionError):
    """Raised when an external service is unreachable or times out.

    Embedding calls get exactly one retry on this error.
    """

    def __init__(
        self,
        message: str = "External service is unavailable",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PersistenceError(IngestionError):
    """Raised when the chunk store cannot read or write records."""

    def __init__(
        self,
        message: str = "Failed to store chunks",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Application-level errors
# ---------------------------------------------------------------------------

class ConfigurationError(IngestionError):
    """Raised when required configuration is missing or invalid.

    Typically raised at startup when a backend is selected without the
    settings it needs (e.g. HTTP storage without a base URL).
    """

    retryable = False

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)

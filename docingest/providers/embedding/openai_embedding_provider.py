"""OpenAI-compatible embedding provider adapter.

Wraps the ``openai`` async client to implement :class:`IEmbeddingProvider`.
Supports both real OpenAI and OpenAI-compatible providers (Ollama,
TogetherAI) via custom ``base_url`` and model name settings.

SDK-level retries are disabled: the
:class:`~docingest.services.ingestion.embedding_client.EmbeddingClient`
owns the timeout and retry policy, and needs SDK failures translated into
the docingest error hierarchy:

- context-length rejections → :class:`TokenLimitError`
- timeouts / connection failures → :class:`ProviderUnavailableError`
- any other API error → :class:`EmbeddingProviderError`
"""

from __future__ import annotations

import openai
import structlog

from docingest.config.settings import Settings
from docingest.interfaces.embedding_provider import IEmbeddingProvider
from docingest.utils.errors import (
    EmbeddingProviderError,
    ProviderUnavailableError,
    TokenLimitError,
)

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_MODEL = "text-embedding-3-small"
# AsyncOpenAI rejects an empty key.
_UNCONFIGURED_API_KEY = "unconfigured"

# Known embedding model dimensions.
_MODEL_DIMENSIONS: dict[str, int] = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
    "nomic-embed-text": 768,
    "BAAI/bge-base-en-v1.5": 768,
    "BAAI/bge-large-en-v1.5": 1024,
}

# Substrings the API uses when an input is longer than the model accepts.
_TOKEN_LIMIT_MARKERS = ("maximum context length", "token limit")


def is_token_limit_message(message: str) -> bool:
    """Return ``True`` if an API error message reports an over-long input."""
    lowered = message.lower()
    return any(marker in lowered for marker in _TOKEN_LIMIT_MARKERS)


class OpenAIEmbeddingProvider(IEmbeddingProvider):
    """Embedding provider backed by an OpenAI-compatible embeddings API.

    Uses ``text-embedding-3-small`` (1536 dims) by default.  When
    ``openai_base_url`` is configured, the client points at that URL and
    uses ``openai_embedding_model`` if set.
    """

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._api_key = settings.openai_api_key

        client_kwargs: dict = {
            "api_key": self._api_key or _UNCONFIGURED_API_KEY,
            "max_retries": 0,
            "timeout": settings.embedding_timeout_seconds,
        }
        if settings.openai_base_url:
            client_kwargs["base_url"] = settings.openai_base_url

        self._client = openai.AsyncOpenAI(**client_kwargs)
        self._model = settings.openai_embedding_model or _DEFAULT_MODEL
        self._dimension = _MODEL_DIMENSIONS.get(self._model, 0)
        self._provider_label = (
            "openai-compatible_embedding" if settings.openai_base_url else "openai_embedding"
        )

    # ------------------------------------------------------------------
    # IEmbeddingProvider implementation
    # ------------------------------------------------------------------

    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string."""
        try:
            response = await self._client.embeddings.create(
                input=text,
                model=self._model,
            )
        except openai.APIConnectionError as exc:
            # Includes APITimeoutError.
            raise ProviderUnavailableError(
                message=f"{self._provider_label} unreachable: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        except openai.APIError as exc:
            if is_token_limit_message(str(exc)):
                raise TokenLimitError(
                    message=f"{self._provider_label} rejected input length: {exc}",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise EmbeddingProviderError(
                message=f"{self._provider_label} API error: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if not response.data:
            raise EmbeddingProviderError(
                message=f"{self._provider_label} returned no embedding",
                provider_name=self.get_provider_name(),
            )

        logger.debug(
            "openai_embedding_created",
            model=self._model,
            provider=self._provider_label,
            chars=len(text),
            tokens=response.usage.total_tokens if response.usage else None,
        )
        return list(response.data[0].embedding)

    def get_dimension(self) -> int:
        """Return the model's vector size, or ``0`` when the model is unknown."""
        return self._dimension

    def get_provider_name(self) -> str:
        return self._provider_label

    def is_available(self) -> bool:
        """Return ``True`` if an API key is configured."""
        return bool(self._api_key)

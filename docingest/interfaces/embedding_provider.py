"""Abstract base class for text-embedding service providers.

Defines the contract for turning a single chunk of text into an embedding
vector.  Implementations may wrap OpenAI ``text-embedding-3-small``, an
OpenAI-compatible endpoint (Ollama, TogetherAI), or any other backend.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   OpenAIEmbeddingProvider -- text-embedding-3-small / ada-002 (requires API key)
# Located in: docingest/providers/embedding/
class IEmbeddingProvider(ABC):
    """Contract for embedding services used by the ingestion pipeline.

    Providers translate their SDK's failures into the docingest error
    hierarchy so that :class:`~docingest.services.ingestion.embedding_client.EmbeddingClient`
    can apply the right policy to each.
    """

    @abstractmethod
    async def embed_single(self, text: str) -> list[float]:
        """Generate an embedding vector for a single text string.

        Parameters
        ----------
        text:
            The chunk text to embed.

        Returns
        -------
        list[float]
            The embedding vector with length equal to :meth:`get_dimension`.

        Raises
        ------
        docingest.utils.errors.TokenLimitError
            If the input exceeds the model's context window.
        docingest.utils.errors.ProviderUnavailableError
            On a transient network failure (timeout, connection reset).
        docingest.utils.errors.EmbeddingProviderError
            For any other rejection by the provider.
        """

    @abstractmethod
    def get_dimension(self) -> int:
        """Return the dimensionality of the embedding vectors.

        Example values: ``1536`` (OpenAI ``text-embedding-3-small``),
        ``768`` (Nomic ``nomic-embed-text``).
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this embedding provider."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the provider is configured (credentials present)."""

"""Abstract base class for document byte storage.

Uploaded files live in object storage; the ingestion pipeline only ever
reads them back by the path recorded on the document.
"""

from __future__ import annotations

from abc import ABC, abstractmethod


# Concrete implementations:
#   LocalStorageProvider -- files under a root directory
#   HTTPStorageProvider  -- object-storage REST download via httpx
# Located in: docingest/providers/storage/
class IStorageProvider(ABC):
    """Contract for fetching raw document bytes."""

    @abstractmethod
    async def get(self, storage_path: str) -> bytes:
        """Return the full content stored at *storage_path*.

        Raises
        ------
        docingest.utils.errors.StorageObjectNotFoundError
            If nothing is stored at the path.
        docingest.utils.errors.ProviderUnavailableError
            If the storage backend cannot be reached.
        """

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this storage backend."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return ``True`` if the backend is configured."""

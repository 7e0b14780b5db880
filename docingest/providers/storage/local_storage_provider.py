"""Filesystem-backed document storage.

Resolves storage paths relative to a root directory (``data/uploads`` by
default).  Used for local development, the CLI and tests; production
deployments point :class:`HTTPStorageProvider` at object storage instead.
"""

from __future__ import annotations

import asyncio
from pathlib import Path

import structlog

from docingest.interfaces.storage_provider import IStorageProvider
from docingest.utils.errors import ProviderUnavailableError, StorageObjectNotFoundError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_ROOT = Path("data/uploads")


class LocalStorageProvider(IStorageProvider):
    """Reads document bytes from files under *root_dir*."""

    def __init__(self, root_dir: str | Path = _DEFAULT_ROOT) -> None:
        self._root = Path(root_dir).resolve()

    async def get(self, storage_path: str) -> bytes:
        path = self._resolve(storage_path)
        try:
            data = await asyncio.to_thread(path.read_bytes)
        except FileNotFoundError as exc:
            raise StorageObjectNotFoundError(
                message=f"No object at {storage_path}",
                provider_name=self.get_provider_name(),
            ) from exc
        except OSError as exc:
            raise ProviderUnavailableError(
                message=f"Could not read {storage_path}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("storage_object_read", path=storage_path, size=len(data))
        return data

    def get_provider_name(self) -> str:
        return "local_storage"

    def is_available(self) -> bool:
        return self._root.is_dir()

    def _resolve(self, storage_path: str) -> Path:
        """Map *storage_path* into the root, refusing paths that escape it."""
        candidate = (self._root / storage_path.lstrip("/")).resolve()
        if candidate != self._root and self._root not in candidate.parents:
            raise StorageObjectNotFoundError(
                message=f"Path escapes storage root: {storage_path}",
                provider_name=self.get_provider_name(),
            )
        return candidate

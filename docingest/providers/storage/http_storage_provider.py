"""Object-storage download over HTTP.

Fetches uploads from a Supabase/S3-style REST endpoint::

    GET {base_url}/storage/v1/object/{bucket}/{path}

A 400 or 404 means the object does not exist; timeouts, connection errors
and 5xx responses mean the backend is unavailable.
"""

from __future__ import annotations

from urllib.parse import quote

import httpx
import structlog

from docingest.interfaces.storage_provider import IStorageProvider
from docingest.utils.errors import ProviderUnavailableError, StorageObjectNotFoundError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_TIMEOUT = 30.0
_NOT_FOUND_STATUSES = frozenset({400, 404})


class HTTPStorageProvider(IStorageProvider):
    """Downloads document bytes from an object-storage REST API."""

    def __init__(
        self,
        base_url: str,
        bucket: str,
        api_key: str = "",
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._bucket = bucket
        self._api_key = api_key
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(_DEFAULT_TIMEOUT),
            follow_redirects=True,
        )

    async def get(self, storage_path: str) -> bytes:
        url = self.object_url(storage_path)
        headers = {"Authorization": f"Bearer {self._api_key}"} if self._api_key else {}

        try:
            response = await self._client.get(url, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            if status in _NOT_FOUND_STATUSES:
                raise StorageObjectNotFoundError(
                    message=f"No object at {storage_path} (HTTP {status})",
                    provider_name=self.get_provider_name(),
                ) from exc
            raise ProviderUnavailableError(
                message=f"HTTP {status} downloading {storage_path}",
                provider_name=self.get_provider_name(),
            ) from exc
        except httpx.HTTPError as exc:
            raise ProviderUnavailableError(
                message=f"Download of {storage_path} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        logger.debug("storage_object_downloaded", path=storage_path, size=len(response.content))
        return response.content

    def object_url(self, storage_path: str) -> str:
        """Return the download URL for *storage_path*."""
        path = quote(storage_path.lstrip("/"), safe="/")
        return f"{self._base_url}/storage/v1/object/{self._bucket}/{path}"

    def get_provider_name(self) -> str:
        return "http_storage"

    def is_available(self) -> bool:
        return bool(self._base_url)

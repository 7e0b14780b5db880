"""docingest FastAPI application entry point.

Wires together providers and services via dependency injection.  Loads
configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and exposes the ingestion trigger endpoint.

``build_ingestion_service`` is shared with the CLI so both entry points
assemble the pipeline identically.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

import httpx
import structlog
import uvicorn
from fastapi import FastAPI

from docingest import __version__
from docingest.api.middleware import ErrorHandlingMiddleware, RequestLoggingMiddleware
from docingest.api.routes import router as api_router
from docingest.config.loader import load_config
from docingest.config.settings import Settings
from docingest.interfaces.storage_provider import IStorageProvider
from docingest.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from docingest.providers.storage.http_storage_provider import HTTPStorageProvider
from docingest.providers.storage.local_storage_provider import LocalStorageProvider
from docingest.providers.store.sqlite_chunk_store import SQLiteChunkStore
from docingest.services.ingestion.chunker import TextChunker
from docingest.services.ingestion.embedding_client import EmbeddingClient
from docingest.services.ingestion.ingestion_service import IngestionService
from docingest.utils.errors import ConfigurationError
from docingest.utils.logging import configure_logging, get_logger
from docingest.utils.tokens import CharRatioTokenEstimator

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

_HTTP_TIMEOUT_SECONDS = 30.0

settings = Settings()

configure_logging(
    log_level=settings.log_level,
    json_output=(settings.app_env == "production"),
)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Provider selection
# ---------------------------------------------------------------------------


def _build_storage_provider(
    app_settings: Settings, http_client: httpx.AsyncClient | None = None
) -> IStorageProvider:
    """Select the storage backend named by ``storage_backend``."""
    backend = app_settings.storage_backend.lower()
    if backend == "local":
        return LocalStorageProvider(root_dir=app_settings.storage_root)
    if backend == "http":
        if not app_settings.storage_base_url:
            raise ConfigurationError(
                message="STORAGE_BASE_URL is required when STORAGE_BACKEND=http",
                provider_name="http_storage",
            )
        return HTTPStorageProvider(
            base_url=app_settings.storage_base_url,
            bucket=app_settings.storage_bucket,
            api_key=app_settings.storage_api_key,
            http_client=http_client,
        )
    raise ConfigurationError(message=f"Unknown STORAGE_BACKEND: {app_settings.storage_backend}")


def build_ingestion_service(
    app_settings: Settings,
    config: dict[str, Any] | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> dict[str, Any]:
    """Instantiate every collaborator and the :class:`IngestionService`.

    Tuning values come from the ``ingestion`` section of *config* (YAML
    merged with environment overrides), falling back to *app_settings*.

    Returns
    -------
    dict
        Keys: ``ingestion_service``, ``chunk_store``, ``storage``,
        ``embedding_provider``, ``provider_registry``.
    """
    tuning = (config or {}).get("ingestion", {})
    chunk_budget = int(tuning.get("chunk_token_budget", app_settings.chunk_token_budget))
    token_cap = int(tuning.get("embedding_token_cap", app_settings.embedding_token_cap))
    timeout = float(
        tuning.get("embedding_timeout_seconds", app_settings.embedding_timeout_seconds)
    )
    max_halvings = int(tuning.get("max_halvings", app_settings.max_halvings))

    estimator = CharRatioTokenEstimator()
    storage = _build_storage_provider(app_settings, http_client)
    chunk_store = SQLiteChunkStore(db_path=app_settings.sqlite_db_path)
    embedding_provider = OpenAIEmbeddingProvider(settings=app_settings)

    embedding_client = EmbeddingClient(
        provider=embedding_provider,
        token_cap=token_cap,
        estimator=estimator,
        timeout_seconds=timeout,
        max_halvings=max_halvings,
    )
    service = IngestionService(
        storage=storage,
        store=chunk_store,
        embedding_client=embedding_client,
        chunker=TextChunker(estimator),
        chunk_budget=chunk_budget,
        estimator=estimator,
    )

    provider_registry = {
        "embedding": embedding_provider.is_available(),
        "embedding_provider": embedding_provider.get_provider_name(),
        "storage": storage.is_available(),
        "storage_provider": storage.get_provider_name(),
        "chunk_store": True,
    }

    return {
        "ingestion_service": service,
        "chunk_store": chunk_store,
        "storage": storage,
        "embedding_provider": embedding_provider,
        "provider_registry": provider_registry,
    }


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise providers and services on startup, clean up on shutdown."""
    config = load_config(settings=settings)
    http_client = httpx.AsyncClient(timeout=httpx.Timeout(_HTTP_TIMEOUT_SECONDS))
    components = build_ingestion_service(settings, config=config, http_client=http_client)

    for key, value in components.items():
        setattr(application.state, key, value)

    await components["chunk_store"].initialize()

    _logger.info(
        "app_startup",
        version=__version__,
        environment=settings.app_env,
        providers=components["provider_registry"],
    )

    yield

    await http_client.aclose()
    _logger.info("app_shutdown", message="HTTP client closed")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="docingest API",
        version=__version__,
        description=(
            "Extract text from uploaded documents, split it into token-budgeted "
            "chunks, embed each chunk and store the vectors for semantic search."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    application.add_middleware(ErrorHandlingMiddleware)
    application.add_middleware(RequestLoggingMiddleware)

    application.include_router(api_router)
    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "docingest.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )

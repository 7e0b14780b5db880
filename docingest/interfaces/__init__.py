"""Public interface definitions for all external collaborators.

Every external service the ingestion pipeline touches (object storage,
embedding API, database) is accessed exclusively through the abstract base
classes defined in this package.  Concrete adapters implement these
interfaces and are injected at runtime by ``docingest/main.py`` and the CLI,
so unit tests can substitute mocks without real network or disk I/O.

CONCRETE PROVIDER MAP:
    Interface            →  Concrete implementations
    ─────────────────────────────────────────────────────────────────
    IStorageProvider     →  LocalStorageProvider, HTTPStorageProvider
    IEmbeddingProvider   →  OpenAIEmbeddingProvider
    IChunkStore          →  SQLiteChunkStore
    ITokenEstimator      →  CharRatioTokenEstimator
"""

from docingest.interfaces.chunk_store import IChunkStore
from docingest.interfaces.embedding_provider import IEmbeddingProvider
from docingest.interfaces.storage_provider import IStorageProvider
from docingest.interfaces.token_estimator import ITokenEstimator

__all__ = [
    "IChunkStore",
    "IEmbeddingProvider",
    "IStorageProvider",
    "ITokenEstimator",
]

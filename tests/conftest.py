"""Shared pytest fixtures for the docingest test suite."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from docingest.interfaces.chunk_store import IChunkStore
from docingest.interfaces.embedding_provider import IEmbeddingProvider
from docingest.interfaces.storage_provider import IStorageProvider
from docingest.models.document import Document, IngestionRequest
from docingest.models.rag import ChunkMetadata, DocumentChunk

EMBEDDING_DIM = 8


# ---------------------------------------------------------------------------
# Sample data
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_text() -> str:
    """Three short paragraphs of prose."""
    return (
        "Quarterly revenue grew by twelve percent. Most of the growth came "
        "from the northern region.\n\n"
        "Operating costs stayed flat. Headcount increased slightly in "
        "engineering and support.\n\n"
        "The board approved the budget for the next fiscal year. A review is "
        "scheduled for March."
    )


@pytest.fixture
def sample_document() -> Document:
    return Document(
        document_id="doc-001",
        name="report.txt",
        mime_type="text/plain",
        storage_path="uploads/report.txt",
        folder_id="folder-9",
    )


@pytest.fixture
def sample_request() -> IngestionRequest:
    return IngestionRequest(
        fileId="doc-001",
        filePath="uploads/report.txt",
        fileName="report.txt",
        fileType="text/plain",
        folderId="folder-9",
    )


def make_chunk(
    index: int = 0,
    content: str = "Some stored text.",
    document_id: str = "doc-001",
    total: int = 1,
) -> DocumentChunk:
    """Build a valid embedded chunk for persistence tests."""
    return DocumentChunk(
        chunk_id=f"chunk-{index}",
        document_id=document_id,
        chunk_index=index,
        content=content,
        embedding=[0.1] * EMBEDDING_DIM,
        metadata=ChunkMetadata(
            file_name="report.txt",
            file_type="text/plain",
            chunk_index=index,
            total_chunks=total,
        ),
    )


# ---------------------------------------------------------------------------
# Mock collaborators
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_embedding_provider() -> MagicMock:
    """Embedding provider returning a fixed-size vector for every input."""
    provider = MagicMock(spec=IEmbeddingProvider)
    provider.embed_single = AsyncMock(return_value=[0.1] * EMBEDDING_DIM)
    provider.get_dimension.return_value = EMBEDDING_DIM
    provider.get_provider_name.return_value = "mock_embedding"
    provider.is_available.return_value = True
    return provider


@pytest.fixture
def mock_storage() -> MagicMock:
    storage = MagicMock(spec=IStorageProvider)
    storage.get = AsyncMock(return_value=b"")
    storage.get_provider_name.return_value = "mock_storage"
    storage.is_available.return_value = True
    return storage


@pytest.fixture
def mock_store(sample_document: Document) -> MagicMock:
    """Chunk store that knows ``sample_document`` and accepts every write."""
    store = MagicMock(spec=IChunkStore)
    store.initialize = AsyncMock()
    store.register_document = AsyncMock()
    store.get_document = AsyncMock(return_value=sample_document)
    store.insert_batch = AsyncMock()
    store.insert_one = AsyncMock()
    store.mark_embedded = AsyncMock()
    store.count_chunks = AsyncMock(return_value=0)
    store.get_provider_name.return_value = "mock_store"
    return store


@pytest.fixture
def uploads_dir(tmp_path: Path) -> Path:
    root = tmp_path / "uploads"
    root.mkdir()
    return root


@pytest.fixture
def chunk_factory():
    """Return :func:`make_chunk` for tests that need several chunks."""
    return make_chunk

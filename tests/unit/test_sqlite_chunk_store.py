"""Unit tests for SQLiteChunkStore.

Runs against a temporary database file so the real data directory is
never touched.
"""

from __future__ import annotations

from pathlib import Path

import pytest

from docingest.models.document import Document
from docingest.providers.store.sqlite_chunk_store import SQLiteChunkStore
from docingest.utils.errors import PersistenceError


@pytest.fixture
async def store(tmp_path: Path):
    s = SQLiteChunkStore(db_path=tmp_path / "nested" / "chunks.db")
    await s.initialize()
    yield s


# --- Initialization ---------------------------------------------------------------


async def test_initialize_creates_parent_dirs(tmp_path: Path) -> None:
    db_path = tmp_path / "a" / "b" / "chunks.db"
    await SQLiteChunkStore(db_path=db_path).initialize()
    assert db_path.exists()


async def test_double_initialize_is_idempotent(store: SQLiteChunkStore) -> None:
    await store.initialize()
    assert store.get_provider_name() == "sqlite"


# --- Documents ---------------------------------------------------------------


async def test_register_and_get_document(
    store: SQLiteChunkStore, sample_document: Document
) -> None:
    await store.register_document(sample_document)

    loaded = await store.get_document("doc-001")

    assert loaded == sample_document


async def test_get_missing_document(store: SQLiteChunkStore) -> None:
    assert await store.get_document("nope") is None


async def test_register_is_an_upsert(
    store: SQLiteChunkStore, sample_document: Document
) -> None:
    await store.register_document(sample_document)
    await store.register_document(sample_document.model_copy(update={"name": "renamed.txt"}))

    loaded = await store.get_document("doc-001")

    assert loaded is not None
    assert loaded.name == "renamed.txt"


async def test_mark_embedded(store: SQLiteChunkStore, sample_document: Document) -> None:
    await store.register_document(sample_document)

    await store.mark_embedded("doc-001")

    loaded = await store.get_document("doc-001")
    assert loaded is not None
    assert loaded.embedded is True


# --- Chunks ---------------------------------------------------------------


async def test_insert_batch_and_read_back(store: SQLiteChunkStore, chunk_factory) -> None:
    chunks = [chunk_factory(i, f"Chunk number {i}.", total=3) for i in (2, 0, 1)]

    await store.insert_batch(chunks)

    assert await store.count_chunks("doc-001") == 3
    loaded = await store.get_chunks("doc-001")
    assert [c.chunk_index for c in loaded] == [0, 1, 2]
    assert loaded[0].content == "Chunk number 0."
    assert loaded[0].embedding == chunks[1].embedding
    assert loaded[0].metadata.total_chunks == 3


async def test_failed_batch_is_rolled_back(store: SQLiteChunkStore, chunk_factory) -> None:
    # Duplicate primary key on the second row.
    chunks = [chunk_factory(0), chunk_factory(0)]

    with pytest.raises(PersistenceError):
        await store.insert_batch(chunks)

    assert await store.count_chunks("doc-001") == 0


async def test_insert_one(store: SQLiteChunkStore, chunk_factory) -> None:
    await store.insert_one(chunk_factory(0))
    assert await store.count_chunks("doc-001") == 1


async def test_insert_one_duplicate_raises(store: SQLiteChunkStore, chunk_factory) -> None:
    await store.insert_one(chunk_factory(0))

    with pytest.raises(PersistenceError):
        await store.insert_one(chunk_factory(0))


async def test_insert_batch_empty_is_noop(store: SQLiteChunkStore) -> None:
    await store.insert_batch([])
    assert await store.count_chunks("doc-001") == 0


async def test_unicode_content_round_trips(store: SQLiteChunkStore, chunk_factory) -> None:
    await store.insert_one(chunk_factory(0, "Gr\u00fc\u00dfe, \u6771\u4eac"))

    (loaded,) = await store.get_chunks("doc-001")

    assert loaded.content == "Gr\u00fc\u00dfe, \u6771\u4eac"

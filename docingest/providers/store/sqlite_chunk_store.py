"""SQLite-backed document and chunk store.

Persists document records and embedded chunks to a local SQLite database
at ``data/docingest.db``.  Uses ``aiosqlite`` for async I/O.

Chunk metadata and embedding vectors are stored as JSON text.  A batch
insert runs in a single transaction and is rolled back on error, so a
failed batch leaves nothing behind for the per-item fallback to collide
with.
"""

from __future__ import annotations

import json
import sqlite3
from datetime import datetime, timezone
from pathlib import Path

import aiosqlite
import structlog

from docingest.interfaces.chunk_store import IChunkStore
from docingest.models.document import Document
from docingest.models.rag import DocumentChunk
from docingest.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_DB_PATH = Path("data/docingest.db")

_CREATE_DOCUMENTS_SQL = """\
CREATE TABLE IF NOT EXISTS documents (
    id              TEXT    PRIMARY KEY,
    name            TEXT    NOT NULL,
    mime_type       TEXT    NOT NULL DEFAULT '',
    storage_path    TEXT    NOT NULL,
    folder_id       TEXT,
    has_embeddings  INTEGER NOT NULL DEFAULT 0,
    created_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now')),
    updated_at      TEXT    NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))
);
"""

_CREATE_CHUNKS_SQL = """\
CREATE TABLE IF NOT EXISTS document_embeddings (
    id          TEXT    PRIMARY KEY,
    file_id     TEXT    NOT NULL,
    chunk_index INTEGER NOT NULL,
    content     TEXT    NOT NULL CHECK (length(content) > 0),
    metadata    TEXT    NOT NULL,
    embedding   TEXT    NOT NULL,
    created_at  TEXT    NOT NULL
);
"""

_CREATE_INDICES_SQL = [
    "CREATE INDEX IF NOT EXISTS idx_embeddings_file ON document_embeddings(file_id);",
    "CREATE INDEX IF NOT EXISTS idx_documents_folder ON documents(folder_id);",
]

_UPSERT_DOCUMENT_SQL = """\
INSERT INTO documents (id, name, mime_type, storage_path, folder_id, has_embeddings)
VALUES (?, ?, ?, ?, ?, ?)
ON CONFLICT(id)
DO UPDATE SET name           = excluded.name,
              mime_type      = excluded.mime_type,
              storage_path   = excluded.storage_path,
              folder_id      = excluded.folder_id,
              has_embeddings = excluded.has_embeddings,
              updated_at     = strftime('%Y-%m-%dT%H:%M:%fZ', 'now');
"""

_INSERT_CHUNK_SQL = """\
INSERT INTO document_embeddings
    (id, file_id, chunk_index, content, metadata, embedding, created_at)
VALUES (?, ?, ?, ?, ?, ?, ?);
"""

_MARK_EMBEDDED_SQL = """\
UPDATE documents
SET has_embeddings = 1,
    updated_at     = strftime('%Y-%m-%dT%H:%M:%fZ', 'now')
WHERE id = ?;
"""


def _chunk_row(chunk: DocumentChunk) -> tuple:
    return (
        chunk.chunk_id,
        chunk.document_id,
        chunk.chunk_index,
        chunk.content,
        chunk.metadata.model_dump_json(),
        json.dumps(chunk.embedding),
        chunk.created_at.astimezone(timezone.utc).isoformat(),
    )


class SQLiteChunkStore(IChunkStore):
    """SQLite-backed document and chunk persistence."""

    def __init__(self, db_path: str | Path = _DEFAULT_DB_PATH) -> None:
        self._db_path = Path(db_path)

    async def initialize(self) -> None:
        """Create the documents / chunks tables and indices if they don't exist."""
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        async with aiosqlite.connect(str(self._db_path)) as db:
            await db.execute(_CREATE_DOCUMENTS_SQL)
            await db.execute(_CREATE_CHUNKS_SQL)
            for idx_sql in _CREATE_INDICES_SQL:
                await db.execute(idx_sql)
            await db.commit()
        logger.info("chunk_store_initialized", path=str(self._db_path))

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    async def register_document(self, document: Document) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(
                    _UPSERT_DOCUMENT_SQL,
                    (
                        document.document_id,
                        document.name,
                        document.mime_type,
                        document.storage_path,
                        document.folder_id,
                        int(document.embedded),
                    ),
                )
                await db.commit()
        except sqlite3.Error as exc:
            raise PersistenceError(
                message=f"Could not register document {document.document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.info("document_registered", document_id=document.document_id)

    async def get_document(self, document_id: str) -> Document | None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                db.row_factory = aiosqlite.Row
                cursor = await db.execute(
                    "SELECT id, name, mime_type, storage_path, folder_id, has_embeddings "
                    "FROM documents WHERE id = ?",
                    (document_id,),
                )
                row = await cursor.fetchone()
        except sqlite3.Error as exc:
            raise PersistenceError(
                message=f"Could not load document {document_id}: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

        if row is None:
            return None
        return Document(
            document_id=row["id"],
            name=row["name"],
            mime_type=row["mime_type"],
            storage_path=row["storage_path"],
            folder_id=row["folder_id"],
            embedded=bool(row["has_embeddings"]),
        )

    async def mark_embedded(self, document_id: str) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_MARK_EMBEDDED_SQL, (document_id,))
                await db.commit()
        except sqlite3.Error as exc:
            raise PersistenceError(
                message=f"Could not mark document {document_id} embedded: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    # ------------------------------------------------------------------
    # Chunks
    # ------------------------------------------------------------------

    async def insert_batch(self, chunks: list[DocumentChunk]) -> None:
        if not chunks:
            return
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                try:
                    await db.executemany(_INSERT_CHUNK_SQL, [_chunk_row(c) for c in chunks])
                    await db.commit()
                except (sqlite3.Error, UnicodeEncodeError):
                    await db.rollback()
                    raise
        except (sqlite3.Error, UnicodeEncodeError) as exc:
            raise PersistenceError(
                message=f"Batch insert of {len(chunks)} chunks failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc
        logger.debug("chunks_inserted", count=len(chunks), document_id=chunks[0].document_id)

    async def insert_one(self, chunk: DocumentChunk) -> None:
        try:
            async with aiosqlite.connect(str(self._db_path)) as db:
                await db.execute(_INSERT_CHUNK_SQL, _chunk_row(chunk))
                await db.commit()
        except (sqlite3.Error, UnicodeEncodeError) as exc:
            raise PersistenceError(
                message=f"Insert of chunk {chunk.chunk_id} failed: {exc}",
                provider_name=self.get_provider_name(),
            ) from exc

    async def count_chunks(self, document_id: str) -> int:
        async with aiosqlite.connect(str(self._db_path)) as db:
            cursor = await db.execute(
                "SELECT COUNT(*) FROM document_embeddings WHERE file_id = ?",
                (document_id,),
            )
            row = await cursor.fetchone()
        return int(row[0]) if row else 0

    async def get_chunks(self, document_id: str) -> list[DocumentChunk]:
        """Return every stored chunk of *document_id* in sequence order."""
        async with aiosqlite.connect(str(self._db_path)) as db:
            db.row_factory = aiosqlite.Row
            cursor = await db.execute(
                "SELECT id, file_id, chunk_index, content, metadata, embedding, created_at "
                "FROM document_embeddings WHERE file_id = ? ORDER BY chunk_index",
                (document_id,),
            )
            rows = await cursor.fetchall()
        return [
            DocumentChunk(
                chunk_id=r["id"],
                document_id=r["file_id"],
                chunk_index=r["chunk_index"],
                content=r["content"],
                metadata=json.loads(r["metadata"]),
                embedding=json.loads(r["embedding"]),
                created_at=datetime.fromisoformat(r["created_at"]),
            )
            for r in rows
        ]

    def get_provider_name(self) -> str:
        return "sqlite"

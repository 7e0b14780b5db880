"""Resilient chunk persistence.

Writes one document's embedded chunks with three layers of fallback:

1. One batch insert of every chunk.
2. If the batch fails, each chunk is inserted individually.
3. If an individual insert fails, the chunk is retried exactly once with
   its content reduced to printable ASCII (:func:`aggressive_sanitize`).

A chunk that fails all of that is recorded in the report and skipped; the
writer never raises because some chunks were lost.  The orchestrator
treats a report with zero stored chunks as a document failure.
"""

from __future__ import annotations

import structlog

from docingest.interfaces.chunk_store import IChunkStore
from docingest.models.rag import DocumentChunk, PersistenceReport
from docingest.services.ingestion.sanitizer import aggressive_sanitize
from docingest.utils.errors import PersistenceError

logger = structlog.get_logger(logger_name=__name__)


class PersistenceWriter:
    """Stores embedded chunks, degrading from batch to per-item writes."""

    def __init__(self, store: IChunkStore) -> None:
        self._store = store

    async def write(self, document_id: str, chunks: list[DocumentChunk]) -> PersistenceReport:
        """Persist *chunks* for *document_id* and report what was stored.

        Parameters
        ----------
        document_id:
            Parent document, used for logging only.
        chunks:
            Embedded chunks in sequence order.

        Returns
        -------
        PersistenceReport
            Stored count, ids of chunks that could not be stored, and
            whether the single batch insert succeeded.
        """
        if not chunks:
            return PersistenceReport()

        try:
            await self._store.insert_batch(chunks)
        except PersistenceError as exc:
            logger.warning(
                "batch_insert_failed",
                document_id=document_id,
                chunks=len(chunks),
                error=str(exc),
            )
        else:
            logger.info("batch_insert_complete", document_id=document_id, stored=len(chunks))
            return PersistenceReport(stored_count=len(chunks), batch_succeeded=True)

        return await self._write_individually(document_id, chunks)

    # ------------------------------------------------------------------
    # Per-item fallback
    # ------------------------------------------------------------------

    async def _write_individually(
        self, document_id: str, chunks: list[DocumentChunk]
    ) -> PersistenceReport:
        stored = 0
        aggressive = 0
        failed: set[str] = set()

        for chunk in chunks:
            try:
                await self._store.insert_one(chunk)
                stored += 1
                continue
            except PersistenceError as exc:
                logger.warning(
                    "chunk_insert_failed",
                    document_id=document_id,
                    chunk_id=chunk.chunk_id,
                    position=chunk.chunk_index,
                    error=str(exc),
                )

            if await self._retry_ascii_only(document_id, chunk):
                stored += 1
                aggressive += 1
            else:
                failed.add(chunk.chunk_id)

        logger.info(
            "individual_insert_complete",
            document_id=document_id,
            stored=stored,
            failed=len(failed),
            ascii_only=aggressive,
        )
        return PersistenceReport(
            stored_count=stored,
            failed_chunk_ids=frozenset(failed),
            batch_succeeded=False,
            aggressive_retries=aggressive,
        )

    async def _retry_ascii_only(self, document_id: str, chunk: DocumentChunk) -> bool:
        """Retry one chunk with printable-ASCII content; return ``True`` if stored."""
        content = aggressive_sanitize(chunk.content)
        if not content:
            logger.warning(
                "chunk_dropped_empty_after_ascii",
                document_id=document_id,
                chunk_id=chunk.chunk_id,
                position=chunk.chunk_index,
            )
            return False

        try:
            await self._store.insert_one(chunk.model_copy(update={"content": content}))
        except PersistenceError as exc:
            logger.error(
                "chunk_dropped",
                document_id=document_id,
                chunk_id=chunk.chunk_id,
                position=chunk.chunk_index,
                reason="insert_failed_after_ascii_retry",
                error=str(exc),
            )
            return False
        return True

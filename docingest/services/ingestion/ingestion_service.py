"""Orchestrator for the document ingestion pipeline.

Pipeline stages: **fetch -> extract -> sanitize -> chunk -> embed -> store -> mark**.

The :class:`IngestionService` coordinates its collaborators (storage, text
extractor, chunker, embedding client, persistence writer, chunk store)
without any of them knowing about each other.  All collaborators are
injected via the constructor, so a test can swap any of them for a mock.

Failure policy: every stage raises a typed
:class:`~docingest.utils.errors.IngestionError`; :meth:`IngestionService.ingest`
converts it into a failed :class:`IngestionResult` rather than letting it
escape.  Chunks that cannot be embedded are dropped and logged; the
document only fails when nothing at all could be stored.
"""

from __future__ import annotations

import asyncio
import time
import uuid

import structlog

from docingest.interfaces.chunk_store import IChunkStore
from docingest.interfaces.storage_provider import IStorageProvider
from docingest.interfaces.token_estimator import ITokenEstimator
from docingest.models.document import Document, IngestionRequest
from docingest.models.rag import (
    ChunkMetadata,
    DocumentChunk,
    IngestionResult,
    IngestionStatus,
)
from docingest.services.ingestion.chunker import TextChunker
from docingest.services.ingestion.embedding_client import EmbeddingClient
from docingest.services.ingestion.persistence_writer import PersistenceWriter
from docingest.services.ingestion.sanitizer import sanitize
from docingest.services.ingestion.text_extractor import TextExtractor
from docingest.utils.errors import (
    DocumentNotFoundError,
    DownloadError,
    ExtractionError,
    IngestionError,
    InvalidRequestError,
    PersistenceError,
    ProviderUnavailableError,
    StorageObjectNotFoundError,
)
from docingest.utils.tokens import CharRatioTokenEstimator

logger = structlog.get_logger(logger_name=__name__)

_DEFAULT_CHUNK_BUDGET = 2000
_DEFAULT_CONCURRENCY = 2


class IngestionService:
    """Drives one document from raw bytes to stored, embedded chunks.

    Parameters
    ----------
    storage:
        Object storage holding the uploaded bytes.
    store:
        Document / chunk database.
    embedding_client:
        Per-chunk embedding with cap, timeout, retry and halving policies.
    extractor:
        Format dispatch for raw bytes; a default :class:`TextExtractor` is
        built when omitted.
    chunker:
        Budgeted splitter; defaults to a :class:`TextChunker` sharing
        *estimator*.
    writer:
        Resilient persistence; defaults to a :class:`PersistenceWriter`
        over *store*.
    chunk_budget:
        Soft per-chunk cap in estimated tokens.
    estimator:
        Token estimator shared by the chunker and the cap check.
    """

    def __init__(
        self,
        storage: IStorageProvider,
        store: IChunkStore,
        embedding_client: EmbeddingClient,
        extractor: TextExtractor | None = None,
        chunker: TextChunker | None = None,
        writer: PersistenceWriter | None = None,
        chunk_budget: int = _DEFAULT_CHUNK_BUDGET,
        estimator: ITokenEstimator | None = None,
    ) -> None:
        self._storage = storage
        self._store = store
        self._embedding_client = embedding_client
        self._estimator = estimator or CharRatioTokenEstimator()
        self._extractor = extractor or TextExtractor()
        self._chunker = chunker or TextChunker(self._estimator)
        self._writer = writer or PersistenceWriter(store)
        self._chunk_budget = chunk_budget

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def ingest(self, request: IngestionRequest) -> IngestionResult:
        """Ingest the document described by *request*.

        Never raises for pipeline failures: the returned result carries the
        failure class, detail and whether the trigger should retry.  Task
        cancellation still propagates.
        """
        start = time.monotonic()
        with structlog.contextvars.bound_contextvars(document_id=request.document_id):
            try:
                return await self._run(request, start)
            except IngestionError as exc:
                logger.error(
                    "ingestion_failed",
                    error_type=type(exc).__name__,
                    error=str(exc),
                    retryable=exc.retryable,
                )
                return self._failure(request.document_id, exc, start)
            except Exception as exc:
                logger.exception("ingestion_crashed", error=str(exc))
                return self._failure(
                    request.document_id,
                    IngestionError(message=f"Unexpected error: {exc}"),
                    start,
                )

    async def ingest_many(
        self,
        requests: list[IngestionRequest],
        concurrency: int = _DEFAULT_CONCURRENCY,
    ) -> list[IngestionResult]:
        """Ingest several documents with at most *concurrency* in flight.

        Results are returned in the order of *requests*.
        """
        semaphore = asyncio.Semaphore(max(concurrency, 1))

        async def _bounded(req: IngestionRequest) -> IngestionResult:
            async with semaphore:
                return await self.ingest(req)

        return list(await asyncio.gather(*(_bounded(r) for r in requests)))

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def _run(self, request: IngestionRequest, start: float) -> IngestionResult:
        self._validate(request)
        document = await self._load_document(request.document_id)
        if document.embedded:
            # Redelivery or manual re-run; chunks are appended, not replaced.
            logger.warning("document_already_embedded")

        raw = await self._download(request.storage_path)

        file_type, file_name = self._declared_format(request, document)
        text = sanitize(self._extractor.extract(raw, file_type, file_name))
        if not text:
            raise ExtractionError(message="No valid content found to process")

        units = self._plan_units(text)
        if not units:
            raise ExtractionError(message="No valid content found to process")

        embedded: list[tuple[str, list[float]]] = []
        dropped = 0
        for position, unit in enumerate(units):
            content = sanitize(unit)
            if not content:
                dropped += 1
                logger.warning("chunk_dropped", position=position, reason="empty_after_sanitize")
                continue
            outcome = await self._embedding_client.embed(content)
            if outcome.vector is None:
                dropped += 1
                logger.warning("chunk_dropped", position=position, reason=outcome.reason)
                continue
            embedded.append((content, outcome.vector))

        if not embedded:
            raise PersistenceError(message=f"No chunks could be embedded ({dropped} dropped)")

        chunks = self._build_chunks(request, document, embedded)
        # Once the write starts it runs to completion even if the caller goes away.
        report = await asyncio.shield(self._writer.write(request.document_id, chunks))
        if not report.succeeded:
            raise PersistenceError(message=f"Failed to store any of {len(chunks)} chunks")

        await self._mark_embedded(request.document_id)

        elapsed = time.monotonic() - start
        logger.info(
            "ingestion_complete",
            units=len(units),
            stored=report.stored_count,
            dropped=dropped,
            failed=len(report.failed_chunk_ids),
            elapsed=round(elapsed, 3),
        )
        return IngestionResult(
            document_id=request.document_id,
            status=IngestionStatus.EMBEDDED,
            stored_chunk_count=report.stored_count,
            dropped_chunk_count=dropped,
            failed_chunk_ids=sorted(report.failed_chunk_ids),
            ingestion_time=elapsed,
        )

    @staticmethod
    def _validate(request: IngestionRequest) -> None:
        missing = [
            name
            for name, value in (
                ("fileId", request.document_id),
                ("filePath", request.storage_path),
            )
            if not value or not value.strip()
        ]
        if missing:
            raise InvalidRequestError(message=f"Missing required fields: {', '.join(missing)}")

    async def _load_document(self, document_id: str) -> Document:
        document = await self._store.get_document(document_id)
        if document is None:
            raise DocumentNotFoundError(message=f"File not found: {document_id}")
        return document

    async def _download(self, storage_path: str) -> bytes:
        try:
            return await self._storage.get(storage_path)
        except (StorageObjectNotFoundError, ProviderUnavailableError) as exc:
            raise DownloadError(
                message=f"Failed to download file: {exc.message}",
                provider_name=exc.provider_name,
            ) from exc

    def _plan_units(self, text: str) -> list[str]:
        """Chunk under the budget, then re-split anything over the embedding cap."""
        cap = self._embedding_client.token_cap
        units: list[str] = []
        for chunk in self._chunker.chunk(text, self._chunk_budget):
            if self._estimator.estimate(chunk) > cap:
                logger.info("chunk_over_embedding_cap", chars=len(chunk), cap=cap)
                units.extend(self._chunker.split_oversized(chunk, cap))
            else:
                units.append(chunk)
        return units

    @staticmethod
    def _declared_format(request: IngestionRequest, document: Document) -> tuple[str, str]:
        """Return ``(mime_type, file_name)`` taken from a single source.

        The request wins when it declares either field; otherwise the stored
        record is used. The two sources are never combined.
        """
        if request.file_type or request.file_name:
            return request.file_type or "", request.file_name or ""
        return document.mime_type or "", document.name or ""

    @staticmethod
    def _build_chunks(
        request: IngestionRequest,
        document: Document,
        embedded: list[tuple[str, list[float]]],
    ) -> list[DocumentChunk]:
        """Assign sequence indices and metadata once the kept set is final."""
        total = len(embedded)
        file_name = request.file_name or document.name
        file_type = request.file_type or document.mime_type
        folder_id = request.folder_id if request.folder_id is not None else document.folder_id
        return [
            DocumentChunk(
                chunk_id=str(uuid.uuid4()),
                document_id=request.document_id,
                chunk_index=index,
                content=content,
                embedding=vector,
                metadata=ChunkMetadata(
                    file_name=file_name,
                    file_type=file_type,
                    chunk_index=index,
                    total_chunks=total,
                    folder_id=folder_id,
                ),
            )
            for index, (content, vector) in enumerate(embedded)
        ]

    async def _mark_embedded(self, document_id: str) -> None:
        """Flip the document's embedded flag; failure here is logged only."""
        try:
            await self._store.mark_embedded(document_id)
        except PersistenceError as exc:
            logger.warning("mark_embedded_failed", error=str(exc))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _failure(document_id: str, exc: IngestionError, start: float) -> IngestionResult:
        return IngestionResult(
            document_id=document_id,
            status=IngestionStatus.FAILED,
            error_type=type(exc).__name__,
            detail=exc.message,
            retryable=exc.retryable,
            ingestion_time=time.monotonic() - start,
        )

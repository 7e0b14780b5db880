"""Abstract base class for the document / chunk database.

The chunk store owns two record types: the document rows created by the
upload flow, and the embedded chunk rows written by ingestion.  Writes
raise :class:`~docingest.utils.errors.PersistenceError` on failure; the
PersistenceWriter decides what to retry.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from docingest.models.document import Document
from docingest.models.rag import DocumentChunk


# Concrete implementations:
#   SQLiteChunkStore -- aiosqlite, located in docingest/providers/store/
class IChunkStore(ABC):
    """Contract for persisting documents and their embedded chunks."""

    @abstractmethod
    async def initialize(self) -> None:
        """Create tables and indices if they don't exist."""

    @abstractmethod
    async def register_document(self, document: Document) -> None:
        """Insert (or replace) a document record."""

    @abstractmethod
    async def get_document(self, document_id: str) -> Document | None:
        """Return the document record, or ``None`` if it does not exist."""

    @abstractmethod
    async def insert_batch(self, chunks: list[DocumentChunk]) -> None:
        """Insert all *chunks* in one request.

        Callers must not assume atomicity: on failure any subset may have
        been written by a backend that does not support transactions.
        """

    @abstractmethod
    async def insert_one(self, chunk: DocumentChunk) -> None:
        """Insert a single chunk."""

    @abstractmethod
    async def mark_embedded(self, document_id: str) -> None:
        """Set the document's ``embedded`` flag."""

    @abstractmethod
    async def count_chunks(self, document_id: str) -> int:
        """Return how many chunks are stored for *document_id*."""

    @abstractmethod
    def get_provider_name(self) -> str:
        """Return a human-readable identifier for this store."""

"""Document records and ingestion trigger payloads.

A :class:`Document` is created by the upload flow (outside this package)
and points at the raw bytes in object storage.  An
:class:`IngestionRequest` is the at-least-once job-queue message asking
for one document to be embedded; its wire names are camelCase.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class Document(BaseModel):
    """An uploaded file awaiting (or past) ingestion."""

    model_config = ConfigDict(frozen=True)

    document_id: str = Field(description="Unique identifier of the document record.")
    name: str = Field(description="Display name of the uploaded file.")
    mime_type: str = Field(default="", description="Declared MIME type of the upload.")
    storage_path: str = Field(description="Path of the raw bytes in object storage.")
    folder_id: str | None = Field(default=None, description="Parent folder, if any.")
    # Only the orchestrator flips this, and only after at least one chunk is stored.
    embedded: bool = Field(default=False, description="Whether any chunk has been stored.")


class IngestionRequest(BaseModel):
    """Trigger payload for ingesting one document.

    Every field is optional at the schema level so that a payload with
    missing identifiers reaches the service and is rejected as an
    :class:`~docingest.utils.errors.InvalidRequestError` (HTTP 400) rather
    than a schema error.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    document_id: str = Field(default="", alias="fileId")
    storage_path: str = Field(default="", alias="filePath")
    file_name: str = Field(default="", alias="fileName")
    file_type: str = Field(default="", alias="fileType")
    folder_id: str | None = Field(default=None, alias="folderId")

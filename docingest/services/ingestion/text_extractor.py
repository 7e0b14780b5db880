"""Plain-text extraction from uploaded document bytes.

Dispatches on the declared MIME type; the file extension is consulted only
when the MIME type is empty or ``application/octet-stream``:

- ``text/*``, ``application/json`` and ``.txt``/``.md``/``.json`` files are
  decoded as UTF-8.  Undecodable bytes become U+FFFD, which the Sanitizer
  removes later.
- ``application/pdf`` / ``.pdf`` files are read page-by-page with PyMuPDF
  (fitz) straight from memory.
- Office formats (Word, Excel, PowerPoint, OpenDocument) are a documented
  limitation and raise :class:`UnsupportedFormatError`.
- Anything else raises :class:`UnsupportedFormatError`.
"""

from __future__ import annotations

import re
from pathlib import PurePosixPath

import fitz  # PyMuPDF -- the "fitz" import name is a PyMuPDF convention
import structlog

from docingest.utils.errors import ExtractionError, UnsupportedFormatError

logger = structlog.get_logger(logger_name=__name__)

_TEXT_MIME_TYPES = frozenset({"application/json", "application/x-ndjson"})
_GENERIC_MIME_TYPES = frozenset({"", "application/octet-stream", "binary/octet-stream"})
_TEXT_EXTENSIONS = frozenset({".txt", ".md", ".markdown", ".json", ".csv", ".log"})

_PDF_MIME_TYPE = "application/pdf"
_PDF_EXTENSIONS = frozenset({".pdf"})

_OFFICE_MIME_PREFIXES = (
    "application/vnd.openxmlformats-officedocument.",
    "application/vnd.ms-",
    "application/vnd.oasis.opendocument.",
)
_OFFICE_MIME_TYPES = frozenset({"application/msword", "application/rtf"})
_OFFICE_EXTENSIONS = frozenset(
    {".doc", ".docx", ".xls", ".xlsx", ".ppt", ".pptx", ".odt", ".ods", ".odp", ".rtf"}
)

_HORIZONTAL_WHITESPACE = re.compile(r"[ \t\r\v]+")
_SPACES_AROUND_NEWLINE = re.compile(r" *\n *")
_EXCESS_NEWLINES = re.compile(r"\n{3,}")


class TextExtractor:
    """Decodes raw document bytes of a supported format into plain text."""

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def extract(self, data: bytes, mime_type: str, file_name: str = "") -> str:
        """Return the plain text held in *data*.

        Parameters
        ----------
        data:
            Raw file content as downloaded from storage.
        mime_type:
            Declared MIME type of the upload; may be empty.
        file_name:
            Original file name, used when the MIME type is missing or generic.

        Raises
        ------
        UnsupportedFormatError
            For office documents and any type not handled here.
        ExtractionError
            When a PDF cannot be opened or contains no text.
        """
        kind = self.detect_kind(mime_type, file_name)
        if kind == "text":
            return self._decode_text(data)
        if kind == "pdf":
            return self._extract_pdf(data, file_name)
        if kind == "office":
            raise UnsupportedFormatError(
                message=(
                    f"Office documents are not supported yet ({mime_type or file_name}); "
                    "convert to PDF or plain text first"
                ),
            )
        raise UnsupportedFormatError(
            message=f"Unsupported file type: {mime_type or 'unknown'} ({file_name})",
        )

    @staticmethod
    def detect_kind(mime_type: str, file_name: str = "") -> str:
        """Classify an upload as ``"text"``, ``"pdf"``, ``"office"`` or ``"unknown"``."""
        mime = (mime_type or "").split(";", 1)[0].strip().lower()
        suffix = PurePosixPath(file_name or "").suffix.lower()

        if mime.startswith("text/") or mime in _TEXT_MIME_TYPES:
            return "text"
        if mime == _PDF_MIME_TYPE:
            return "pdf"
        if mime in _OFFICE_MIME_TYPES or mime.startswith(_OFFICE_MIME_PREFIXES):
            return "office"
        if mime not in _GENERIC_MIME_TYPES:
            return "unknown"

        # Only an absent or generic MIME type defers to the file extension.
        if suffix in _TEXT_EXTENSIONS:
            return "text"
        if suffix in _PDF_EXTENSIONS:
            return "pdf"
        if suffix in _OFFICE_EXTENSIONS:
            return "office"
        return "unknown"

    # ------------------------------------------------------------------
    # Format handlers
    # ------------------------------------------------------------------

    @staticmethod
    def _decode_text(data: bytes) -> str:
        # utf-8-sig drops a leading BOM when present.
        return data.decode("utf-8-sig", errors="replace")

    def _extract_pdf(self, data: bytes, file_name: str) -> str:
        """Extract and normalize the text of every page in a PDF."""
        pages = self._extract_pages(data, file_name)
        text = self._normalize_pdf_text("\n\n".join(pages))
        if not text:
            raise ExtractionError(
                message=f"No text could be extracted from PDF {file_name or '<unnamed>'}",
                provider_name="pymupdf",
            )
        logger.info("pdf_processed", file_name=file_name, pages=len(pages), chars=len(text))
        return text

    @staticmethod
    def _extract_pages(data: bytes, file_name: str) -> list[str]:
        """Return the raw text of each page, in order."""
        try:
            doc = fitz.open(stream=data, filetype="pdf")
        except (RuntimeError, ValueError) as exc:
            raise ExtractionError(
                message=f"Could not open PDF {file_name or '<unnamed>'}: {exc}",
                provider_name="pymupdf",
            ) from exc

        pages: list[str] = []
        try:
            for page in doc:
                pages.append(page.get_text("text"))
        finally:
            doc.close()
        return pages

    @staticmethod
    def _normalize_pdf_text(text: str) -> str:
        """Form-feeds become paragraph breaks; whitespace runs are collapsed."""
        text = text.replace("\f", "\n\n")
        text = _HORIZONTAL_WHITESPACE.sub(" ", text)
        text = _SPACES_AROUND_NEWLINE.sub("\n", text)
        text = _EXCESS_NEWLINES.sub("\n\n", text)
        return text.strip()

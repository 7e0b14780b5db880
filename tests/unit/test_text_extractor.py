"""Unit tests for TextExtractor format dispatch and PDF extraction."""

from __future__ import annotations

import fitz
import pytest

from docingest.services.ingestion.text_extractor import TextExtractor
from docingest.utils.errors import ExtractionError, UnsupportedFormatError


def _make_pdf(*page_texts: str) -> bytes:
    """Build an in-memory PDF with one page per entry (empty string = blank page)."""
    doc = fitz.open()
    for text in page_texts:
        page = doc.new_page()
        if text:
            page.insert_text((72, 72), text)
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def extractor() -> TextExtractor:
    return TextExtractor()


class TestDetectKind:
    @pytest.mark.parametrize(
        ("mime_type", "file_name", "expected"),
        [
            ("text/plain", "", "text"),
            ("text/markdown; charset=utf-8", "", "text"),
            ("application/json", "", "text"),
            ("application/pdf", "", "pdf"),
            ("", "scan.PDF", "pdf"),
            ("application/octet-stream", "notes.md", "text"),
            (
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "",
                "office",
            ),
            ("application/msword", "", "office"),
            ("", "sheet.xlsx", "office"),
            ("image/png", "photo.png", "unknown"),
            ("image/png", "report.txt", "unknown"),
            ("application/zip", "notes.md", "unknown"),
            ("", "", "unknown"),
        ],
    )
    def test_detect_kind(self, mime_type: str, file_name: str, expected: str) -> None:
        assert TextExtractor.detect_kind(mime_type, file_name) == expected


class TestPlainText:
    def test_decodes_utf8(self, extractor: TextExtractor) -> None:
        data = "Gr\u00fc\u00dfe aus K\u00f6ln".encode()
        assert extractor.extract(data, "text/plain") == "Gr\u00fc\u00dfe aus K\u00f6ln"

    def test_strips_bom(self, extractor: TextExtractor) -> None:
        assert extractor.extract(b"\xef\xbb\xbfhello", "text/plain") == "hello"

    def test_invalid_bytes_become_replacement_characters(
        self, extractor: TextExtractor
    ) -> None:
        text = extractor.extract(b"ok \xff\xfe done", "text/plain")
        assert text.startswith("ok ")
        assert text.endswith(" done")
        assert "\ufffd" in text

    def test_extension_fallback(self, extractor: TextExtractor) -> None:
        assert extractor.extract(b"# Title", "", "README.md") == "# Title"


class TestPdf:
    def test_extracts_every_page(self, extractor: TextExtractor) -> None:
        data = _make_pdf("First page text", "Second page text")

        text = extractor.extract(data, "application/pdf", "two-pages.pdf")

        assert "First page text" in text
        assert "Second page text" in text
        assert text.index("First") < text.index("Second")

    def test_blank_pdf_raises(self, extractor: TextExtractor) -> None:
        with pytest.raises(ExtractionError):
            extractor.extract(_make_pdf(""), "application/pdf", "blank.pdf")

    def test_corrupt_pdf_raises(self, extractor: TextExtractor) -> None:
        with pytest.raises(ExtractionError):
            extractor.extract(b"this is not a pdf", "application/pdf", "broken.pdf")


class TestUnsupported:
    def test_office_document(self, extractor: TextExtractor) -> None:
        with pytest.raises(UnsupportedFormatError, match="Office documents"):
            extractor.extract(
                b"PK\x03\x04",
                "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
                "memo.docx",
            )

    def test_unknown_type(self, extractor: TextExtractor) -> None:
        with pytest.raises(UnsupportedFormatError) as exc_info:
            extractor.extract(b"\x89PNG", "image/png", "photo.png")
        assert exc_info.value.retryable is False

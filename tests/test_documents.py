from __future__ import annotations

from pathlib import Path
from types import SimpleNamespace

import pytest

from video_transcript_summary.documents import (
    detect_media_type,
    extract_document_text,
    is_supported_document,
)
from video_transcript_summary.errors import DocumentExtractionError, UnsupportedFormatError


def test_detect_media_type_prefers_declared_type() -> None:
    assert detect_media_type("notes.bin", "text/plain; charset=utf-8") == "text/plain"


def test_detect_media_type_falls_back_to_filename() -> None:
    assert detect_media_type("report.pdf", "application/octet-stream") == "application/pdf"
    assert detect_media_type("notes.txt", None) == "text/plain"
    assert detect_media_type(None, None) == "application/octet-stream"


def test_supported_documents() -> None:
    assert is_supported_document("application/pdf")
    assert is_supported_document("text/markdown")
    assert not is_supported_document("image/png")


def test_extract_plain_text(tmp_path: Path) -> None:
    doc = tmp_path / "notes.txt"
    doc.write_text("Meeting notes: ship on Friday.", encoding="utf-8")

    assert extract_document_text(doc, "text/plain") == "Meeting notes: ship on Friday."


def test_extract_pdf_text_joins_pages(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    opened: list[Path] = []

    class FakePdf:
        pages = [SimpleNamespace(extract_text=lambda: "Page one"), SimpleNamespace(extract_text=lambda: None)]

        def __enter__(self):
            return self

        def __exit__(self, *exc_info):
            return False

    def fake_open(path):
        opened.append(path)
        return FakePdf()

    monkeypatch.setattr("video_transcript_summary.documents.pdfplumber.open", fake_open)

    text = extract_document_text(tmp_path / "report.pdf", "application/pdf")

    assert text == "Page one"
    assert opened == [tmp_path / "report.pdf"]


def test_extract_pdf_failure_raises_document_error(tmp_path: Path) -> None:
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"not really a pdf")

    with pytest.raises(DocumentExtractionError):
        extract_document_text(broken, "application/pdf")


def test_unsupported_media_type(tmp_path: Path) -> None:
    with pytest.raises(UnsupportedFormatError):
        extract_document_text(tmp_path / "image.png", "image/png")

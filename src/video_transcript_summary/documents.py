"""Text extraction for uploaded documents."""

from __future__ import annotations

import mimetypes
from pathlib import Path

import pdfplumber

from .errors import DocumentExtractionError, UnsupportedFormatError

PDF_MEDIA_TYPE = "application/pdf"


def detect_media_type(filename: str | None, provided: str | None) -> str:
    candidate = str(provided or "").split(";")[0].strip().lower()
    if candidate and candidate != "application/octet-stream":
        return candidate
    guessed, _ = mimetypes.guess_type(str(filename or ""))
    return str(guessed or candidate or "application/octet-stream")


def is_supported_document(media_type: str) -> bool:
    return media_type == PDF_MEDIA_TYPE or media_type.startswith("text/")


def extract_document_text(path: Path | str, media_type: str) -> str:
    """Return the text of a PDF or plain-text document at ``path``."""

    source = Path(path)
    if media_type == PDF_MEDIA_TYPE:
        try:
            with pdfplumber.open(source) as pdf:
                return "\n".join((page.extract_text() or "") for page in pdf.pages).strip()
        except Exception as exc:  # noqa: BLE001 - pdfplumber raises a wide range of parser errors
            raise DocumentExtractionError(f"PDF extraction failed: {exc}") from exc

    if media_type.startswith("text/"):
        try:
            return source.read_text(encoding="utf-8", errors="replace")
        except OSError as exc:
            raise DocumentExtractionError(f"Failed to read uploaded file: {exc}") from exc

    raise UnsupportedFormatError(f"Unsupported file format: {media_type}")

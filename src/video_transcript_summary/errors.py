"""Error hierarchy for the transcript and summary pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or invalid."""


class PipelineError(RuntimeError):
    """Base error for every failure surfaced to an HTTP caller."""

    status_code = 500


class InputValidationError(PipelineError):
    """A required request field is missing."""

    status_code = 400


class UnsupportedFormatError(PipelineError):
    """An uploaded document has a media type we cannot read."""

    status_code = 400


class ProcessError(PipelineError):
    """An external command exited unsuccessfully."""

    def __init__(
        self,
        command: Sequence[str],
        returncode: int,
        stderr: str = "",
        *,
        message: str | None = None,
    ) -> None:
        self.command = list(command)
        self.returncode = returncode
        self.stderr = stderr
        text = message or f"{self.command[0] if self.command else 'command'} failed (code={returncode})"
        if stderr.strip():
            text = f"{text}: {stderr.strip()}"
        super().__init__(text)


class DownloadError(ProcessError):
    """The downloader could not fetch the requested media."""


class TranscodeError(ProcessError):
    """The transcoder could not convert the media."""


class ArtifactMissingError(PipelineError):
    """A step finished but its expected output file is absent."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"Expected output file not found: {self.path}")


class SubtitleError(PipelineError):
    """Captions could not be extracted for a video."""


class TranscriptionError(PipelineError):
    """The remote transcription service failed."""


class TranscriptionTimeoutError(TranscriptionError):
    """The transcription job did not finish within the polling budget."""


class SummarizationError(PipelineError):
    """The text-generation service failed."""


class DocumentExtractionError(PipelineError):
    """Text could not be extracted from an uploaded document."""

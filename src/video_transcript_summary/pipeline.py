from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Any, Optional

from .asr_client import AssemblyAIClient
from .audio import artifact_path, download_audio, remove_artifacts, transcode_audio
from .config import TRANSCRIPT_SOURCES, Settings
from .documents import extract_document_text, is_supported_document
from .errors import InputValidationError, SubtitleError, UnsupportedFormatError
from .subtitles import extract_subtitles
from .summarizer import SummaryLevel, SummaryResult, Summarizer, create_summarizer

logger = logging.getLogger(__name__)


def _require(value: Optional[str], message: str) -> str:
    text = str(value or "").strip()
    if not text:
        raise InputValidationError(message)
    return text


def _elapsed_ms(started: float) -> int:
    return int((time.perf_counter() - started) * 1000)


class SummaryPipeline:
    """Request handlers composing download, transcription and summarization.

    Every temporary file a handler creates is removed before it returns,
    on both the success and the failure path.
    """

    def __init__(
        self,
        settings: Settings,
        *,
        transcriber: Optional[AssemblyAIClient] = None,
        summarizer: Optional[Summarizer] = None,
    ) -> None:
        self.settings = settings
        self.transcriber = transcriber if transcriber is not None else AssemblyAIClient.from_settings(settings)
        self.summarizer = summarizer if summarizer is not None else create_summarizer(settings)

    @property
    def uploads_dir(self) -> Path:
        return Path(self.settings.uploads_dir)

    async def summarize_youtube(
        self,
        video_url: Optional[str],
        level: SummaryLevel | str | None = None,
        *,
        source: Optional[str] = None,
    ) -> dict[str, Any]:
        url = _require(video_url, "No video URL provided")
        mode = str(source or self.settings.transcript_source).strip().lower()
        if mode not in TRANSCRIPT_SOURCES:
            raise InputValidationError(
                f"source must be one of {', '.join(TRANSCRIPT_SOURCES)}, got {source!r}"
            )

        transcript: str | None = None
        used_source = "audio"
        if mode in {"subtitles", "auto"}:
            try:
                transcript = await self._transcript_from_subtitles(url)
                used_source = "subtitles"
            except SubtitleError as exc:
                if mode == "subtitles":
                    raise
                logger.warning("Caption extraction failed, falling back to audio: %s", exc)

        if transcript is None:
            transcript = await self._transcript_from_audio(url)

        logger.info("Transcript received (source=%s), summarizing", used_source)
        result = await self.summarizer.summarize(transcript, level)
        return {"transcript": transcript, "summary": result.text, "source": used_source}

    async def transcribe_url(self, video_url: Optional[str]) -> dict[str, Any]:
        url = _require(video_url, "No video URL provided")
        audio = artifact_path(self.uploads_dir, "mp3")
        try:
            await download_audio(
                url,
                audio,
                audio_format="mp3",
                ytdlp_bin=self.settings.ytdlp_bin,
                fail_on_stderr=self.settings.fail_on_stderr,
            )
            transcript = await self.transcriber.transcribe(audio)
        finally:
            remove_artifacts(audio)
        return {"transcript": transcript}

    async def summarize_text(
        self,
        transcript: Optional[str],
        level: SummaryLevel | str | None = None,
    ) -> dict[str, Any]:
        text = _require(transcript, "No text provided")
        result = await self.summarizer.summarize(text, level)
        return _summary_payload(result)

    async def summarize_document(
        self,
        upload_path: Path | str | None,
        media_type: str,
        level: SummaryLevel | str | None = None,
    ) -> dict[str, Any]:
        """Summarize an uploaded PDF or text file, then delete the upload."""

        if upload_path is None:
            raise InputValidationError("No file uploaded")
        path = Path(upload_path)
        try:
            if not is_supported_document(media_type):
                raise UnsupportedFormatError(f"Unsupported file format: {media_type}")
            content = extract_document_text(path, media_type)
            logger.info("Extracted %s characters from %s upload", len(content), media_type)
            result = await self.summarizer.summarize(content, level, subject="content")
        finally:
            remove_artifacts(path)
        return {"text": result.text, "originalContent": content}

    async def transcribe_video(self, upload_path: Path | str | None) -> dict[str, Any]:
        """Transcode an uploaded video to mp3 and transcribe it; both files are removed."""

        if upload_path is None:
            raise InputValidationError("No video file uploaded")
        source = Path(upload_path)
        # named after the upload; never equal to it, even for mp3 uploads
        self.uploads_dir.mkdir(parents=True, exist_ok=True)
        audio = self.uploads_dir / f"{source.stem}.audio.mp3"
        try:
            started = time.perf_counter()
            await transcode_audio(
                source,
                audio,
                audio_format="mp3",
                ffmpeg_bin=self.settings.ffmpeg_bin,
                fail_on_stderr=self.settings.fail_on_stderr,
            )
            logger.info("Upload transcoded (%sms)", _elapsed_ms(started))
            transcript = await self.transcriber.transcribe(audio)
        finally:
            remove_artifacts(source, audio)
        return {"transcript": transcript}

    async def _transcript_from_audio(self, url: str) -> str:
        download = artifact_path(self.uploads_dir, "wav")
        audio = download.with_suffix(".mp3")
        try:
            started = time.perf_counter()
            await download_audio(
                url,
                download,
                audio_format="wav",
                ytdlp_bin=self.settings.ytdlp_bin,
                fail_on_stderr=self.settings.fail_on_stderr,
            )
            await transcode_audio(
                download,
                audio,
                audio_format="mp3",
                ffmpeg_bin=self.settings.ffmpeg_bin,
                fail_on_stderr=self.settings.fail_on_stderr,
            )
            logger.info("Audio acquired (%sms)", _elapsed_ms(started))
            remove_artifacts(download)

            started = time.perf_counter()
            transcript = await self.transcriber.transcribe(audio)
            logger.info("Transcription done (%sms)", _elapsed_ms(started))
        finally:
            remove_artifacts(download, audio)
        return transcript

    async def _transcript_from_subtitles(self, url: str) -> str:
        stem = artifact_path(self.uploads_dir, "vtt").with_suffix("")
        started = time.perf_counter()
        transcript = await extract_subtitles(
            url,
            stem,
            language=self.settings.subtitle_language,
            ytdlp_bin=self.settings.ytdlp_bin,
            fail_on_stderr=self.settings.fail_on_stderr,
        )
        logger.info("Captions extracted (%sms)", _elapsed_ms(started))
        return transcript


def _summary_payload(result: SummaryResult) -> dict[str, Any]:
    payload: dict[str, Any] = {"summary": result.text}
    if result.files:
        payload["files"] = [{"filename": item.filename, "path": item.path} for item in result.files]
    return payload

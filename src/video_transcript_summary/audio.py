from __future__ import annotations

import logging
import time
from pathlib import Path

from .errors import ArtifactMissingError, DownloadError, ProcessError, TranscodeError
from .process import run_command

logger = logging.getLogger(__name__)


def artifact_path(directory: Path | str, suffix: str) -> Path:
    """Return a timestamp-named path such as ``uploads/1712345678901.mp3``."""

    target_dir = Path(directory)
    target_dir.mkdir(parents=True, exist_ok=True)
    return target_dir / f"{int(time.time() * 1000)}.{suffix.lstrip('.')}"


def remove_artifacts(*paths: Path | str | None) -> None:
    """Best-effort deletion of temporary files; failures are only logged."""

    for path in paths:
        if path is None:
            continue
        try:
            Path(path).unlink(missing_ok=True)
        except OSError as exc:
            logger.warning("Failed to delete temporary file %s: %s", path, exc)


def _codec_args(audio_format: str, audio_bitrate: str | None) -> list[str]:
    normalized_format = audio_format.lower()
    if normalized_format == "wav":
        return ["-acodec", "pcm_s16le"]
    if normalized_format in {"mp3", "mpeg"}:
        args = ["-acodec", "libmp3lame"]
    elif normalized_format == "flac":
        return ["-acodec", "flac"]
    else:
        args = ["-acodec", normalized_format]
    if audio_bitrate:
        args.extend(["-b:a", audio_bitrate])
    return args


def _ensure_exists(path: Path) -> Path:
    if not path.exists():
        raise ArtifactMissingError(path)
    return path


async def download_audio(
    video_url: str,
    output_path: Path | str,
    *,
    audio_format: str = "wav",
    ytdlp_bin: str = "yt-dlp",
    fail_on_stderr: bool = False,
) -> Path:
    """Fetch ``video_url`` with yt-dlp and extract its audio to ``output_path``.

    Raises:
        DownloadError: yt-dlp exited unsuccessfully.
        ArtifactMissingError: yt-dlp succeeded but wrote nothing at ``output_path``.
    """

    target = Path(output_path)
    command = [
        ytdlp_bin,
        "-x",
        "--audio-format",
        audio_format,
        "--audio-quality",
        "0",
        "-o",
        str(target),
        video_url,
    ]

    logger.info("Downloading audio from %s", video_url)
    started = time.perf_counter()
    try:
        await run_command(command, fail_on_stderr=fail_on_stderr)
    except ProcessError as exc:
        raise DownloadError(
            exc.command, exc.returncode, exc.stderr, message="Failed to download audio"
        ) from exc
    logger.info("yt-dlp finished (%sms)", int((time.perf_counter() - started) * 1000))

    return _ensure_exists(target)


async def transcode_audio(
    input_path: Path | str,
    output_path: Path | str,
    *,
    audio_format: str = "mp3",
    audio_bitrate: str | None = None,
    ffmpeg_bin: str = "ffmpeg",
    fail_on_stderr: bool = False,
) -> Path:
    """Normalize any audio or video container into ``audio_format``.

    Raises:
        TranscodeError: ffmpeg exited unsuccessfully.
        ArtifactMissingError: ffmpeg succeeded but ``output_path`` is absent.
    """

    source = Path(input_path)
    target = Path(output_path)
    command = [ffmpeg_bin, "-y", "-i", str(source), "-vn"]
    command.extend(_codec_args(audio_format, audio_bitrate))
    command.append(str(target))

    started = time.perf_counter()
    try:
        await run_command(command, fail_on_stderr=fail_on_stderr)
    except ProcessError as exc:
        raise TranscodeError(
            exc.command, exc.returncode, exc.stderr, message="ffmpeg conversion failed"
        ) from exc
    logger.info("ffmpeg finished (%sms)", int((time.perf_counter() - started) * 1000))

    return _ensure_exists(target)

"""Caption download as a faster alternative to speech-to-text."""

from __future__ import annotations

import logging
from pathlib import Path

from .audio import remove_artifacts
from .errors import ProcessError, SubtitleError
from .process import run_command

logger = logging.getLogger(__name__)


def _caption_files(output_stem: Path) -> list[Path]:
    return sorted(output_stem.parent.glob(f"{output_stem.name}.*.vtt"))


async def extract_subtitles(
    video_url: str,
    output_stem: Path | str,
    *,
    language: str = "en",
    ytdlp_bin: str = "yt-dlp",
    fail_on_stderr: bool = False,
) -> str:
    """Download captions for ``video_url`` and return their text.

    yt-dlp writes ``<output_stem>.<lang>.vtt``; every such file is read and
    then deleted, whether or not extraction succeeds.
    """

    stem = Path(output_stem)
    command = [
        ytdlp_bin,
        "--skip-download",
        "--write-subs",
        "--write-auto-subs",
        "--sub-langs",
        language,
        "--sub-format",
        "vtt",
        "-o",
        str(stem),
        video_url,
    ]

    logger.info("Fetching %s captions for %s", language, video_url)
    try:
        await run_command(command, fail_on_stderr=fail_on_stderr)
        captions = _caption_files(stem)
        if not captions:
            raise SubtitleError(f"No {language} captions available for {video_url}")

        parts = [path.read_text(encoding="utf-8", errors="replace").strip() for path in captions]
    except ProcessError as exc:
        raise SubtitleError(f"Failed to download captions: {exc}") from exc
    except OSError as exc:
        raise SubtitleError(f"Failed to read captions: {exc}") from exc
    finally:
        remove_artifacts(*_caption_files(stem))

    transcript = "\n\n".join(part for part in parts if part)
    if not transcript:
        raise SubtitleError(f"Captions for {video_url} are empty")
    return transcript

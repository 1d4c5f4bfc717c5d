from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from video_transcript_summary.config import Settings
from video_transcript_summary.summarizer import Summarizer, SummaryResult


_SETTINGS_ENV = (
    "ASSEMBLYAI_API_KEY",
    "ASSEMBLYAI_BASE_URL",
    "SUMMARIZER_BACKEND",
    "GEMINI_API_KEY",
    "OPENAI_API_KEY",
    "UPLOADS_DIR",
    "TRANSCRIPT_SOURCE",
    "POLL_INTERVAL_SECONDS",
    "MAX_POLL_ATTEMPTS",
    "HTTP_TIMEOUT_SECONDS",
    "FAIL_ON_STDERR",
    "PORT",
    "LOG_LEVEL",
)


@pytest.fixture(autouse=True)
def _isolated_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _SETTINGS_ENV:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        assemblyai_api_key="assembly-key",
        gemini_api_key="gemini-key",
        uploads_dir=tmp_path / "uploads",
        poll_interval=0,
    )


class RecordingSummarizer(Summarizer):
    name = "recording"

    def __init__(self, text: str = "short summary") -> None:
        self.text = text
        self.prompts: list[str] = []

    def generate(self, prompt: str) -> SummaryResult:
        self.prompts.append(prompt)
        return SummaryResult(text=self.text)


class FakeTranscriber:
    def __init__(self, transcript: str = "spoken words", error: Exception | None = None) -> None:
        self.transcript = transcript
        self.error = error
        self.calls: list[Path] = []
        self.existed: list[bool] = []

    async def transcribe(self, audio_path: Path) -> str:
        path = Path(audio_path)
        self.calls.append(path)
        self.existed.append(path.exists())
        if self.error is not None:
            raise self.error
        return self.transcript


def fake_tool_run(args: list[str], **_kwargs) -> subprocess.CompletedProcess:
    """Pretend to be yt-dlp or ffmpeg by writing the file each would produce."""

    if "--skip-download" in args:
        stem = Path(args[args.index("-o") + 1])
        language = args[args.index("--sub-langs") + 1]
        stem.with_name(f"{stem.name}.{language}.vtt").write_text("WEBVTT\n\nhello from captions")
    elif "-o" in args:
        Path(args[args.index("-o") + 1]).write_bytes(b"downloaded-audio")
    else:
        Path(args[-1]).write_bytes(b"transcoded-audio")
    return subprocess.CompletedProcess(args=args, returncode=0, stdout=b"", stderr=b"")


@pytest.fixture
def recording_summarizer() -> RecordingSummarizer:
    return RecordingSummarizer()


@pytest.fixture
def fake_transcriber() -> FakeTranscriber:
    return FakeTranscriber()


@pytest.fixture
def fake_tools(monkeypatch: pytest.MonkeyPatch) -> list[list[str]]:
    calls: list[list[str]] = []

    def run(args: list[str], **kwargs) -> subprocess.CompletedProcess:
        calls.append(list(args))
        return fake_tool_run(args, **kwargs)

    monkeypatch.setattr("video_transcript_summary.process.subprocess.run", run)
    return calls

"""Configuration management using pydantic-settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field, ValidationError, field_validator, model_validator
from pydantic.aliases import AliasChoices
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

SUMMARIZER_BACKENDS = ("gemini", "openai")
TRANSCRIPT_SOURCES = ("audio", "subtitles", "auto")

_ENV_FILE = ".env"


class Settings(BaseSettings):
    """Explicit configuration handed to every component constructor.

    Field names map to upper-case environment variables; ``.env`` in the working
    directory is read as well. Construction fails with ``ConfigurationError``
    when a credential is missing or an enumerated value is unknown.
    """

    model_config = SettingsConfigDict(
        env_file=_ENV_FILE,
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        frozen=True,
    )

    # AssemblyAI
    assemblyai_api_key: str = ""
    assemblyai_base_url: str = "https://api.assemblyai.com/v2"
    poll_interval: float = Field(
        default=5.0,
        validation_alias=AliasChoices("poll_interval", "POLL_INTERVAL_SECONDS"),
    )
    max_poll_attempts: int = 40
    http_timeout: int = Field(
        default=120,
        gt=0,
        validation_alias=AliasChoices("http_timeout", "HTTP_TIMEOUT_SECONDS"),
    )

    # Summarization
    summarizer_backend: str = "gemini"
    gemini_api_key: str = ""
    gemini_model: str = "gemini-2.0-flash"
    openai_api_key: str = ""
    openai_base_url: str = "https://api.openai.com/v1"
    openai_model: str = "gpt-4o-mini"

    # Media
    uploads_dir: Path = Path("uploads")
    ytdlp_bin: str = "yt-dlp"
    ffmpeg_bin: str = "ffmpeg"
    transcript_source: str = "audio"
    subtitle_language: str = "en"
    fail_on_stderr: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    log_format: str = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    @field_validator("summarizer_backend", "transcript_source", mode="before")
    @classmethod
    def _lower(cls, value: Any) -> Any:
        return value.strip().lower() if isinstance(value, str) else value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper(cls, value: Any) -> Any:
        return value.strip().upper() if isinstance(value, str) else value

    @model_validator(mode="after")
    def _check(self) -> "Settings":
        problems: list[str] = []
        if not self.assemblyai_api_key:
            problems.append("ASSEMBLYAI_API_KEY is not set")

        if self.summarizer_backend not in SUMMARIZER_BACKENDS:
            problems.append(
                f"SUMMARIZER_BACKEND must be one of {', '.join(SUMMARIZER_BACKENDS)}, "
                f"got {self.summarizer_backend!r}"
            )
        elif self.summarizer_backend == "gemini" and not self.gemini_api_key:
            problems.append("GEMINI_API_KEY is not set")
        elif self.summarizer_backend == "openai" and not self.openai_api_key:
            problems.append("OPENAI_API_KEY is not set")

        if self.transcript_source not in TRANSCRIPT_SOURCES:
            problems.append(
                f"TRANSCRIPT_SOURCE must be one of {', '.join(TRANSCRIPT_SOURCES)}, "
                f"got {self.transcript_source!r}"
            )
        if self.max_poll_attempts < 1:
            problems.append("MAX_POLL_ATTEMPTS must be at least 1")
        if self.poll_interval < 0:
            problems.append("POLL_INTERVAL_SECONDS must not be negative")

        if problems:
            raise ConfigurationError("; ".join(problems))
        return self


def load_settings(**overrides: Any) -> Settings:
    """Build ``Settings`` from the environment, reporting malformed values as ``ConfigurationError``."""

    try:
        return Settings(**overrides)
    except ValidationError as exc:
        problems = [
            f"{'.'.join(str(part) for part in error['loc']).upper()}: {error['msg']}"
            for error in exc.errors()
        ]
        raise ConfigurationError("; ".join(problems)) from exc

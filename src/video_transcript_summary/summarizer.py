from __future__ import annotations

import asyncio
import base64
import logging
import mimetypes
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import requests

from .config import Settings
from .errors import ConfigurationError, SummarizationError

logger = logging.getLogger(__name__)


class SummaryLevel(str, Enum):
    CORE = "core"
    CONCISE = "concise"
    DETAILED = "detailed"

    @classmethod
    def parse(cls, value: "SummaryLevel | str | None") -> "SummaryLevel":
        """Map a request value onto a level; anything unrecognized is ``DETAILED``."""

        if isinstance(value, SummaryLevel):
            return value
        normalized = str(value or "").strip().lower()
        for level in cls:
            if level.value == normalized:
                return level
        return cls.DETAILED


_LEVEL_INSTRUCTIONS = {
    SummaryLevel.CORE: "Make the summary very short and concise",
    SummaryLevel.CONCISE: "Make a detailed summary",
    SummaryLevel.DETAILED: "Make the summary in bullet points",
}


def build_summary_prompt(text: str, level: SummaryLevel | str | None, *, subject: str = "text") -> str:
    instruction = _LEVEL_INSTRUCTIONS[SummaryLevel.parse(level)]
    return (
        f"Provide a concise summary of the following {subject} only, ensuring the output "
        f"contains only the summary and no extra introductory phrases: {text}. {instruction}"
    )


@dataclass(frozen=True)
class GeneratedFile:
    filename: str
    path: str


@dataclass
class SummaryResult:
    text: str
    files: list[GeneratedFile] = field(default_factory=list)


class Summarizer(ABC):
    """A text-generation backend that turns a single prompt into a summary."""

    name = "summarizer"

    async def summarize(
        self,
        text: str,
        level: SummaryLevel | str | None = SummaryLevel.DETAILED,
        *,
        subject: str = "text",
    ) -> SummaryResult:
        prompt = build_summary_prompt(text, level, subject=subject)
        started = time.perf_counter()
        try:
            result = await asyncio.to_thread(self.generate, prompt)
        except SummarizationError:
            raise
        except Exception as exc:
            logger.warning("%s request failed: %s", self.name, exc)
            raise SummarizationError(f"{self.name} summarization failed: {exc}") from exc

        logger.info("%s response received (%sms)", self.name, int((time.perf_counter() - started) * 1000))
        return result

    @abstractmethod
    def generate(self, prompt: str) -> SummaryResult:
        """Send ``prompt`` as a fresh single-turn request."""


class GeminiSummarizer(Summarizer):
    """Google Gemini backend (google-generativeai SDK)."""

    name = "gemini"

    DEFAULT_GENERATION_CONFIG: dict[str, Any] = {
        "temperature": 1,
        "top_p": 0.95,
        "top_k": 40,
        "max_output_tokens": 8192,
        "response_mime_type": "text/plain",
    }

    def __init__(
        self,
        *,
        api_key: str,
        model: str = "gemini-2.0-flash",
        output_dir: Path | str = "uploads",
        generation_config: dict[str, Any] | None = None,
        client: Any | None = None,
    ) -> None:
        if not api_key:
            raise ConfigurationError("GEMINI_API_KEY is not set")
        self.api_key = api_key
        self.model = model
        self.output_dir = Path(output_dir)
        self.generation_config = generation_config or dict(self.DEFAULT_GENERATION_CONFIG)
        self._client = client

    def generate(self, prompt: str) -> SummaryResult:
        client = self._ensure_client()
        chat_session = client.start_chat(history=[])
        response = chat_session.send_message(prompt)

        try:
            text = response.text
        except ValueError:
            # the SDK raises when a response carries only non-text parts
            text = ""
        if not isinstance(text, str):
            raise SummarizationError("Gemini response content is not text")

        files = self._save_inline_parts(response)
        if not text and not files:
            raise SummarizationError("Gemini returned an empty response")
        return SummaryResult(text=text, files=files)

    def _save_inline_parts(self, response: Any) -> list[GeneratedFile]:
        files: list[GeneratedFile] = []
        for candidate_index, candidate in enumerate(getattr(response, "candidates", None) or []):
            content = getattr(candidate, "content", None)
            for part_index, part in enumerate(getattr(content, "parts", None) or []):
                inline = getattr(part, "inline_data", None)
                if not inline or not getattr(inline, "data", None):
                    continue
                mime_type = str(getattr(inline, "mime_type", "") or "application/octet-stream")
                extension = (mimetypes.guess_extension(mime_type) or ".bin").lstrip(".")
                filename = f"output_{candidate_index}_{part_index}.{extension}"
                target = self.output_dir / filename
                payload = inline.data
                if isinstance(payload, str):
                    payload = base64.b64decode(payload)
                try:
                    self.output_dir.mkdir(parents=True, exist_ok=True)
                    target.write_bytes(payload)
                except OSError as exc:
                    logger.error("Failed to write Gemini inline output %s: %s", target, exc)
                    continue
                logger.info("Output written to: %s", target)
                files.append(GeneratedFile(filename=filename, path=str(target)))
        return files

    def _ensure_client(self) -> Any:
        if self._client is None:
            self._client = self._create_client()
        return self._client

    def _create_client(self) -> Any:
        try:
            import google.generativeai as genai
        except ImportError as exc:  # pragma: no cover - dependency declared
            raise SummarizationError("google-generativeai is required for GeminiSummarizer") from exc

        genai.configure(api_key=self.api_key)
        return genai.GenerativeModel(model_name=self.model, generation_config=self.generation_config)


class OpenAICompatibleSummarizer(Summarizer):
    """Backend for any OpenAI-compatible chat completions endpoint."""

    name = "openai"

    def __init__(
        self,
        *,
        api_token: str,
        base_url: str = "https://api.openai.com/v1",
        model: str = "gpt-4o-mini",
        timeout: int = 120,
        max_tokens: int | None = None,
    ) -> None:
        if not api_token:
            raise ConfigurationError("OPENAI_API_KEY is not set")

        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.max_tokens = max_tokens

    def generate(self, prompt: str) -> SummaryResult:
        payload: dict[str, Any] = {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
        }
        if self.max_tokens is not None:
            payload["max_tokens"] = self.max_tokens

        headers = {
            "Authorization": f"Bearer {self.api_token}",
            "Content-Type": "application/json",
        }

        try:
            response = requests.post(
                f"{self.base_url}/chat/completions",
                headers=headers,
                json=payload,
                timeout=self.timeout,
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            raise SummarizationError("Summarization request failed") from exc

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError, ValueError) as exc:
            raise SummarizationError("Unexpected summarization response payload") from exc

        if not isinstance(content, str):
            raise SummarizationError("Summarization response content is not text")

        return SummaryResult(text=content)


def create_summarizer(settings: Settings) -> Summarizer:
    backend = settings.summarizer_backend.lower()
    if backend == "gemini":
        return GeminiSummarizer(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            output_dir=settings.uploads_dir,
        )
    if backend == "openai":
        return OpenAICompatibleSummarizer(
            api_token=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.http_timeout,
        )
    raise ConfigurationError(f"Unsupported summarizer backend: {settings.summarizer_backend}")

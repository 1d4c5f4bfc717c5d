from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Literal

import requests

from .config import Settings
from .errors import TranscriptionError, TranscriptionTimeoutError

logger = logging.getLogger(__name__)

_FAILED_STATUSES = {"error", "failed"}


@dataclass(frozen=True)
class PollOutcome:
    """Terminal result of polling one transcription job."""

    status: Literal["completed", "error", "timeout"]
    attempts: int
    text: str = ""
    error: str | None = None


class AssemblyAIClient:
    """Client for the AssemblyAI upload, transcript and status endpoints."""

    def __init__(
        self,
        *,
        api_key: str,
        base_url: str = "https://api.assemblyai.com/v2",
        poll_interval: float = 5.0,
        max_attempts: int = 40,
        timeout: int = 120,
    ) -> None:
        if not api_key:
            raise TranscriptionError("AssemblyAI api_key is required")
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout = timeout

    @classmethod
    def from_settings(cls, settings: Settings) -> "AssemblyAIClient":
        return cls(
            api_key=settings.assemblyai_api_key,
            base_url=settings.assemblyai_base_url,
            poll_interval=settings.poll_interval,
            max_attempts=settings.max_poll_attempts,
            timeout=settings.http_timeout,
        )

    async def transcribe(self, audio_path: Path | str) -> str:
        """Upload ``audio_path``, start a job and wait for its transcript."""

        path = Path(audio_path)
        started = time.perf_counter()

        upload_url = await asyncio.to_thread(self.upload, path)
        job_id = await asyncio.to_thread(self.submit, upload_url)
        logger.info("AssemblyAI transcript id: %s", job_id)

        outcome = await self.wait_for_completion(job_id)
        if outcome.status == "error":
            raise TranscriptionError(f"AssemblyAI transcription failed: {outcome.error}")
        if outcome.status == "timeout":
            raise TranscriptionTimeoutError(
                f"AssemblyAI transcription timed out after {outcome.attempts} polls"
            )

        logger.info(
            "AssemblyAI transcription done (%sms, %s polls)",
            int((time.perf_counter() - started) * 1000),
            outcome.attempts,
        )
        return outcome.text

    def upload(self, audio_path: Path) -> str:
        headers = {
            "authorization": self.api_key,
            "Content-Type": "application/octet-stream",
        }
        logger.info("Uploading %s (%s bytes) to AssemblyAI", audio_path, audio_path.stat().st_size)

        with audio_path.open("rb") as stream:
            data = self._request("post", "/upload", headers=headers, data=stream)

        upload_url = data.get("upload_url")
        if not isinstance(upload_url, str) or not upload_url:
            raise TranscriptionError("AssemblyAI upload response has no upload_url")
        return upload_url

    def submit(self, upload_url: str) -> str:
        data = self._request(
            "post",
            "/transcript",
            headers={"authorization": self.api_key, "Content-Type": "application/json"},
            json={"audio_url": upload_url},
        )
        job_id = data.get("id")
        if not job_id:
            raise TranscriptionError("AssemblyAI transcript response has no id")
        return str(job_id)

    def fetch_job(self, job_id: str) -> dict[str, Any]:
        return self._request("get", f"/transcript/{job_id}", headers={"authorization": self.api_key})

    async def wait_for_completion(self, job_id: str) -> PollOutcome:
        """Poll ``job_id`` until it reaches a terminal state or the budget runs out.

        Exactly one terminal state is observed; nothing is polled after it.
        The loop does not sleep after the final attempt.
        """

        for attempt in range(1, self.max_attempts + 1):
            job = await asyncio.to_thread(self.fetch_job, job_id)
            status = str(job.get("status") or "")
            logger.info("AssemblyAI transcript status (attempt %s): %s", attempt, status)

            if status == "completed":
                return PollOutcome(status="completed", attempts=attempt, text=str(job.get("text") or ""))
            if status in _FAILED_STATUSES:
                reason = job.get("error") or status
                logger.error("AssemblyAI transcription error: %s", reason)
                return PollOutcome(status="error", attempts=attempt, error=str(reason))

            if attempt < self.max_attempts:
                await asyncio.sleep(self.poll_interval)

        return PollOutcome(status="timeout", attempts=self.max_attempts)

    def _request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        try:
            response = getattr(requests, method)(url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as exc:
            raise TranscriptionError(f"AssemblyAI request to {path} failed: {exc}") from exc

        try:
            data = response.json()
        except ValueError as exc:
            raise TranscriptionError(f"AssemblyAI response from {path} is not JSON") from exc
        if not isinstance(data, dict):
            raise TranscriptionError(f"Unexpected AssemblyAI response payload from {path}")
        return data

"""Async-friendly wrapper around external command-line tools.

Commands run through ``subprocess.run`` inside ``asyncio.to_thread`` so a slow
download or transcode only suspends the request that started it.
"""

from __future__ import annotations

import asyncio
import logging
import subprocess
import time
from dataclasses import dataclass
from typing import Sequence

from .errors import ProcessError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommandResult:
    args: list[str]
    returncode: int
    stdout: str
    stderr: str


async def run_command(args: Sequence[str], *, fail_on_stderr: bool = False) -> CommandResult:
    """Run ``args`` and capture its output.

    Raises ``ProcessError`` on a non-zero exit status. When ``fail_on_stderr``
    is true, any stderr output is also treated as a failure.
    """

    command = [str(arg) for arg in args]

    def _run() -> subprocess.CompletedProcess[bytes]:
        return subprocess.run(command, stdout=subprocess.PIPE, stderr=subprocess.PIPE, check=False)

    started = time.perf_counter()
    try:
        completed = await asyncio.to_thread(_run)
    except FileNotFoundError as exc:
        raise ProcessError(command, 127, message=f"executable not found: {command[0]}") from exc

    stdout = (completed.stdout or b"").decode(errors="ignore")
    stderr = (completed.stderr or b"").decode(errors="ignore")
    elapsed_ms = int((time.perf_counter() - started) * 1000)

    if completed.returncode != 0:
        logger.error("%s failed (code=%s, %sms): %s", command[0], completed.returncode, elapsed_ms, stderr.strip())
        raise ProcessError(command, int(completed.returncode), stderr)
    if fail_on_stderr and stderr.strip():
        logger.error("%s wrote to stderr (%sms): %s", command[0], elapsed_ms, stderr.strip())
        raise ProcessError(command, int(completed.returncode), stderr)

    logger.debug("%s finished (%sms)", command[0], elapsed_ms)
    return CommandResult(args=command, returncode=int(completed.returncode), stdout=stdout, stderr=stderr)

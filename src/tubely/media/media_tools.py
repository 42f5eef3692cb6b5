"""Async subprocess runner shared by the ffprobe and ffmpeg wrappers."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(slots=True)
class ToolResult:
    returncode: int
    stdout: bytes
    stderr: bytes

    @property
    def ok(self) -> bool:
        return self.returncode == 0

    def stderr_tail(self, limit: int = 2000) -> str:
        return self.stderr.decode("utf-8", errors="replace")[-limit:]


class ToolTimeoutError(Exception):
    """Raised when an external tool exceeds its deadline and is killed."""


async def run_tool(argv: Sequence[str], *, timeout: float | None = None) -> ToolResult:
    """Run ``argv`` to completion and capture its output.

    Raises ``OSError`` when the binary cannot be started and
    :class:`ToolTimeoutError` when ``timeout`` elapses first.
    """
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError as exc:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        await process.wait()
        raise ToolTimeoutError(f"{argv[0]} did not finish within {timeout}s") from exc
    returncode = process.returncode if process.returncode is not None else -1
    return ToolResult(returncode=returncode, stdout=stdout, stderr=stderr)

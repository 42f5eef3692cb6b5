"""Stream geometry probing via ffprobe."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

from ..pipeline.pipeline_errors import MalformedMediaError, ProbeFailedError
from .media_tools import ToolTimeoutError, run_tool


@dataclass(frozen=True, slots=True)
class ProbeResult:
    width: int
    height: int


class MediaProber(Protocol):
    async def probe(self, path: Path) -> ProbeResult:
        """Return the geometry of the first stream in ``path``."""


def _positive_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        return None
    return value


def parse_probe_output(raw: bytes) -> ProbeResult:
    """Extract the first stream's width/height from ffprobe JSON output."""
    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ProbeFailedError("ffprobe output is not valid JSON") from exc
    if not isinstance(payload, dict):
        raise ProbeFailedError("ffprobe output is not a JSON object")

    streams = payload.get("streams")
    if streams is None:
        streams = []
    if not isinstance(streams, list):
        raise ProbeFailedError("ffprobe 'streams' is not an array")
    if not streams:
        raise MalformedMediaError("no streams reported")

    first = streams[0]
    if not isinstance(first, dict):
        raise MalformedMediaError("first stream is not an object")
    width = _positive_int(first.get("width"))
    height = _positive_int(first.get("height"))
    if width is None or height is None:
        raise MalformedMediaError("first stream has no usable width/height")
    return ProbeResult(width=width, height=height)


@dataclass(slots=True)
class FFprobeProber:
    """Run ``ffprobe`` against a staged file and parse its JSON report."""

    binary: str = "ffprobe"
    timeout_seconds: float | None = None
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def command(self, path: Path) -> list[str]:
        return [
            self.binary,
            "-v",
            "error",
            "-print_format",
            "json",
            "-show_streams",
            str(path),
        ]

    async def probe(self, path: Path) -> ProbeResult:
        try:
            result = await run_tool(self.command(path), timeout=self.timeout_seconds)
        except (OSError, ToolTimeoutError) as exc:
            self.log.error(
                "media.probe.spawn_failed",
                extra={"path": str(path), "error": str(exc)},
            )
            raise ProbeFailedError(str(exc)) from exc

        if not result.ok:
            self.log.error(
                "media.probe.failed",
                extra={
                    "path": str(path),
                    "returncode": result.returncode,
                    "stderr": result.stderr_tail(),
                },
            )
            raise ProbeFailedError(f"ffprobe exited with {result.returncode}")

        probe = parse_probe_output(result.stdout)
        self.log.info(
            "media.probe.done",
            extra={"path": str(path), "width": probe.width, "height": probe.height},
        )
        return probe

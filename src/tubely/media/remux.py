"""Fast-start remuxing via ffmpeg stream copy."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from ..pipeline.pipeline_errors import RemuxFailedError
from .media_tools import ToolTimeoutError, run_tool

PROCESSING_SUFFIX = ".processing"


class MediaRemuxer(Protocol):
    async def remux(self, path: Path) -> Path:
        """Write a fast-start copy of ``path`` next to it and return the new path."""


def fast_start_path(path: Path) -> Path:
    return path.with_name(path.name + PROCESSING_SUFFIX)


@dataclass(slots=True)
class FFmpegRemuxer:
    """Relocate the moov atom to the front without re-encoding any stream."""

    binary: str = "ffmpeg"
    timeout_seconds: float | None = None
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def command(self, source: Path, target: Path) -> list[str]:
        return [
            self.binary,
            "-i",
            str(source),
            "-c",
            "copy",
            "-movflags",
            "faststart",
            "-f",
            "mp4",
            str(target),
        ]

    async def remux(self, path: Path) -> Path:
        target = fast_start_path(path)
        try:
            result = await run_tool(self.command(path, target), timeout=self.timeout_seconds)
        except (OSError, ToolTimeoutError) as exc:
            self.log.error(
                "media.remux.spawn_failed",
                extra={"path": str(path), "error": str(exc)},
            )
            raise RemuxFailedError(str(exc)) from exc

        if not result.ok:
            self.log.error(
                "media.remux.failed",
                extra={
                    "path": str(path),
                    "returncode": result.returncode,
                    "stderr": result.stderr_tail(),
                },
            )
            raise RemuxFailedError(f"ffmpeg exited with {result.returncode}")
        if not target.is_file():
            raise RemuxFailedError("ffmpeg reported success but wrote no output")

        self.log.info("media.remux.done", extra={"source": str(path), "target": str(target)})
        return target

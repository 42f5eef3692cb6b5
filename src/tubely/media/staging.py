"""Local staging of uploaded bytes for subprocess access."""

from __future__ import annotations

import asyncio
import logging
import tempfile
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO

from ..config import StoragePaths
from ..pipeline.pipeline_errors import PayloadTooLargeError, StagingError
from ..pipeline.pipeline_models import ChunkReader

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB
STAGING_PREFIX = "tubely-upload-"


def _rewind(handle: IO[bytes]) -> None:
    handle.flush()
    handle.seek(0)


@dataclass(slots=True)
class StagedFile:
    """Temp file holding one upload plus any sibling files derived from it."""

    path: Path
    file: IO[bytes]
    size_bytes: int = 0
    derived: list[Path] = field(default_factory=list)

    def derive(self, suffix: str) -> Path:
        """Reserve a sibling path that is removed together with the staged file."""
        target = self.path.with_name(self.path.name + suffix)
        self.derived.append(target)
        return target


@dataclass(slots=True)
class LocalStagingStore:
    """Copies upload streams to uniquely named temp files and removes them afterwards."""

    paths: StoragePaths
    chunk_size: int = CHUNK_SIZE
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    @asynccontextmanager
    async def stage(
        self,
        source: ChunkReader,
        *,
        max_bytes: int | None = None,
        suffix: str = "",
    ) -> AsyncIterator[StagedFile]:
        """Yield a rewound :class:`StagedFile`; it is deleted on every exit path."""
        try:
            handle = await asyncio.to_thread(self._create, suffix)
        except OSError as exc:
            self.log.error("media.staging.create_failed", exc_info=exc)
            raise StagingError("Couldn't create temporary file") from exc

        staged = StagedFile(path=Path(handle.name), file=handle)
        try:
            await self._copy(source, staged, max_bytes)
            self.log.info(
                "media.staging.persisted",
                extra={"path": str(staged.path), "size_bytes": staged.size_bytes},
            )
            yield staged
        finally:
            self.cleanup(staged)

    def _create(self, suffix: str) -> IO[bytes]:
        self.paths.staging.mkdir(parents=True, exist_ok=True)
        return tempfile.NamedTemporaryFile(
            mode="w+b",
            dir=self.paths.staging,
            prefix=STAGING_PREFIX,
            suffix=suffix,
            delete=False,
        )

    async def _copy(
        self, source: ChunkReader, staged: StagedFile, max_bytes: int | None
    ) -> None:
        try:
            while True:
                chunk = await source(self.chunk_size)
                if not chunk:
                    break
                staged.size_bytes += len(chunk)
                if max_bytes is not None and staged.size_bytes > max_bytes:
                    self.log.warning(
                        "media.staging.payload_too_large",
                        extra={"size_bytes": staged.size_bytes, "limit_bytes": max_bytes},
                    )
                    raise PayloadTooLargeError()
                await asyncio.to_thread(staged.file.write, chunk)
            await asyncio.to_thread(_rewind, staged.file)
        except PayloadTooLargeError:
            raise
        except Exception as exc:
            self.log.error(
                "media.staging.copy_failed",
                extra={"path": str(staged.path), "size_bytes": staged.size_bytes},
                exc_info=exc,
            )
            raise StagingError("Couldn't copy data") from exc

    def cleanup(self, staged: StagedFile) -> None:
        """Close the handle and unlink the staged file and its derived siblings."""
        if not staged.file.closed:
            staged.file.close()
        for path in (staged.path, *staged.derived):
            try:
                path.unlink(missing_ok=True)
            except OSError as exc:
                self.log.warning(
                    "media.staging.cleanup_failed",
                    extra={"path": str(path), "error": str(exc)},
                )
        self.log.debug("media.staging.cleaned", extra={"path": str(staged.path)})

"""Data structures for the upload pipeline."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from uuid import UUID

from ..videos.video_models import Video, utcnow

# Reads up to n bytes; an empty result means end of stream.
ChunkReader = Callable[[int], Awaitable[bytes]]


class MediaKind(StrEnum):
    THUMBNAIL = "thumbnail"
    VIDEO = "video"


class PipelineState(StrEnum):
    """States a single pipeline run moves through."""

    VALIDATED = "validated"
    STAGED = "staged"
    PROBED = "probed"
    CLASSIFIED = "classified"
    PROCESSED = "processed"
    PUBLISHED = "published"
    COMMITTED = "committed"
    FAILED = "failed"


_TRANSITIONS: dict[PipelineState, frozenset[PipelineState]] = {
    PipelineState.VALIDATED: frozenset({PipelineState.STAGED}),
    PipelineState.STAGED: frozenset({PipelineState.PROBED, PipelineState.PUBLISHED}),
    PipelineState.PROBED: frozenset({PipelineState.CLASSIFIED}),
    PipelineState.CLASSIFIED: frozenset({PipelineState.PROCESSED}),
    PipelineState.PROCESSED: frozenset({PipelineState.PUBLISHED}),
    PipelineState.PUBLISHED: frozenset({PipelineState.COMMITTED}),
    PipelineState.COMMITTED: frozenset(),
    PipelineState.FAILED: frozenset(),
}

_VIDEO_ONLY = frozenset(
    {PipelineState.PROBED, PipelineState.CLASSIFIED, PipelineState.PROCESSED}
)


@dataclass(slots=True)
class UploadRequest:
    """Validated ingress tuple handed over by the HTTP layer."""

    video_id: UUID
    user_id: UUID
    content_type: str
    body: ChunkReader


@dataclass(slots=True)
class PipelineRun:
    """State history of one pipeline run.

    ``attempt`` names the state the run is working towards; ``advance``
    records that it got there. A failure is tagged with the attempted state,
    or with the current one when nothing was being attempted.
    """

    kind: MediaKind
    video_id: UUID
    state: PipelineState = PipelineState.VALIDATED
    pending: PipelineState | None = None
    history: list[tuple[PipelineState, datetime]] = field(default_factory=list)
    failed_stage: PipelineState | None = None

    def __post_init__(self) -> None:
        if not self.history:
            self.history.append((self.state, utcnow()))

    def attempt(self, target: PipelineState) -> None:
        self._check(target)
        self.pending = target

    def advance(self, target: PipelineState) -> None:
        self._check(target)
        if self.pending is not None and self.pending is not target:
            raise RuntimeError(f"attempted {self.pending} but advanced to {target}")
        self.state = target
        self.pending = None
        self.history.append((target, utcnow()))

    def fail(self) -> PipelineState:
        """Enter FAILED and return the stage the run failed in."""
        if self.state is PipelineState.FAILED:
            return self.failed_stage or self.state
        self.failed_stage = self.pending or self.state
        self.state = PipelineState.FAILED
        self.pending = None
        self.history.append((PipelineState.FAILED, utcnow()))
        return self.failed_stage

    def _check(self, target: PipelineState) -> None:
        if target is PipelineState.FAILED:
            raise ValueError("use fail() to enter the failed state")
        if target not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"illegal transition {self.state} -> {target}")
        if self.kind is MediaKind.THUMBNAIL and target in _VIDEO_ONLY:
            raise RuntimeError(f"thumbnail runs never enter {target}")
        if self.kind is MediaKind.VIDEO and (self.state, target) == (
            PipelineState.STAGED,
            PipelineState.PUBLISHED,
        ):
            raise RuntimeError("video runs must be processed before publishing")

    @property
    def states(self) -> list[PipelineState]:
        return [state for state, _ in self.history]


@dataclass(slots=True)
class PipelineResult:
    """Outcome of a committed pipeline run."""

    record: Video
    key: str
    reference: str
    run: PipelineRun

"""Upload pipeline: stage, probe, classify, remux, publish and commit."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Collection
from uuid import UUID

from ..config import UploadLimits
from ..exceptions import NotFoundError, RepositoryError
from ..media.asset_keys import generate_key, partitioned_key
from ..media.orientation import DEFAULT_TOLERANCE, classify
from ..media.probe import MediaProber
from ..media.remux import PROCESSING_SUFFIX, MediaRemuxer
from ..media.staging import LocalStagingStore
from ..storage.publisher import ObjectPublisher
from ..storage.references import ReferenceResolver, build_public_url, encode_reference
from ..videos.video_models import Video, utcnow
from ..videos.video_repository import VideoRepository
from .pipeline_errors import (
    AuthError,
    CommitError,
    LookupFailedError,
    PipelineError,
    ProcessingError,
    RecordNotFoundError,
    UnsupportedMediaError,
)
from .pipeline_models import (
    MediaKind,
    PipelineResult,
    PipelineRun,
    PipelineState,
    UploadRequest,
)

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class MediaPipeline:
    """Coordinates thumbnail and video uploads for one record at a time."""

    video_repo: VideoRepository
    staging: LocalStagingStore
    prober: MediaProber
    remuxer: MediaRemuxer
    publisher: ObjectPublisher
    resolver: ReferenceResolver
    limits: UploadLimits
    public_base_url: str
    tolerance: float = DEFAULT_TOLERANCE
    key_factory: Callable[[str], str] = generate_key
    clock: Callable[[], datetime] = utcnow
    log: logging.Logger = field(default_factory=lambda: logger)

    async def upload_thumbnail(self, request: UploadRequest) -> PipelineResult:
        """Publish the staged image as-is under a flat key and record its public URL."""
        run = PipelineRun(kind=MediaKind.THUMBNAIL, video_id=request.video_id)
        self._log_start(run, request)
        try:
            media_type = self._accept(request, self.limits.thumbnail_content_types)
            video = self._load_owned_record(request.video_id, request.user_id)

            run.attempt(PipelineState.STAGED)
            async with self.staging.stage(
                request.body, max_bytes=self.limits.thumbnail_max_bytes
            ) as staged:
                self._advance(run, PipelineState.STAGED)

                run.attempt(PipelineState.PUBLISHED)
                key = self.key_factory(media_type)
                await self.publisher.publish(staged.file, key, media_type)
                self._advance(run, PipelineState.PUBLISHED)

            reference = build_public_url(self.public_base_url, key)
            run.attempt(PipelineState.COMMITTED)
            video = self._commit(video, key, thumbnail_url=reference)
            self._advance(run, PipelineState.COMMITTED)
        except PipelineError as exc:
            self._fail(run, exc)
            raise
        except Exception:
            self._abort(run)
            raise

        self._log_done(run, key)
        return PipelineResult(record=video, key=key, reference=reference, run=run)

    async def upload_video(self, request: UploadRequest) -> PipelineResult:
        """Probe, classify and fast-start the video, then publish it under its orientation."""
        run = PipelineRun(kind=MediaKind.VIDEO, video_id=request.video_id)
        self._log_start(run, request)
        try:
            media_type = self._accept(request, self.limits.video_content_types)
            video = self._load_owned_record(request.video_id, request.user_id)

            run.attempt(PipelineState.STAGED)
            async with self.staging.stage(
                request.body, max_bytes=self.limits.video_max_bytes, suffix=".mp4"
            ) as staged:
                self._advance(run, PipelineState.STAGED)

                run.attempt(PipelineState.PROBED)
                probe = await self.prober.probe(staged.path)
                self._advance(run, PipelineState.PROBED)

                run.attempt(PipelineState.CLASSIFIED)
                orientation = classify(probe.width, probe.height, self.tolerance)
                self._advance(run, PipelineState.CLASSIFIED)
                self.log.info(
                    "pipeline.video.classified",
                    extra={
                        "video_id": str(request.video_id),
                        "width": probe.width,
                        "height": probe.height,
                        "orientation": orientation.value,
                    },
                )

                run.attempt(PipelineState.PROCESSED)
                staged.derive(PROCESSING_SUFFIX)
                processed = await self.remuxer.remux(staged.path)
                if processed not in staged.derived:
                    staged.derived.append(processed)
                self._advance(run, PipelineState.PROCESSED)

                run.attempt(PipelineState.PUBLISHED)
                key = partitioned_key(orientation.value, self.key_factory(media_type))
                try:
                    stream = await asyncio.to_thread(processed.open, "rb")
                except OSError as exc:
                    raise ProcessingError(
                        str(exc), public_message="Couldn't open processed video file"
                    ) from exc
                with stream:
                    await self.publisher.publish(stream, key, media_type)
                self._advance(run, PipelineState.PUBLISHED)

            reference = encode_reference(self.publisher.container, key)
            run.attempt(PipelineState.COMMITTED)
            video = self._commit(video, key, video_url=reference)
            self._advance(run, PipelineState.COMMITTED)
        except PipelineError as exc:
            self._fail(run, exc)
            raise
        except Exception:
            self._abort(run)
            raise

        self._log_done(run, key)
        return PipelineResult(record=video, key=key, reference=reference, run=run)

    def get_signed_video(self, video_id: UUID, user_id: UUID) -> Video:
        """Return the caller's record with its video reference freshly signed."""
        video = self._load_owned_record(video_id, user_id)
        return self.resolver.sign_record(video)

    @staticmethod
    def _accept(request: UploadRequest, allowed: Collection[str]) -> str:
        if request.content_type not in allowed:
            raise UnsupportedMediaError(
                f"content type {request.content_type!r} not accepted",
                public_message="Only accepts " + " or ".join(sorted(allowed)),
            )
        return request.content_type

    def _load_owned_record(self, video_id: UUID, user_id: UUID) -> Video:
        try:
            video = self.video_repo.get_video(video_id)
        except NotFoundError as exc:
            raise RecordNotFoundError(str(exc)) from exc
        except RepositoryError as exc:
            raise LookupFailedError(str(exc)) from exc
        if video.user_id != user_id:
            raise AuthError(f"video {video.id} is not owned by {user_id}")
        return video

    def _commit(self, video: Video, key: str, **references: str) -> Video:
        updated = dataclasses.replace(video, updated_at=self.clock(), **references)
        try:
            self.video_repo.update_video(updated)
        except RepositoryError as exc:
            # The object stays in storage without a record pointing at it.
            self.log.error(
                "pipeline.commit.orphaned_object",
                extra={
                    "video_id": str(video.id),
                    "container": self.publisher.container,
                    "key": key,
                    "error": str(exc),
                },
            )
            raise CommitError(str(exc)) from exc
        return updated

    def _advance(self, run: PipelineRun, target: PipelineState) -> None:
        run.advance(target)
        self.log.debug(
            f"pipeline.{run.kind.value}.{target.value}",
            extra={"video_id": str(run.video_id)},
        )

    def _fail(self, run: PipelineRun, exc: PipelineError) -> None:
        exc.stage = run.fail()
        level = logging.WARNING if exc.status_code < 500 else logging.ERROR
        self.log.log(
            level,
            f"pipeline.{run.kind.value}.failed",
            extra={
                "video_id": str(run.video_id),
                "stage": exc.stage.value,
                "failure_reason": exc.failure_reason,
                "error": str(exc),
            },
        )

    def _abort(self, run: PipelineRun) -> None:
        stage = run.fail()
        self.log.exception(
            f"pipeline.{run.kind.value}.aborted",
            extra={"video_id": str(run.video_id), "stage": stage.value},
        )

    def _log_start(self, run: PipelineRun, request: UploadRequest) -> None:
        self.log.info(
            f"pipeline.{run.kind.value}.start",
            extra={
                "video_id": str(request.video_id),
                "user_id": str(request.user_id),
                "content_type": request.content_type,
            },
        )

    def _log_done(self, run: PipelineRun, key: str) -> None:
        self.log.info(
            f"pipeline.{run.kind.value}.committed",
            extra={
                "video_id": str(run.video_id),
                "key": key,
                "states": [state.value for state in run.states],
            },
        )

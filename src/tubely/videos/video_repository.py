"""Persistence layer for video records."""

from __future__ import annotations

import uuid
from collections.abc import Callable
from uuid import UUID

from sqlalchemy.orm import Session

from ..db.db_models import VideoModel
from ..exceptions import NotFoundError, handle_sqlalchemy_errors
from .video_models import Video, ensure_utc, utcnow


class VideoRepository:
    """Read and update video records."""

    def __init__(self, session_factory: Callable[[], Session]) -> None:
        self._session_factory = session_factory

    def create_video(
        self,
        *,
        user_id: UUID,
        title: str,
        description: str = "",
        video_id: UUID | None = None,
    ) -> Video:
        now = utcnow()
        model = VideoModel(
            id=str(video_id or uuid.uuid4()),
            user_id=str(user_id),
            title=title,
            description=description,
            created_at=now,
            updated_at=now,
        )
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            session.add(model)
            session.commit()
            return self._to_domain(model)

    def get_video(self, video_id: UUID) -> Video:
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            model = session.get(VideoModel, str(video_id))
            if model is None:
                raise NotFoundError(f"Video '{video_id}' not found")
            return self._to_domain(model)

    def update_video(self, video: Video) -> None:
        """Persist mutable fields of ``video``; raises NotFoundError if it vanished."""
        with handle_sqlalchemy_errors(entity="video"), self._session_factory() as session:
            model = session.get(VideoModel, str(video.id))
            if model is None:
                raise NotFoundError(f"Video '{video.id}' not found")
            model.title = video.title
            model.description = video.description
            model.thumbnail_url = video.thumbnail_url
            model.video_url = video.video_url
            model.updated_at = ensure_utc(video.updated_at)
            session.commit()

    @staticmethod
    def _to_domain(model: VideoModel) -> Video:
        return Video(
            id=UUID(model.id),
            user_id=UUID(model.user_id),
            title=model.title,
            description=model.description,
            created_at=ensure_utc(model.created_at),
            updated_at=ensure_utc(model.updated_at),
            thumbnail_url=model.thumbnail_url,
            video_url=model.video_url,
        )

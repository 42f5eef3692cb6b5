"""Pydantic schemas for video responses."""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from .video_models import Video


class VideoResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    title: str
    description: str
    created_at: datetime
    updated_at: datetime
    thumbnail_url: str | None = None
    video_url: str | None = None

    @classmethod
    def from_video(cls, video: Video) -> "VideoResponse":
        return cls.model_validate(video)

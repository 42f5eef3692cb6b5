from dataclasses import replace
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import pytest

from src.tubely.exceptions import NotFoundError


def test_create_and_get_video(video_repo, owner_id):
    created = video_repo.create_video(user_id=owner_id, title="Boots", description="demo")

    fetched = video_repo.get_video(created.id)

    assert fetched == created
    assert fetched.user_id == owner_id
    assert fetched.thumbnail_url is None
    assert fetched.video_url is None


def test_create_with_explicit_id(video_repo, owner_id):
    video_id = uuid4()

    created = video_repo.create_video(user_id=owner_id, title="Boots", video_id=video_id)

    assert created.id == video_id


def test_get_missing_video_raises(video_repo):
    with pytest.raises(NotFoundError):
        video_repo.get_video(uuid4())


def test_update_persists_references(video_repo, video):
    updated = replace(
        video,
        thumbnail_url="http://localhost:8091/assets/k.png",
        video_url="tubely-media,landscape/k.mp4",
        updated_at=datetime.now(timezone.utc) + timedelta(seconds=1),
    )

    video_repo.update_video(updated)

    assert video_repo.get_video(video.id) == updated


def test_update_missing_video_raises(video_repo, video):
    with pytest.raises(NotFoundError):
        video_repo.update_video(replace(video, id=uuid4()))


def test_timestamps_read_back_as_utc(video_repo, owner_id):
    created = video_repo.create_video(user_id=owner_id, title="Boots")

    fetched = video_repo.get_video(created.id)

    assert fetched.created_at.tzinfo == timezone.utc
    assert fetched.updated_at.tzinfo == timezone.utc
    assert abs(datetime.now(timezone.utc) - fetched.created_at) < timedelta(minutes=1)


def test_update_stores_offset_timestamps_in_utc(video_repo, video):
    local = timezone(timedelta(hours=3))
    moment = datetime(2024, 5, 1, 15, 0, tzinfo=local)

    video_repo.update_video(replace(video, updated_at=moment))

    stored = video_repo.get_video(video.id).updated_at
    assert stored == moment
    assert stored.tzinfo == timezone.utc
    assert stored.hour == 12

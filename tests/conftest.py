from __future__ import annotations

import os
from datetime import timedelta
from pathlib import Path
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from src.tubely.config import (
    AppConfig,
    MediaToolsConfig,
    ObjectStoreConfig,
    UploadLimits,
    build_storage_paths,
)
from src.tubely.db.db_init import init_db
from src.tubely.main import create_app
from src.tubely.media.staging import LocalStagingStore
from src.tubely.pipeline.pipeline_service import MediaPipeline
from src.tubely.storage.publisher import ObjectPublisher
from src.tubely.storage.references import ReferenceResolver
from src.tubely.videos.video_models import Video
from src.tubely.videos.video_repository import VideoRepository
from tests.mocks.media import FakeProber, FakeRemuxer
from tests.mocks.storage import InMemoryObjectStore

os.environ.setdefault("JWT_SECRET", "test-jwt-secret")
os.environ.setdefault("SIGNING_CREDENTIAL", "test-signing-credential")

TEST_CONTAINER = "tubely-media"
TEST_PUBLIC_BASE_URL = "http://testserver/assets"


def build_test_config(tmp_path: Path) -> AppConfig:
    storage_paths = build_storage_paths(tmp_path / "storage")
    storage_paths.staging.mkdir(parents=True, exist_ok=True)
    storage_paths.assets.mkdir(parents=True, exist_ok=True)

    database_url = f"sqlite:///{tmp_path / 'tubely.db'}"
    engine = create_engine(database_url, future=True)
    init_db(engine)

    return AppConfig(
        storage_paths=storage_paths,
        upload_limits=UploadLimits(
            thumbnail_content_types=("image/jpeg", "image/png"),
            video_content_types=("video/mp4",),
            thumbnail_max_bytes=64 * 1024,
            video_max_bytes=1024 * 1024,
            chunk_size_bytes=4096,
        ),
        media_tools=MediaToolsConfig(ffprobe_bin="ffprobe", ffmpeg_bin="ffmpeg"),
        object_store=ObjectStoreConfig(
            backend="local",
            container=TEST_CONTAINER,
            public_base_url=TEST_PUBLIC_BASE_URL,
            signing_credential="test-signing-credential",
            presign_ttl_default=timedelta(minutes=5),
        ),
        jwt_secret="test-jwt-secret",
        database_url=database_url,
        engine=engine,
        session_factory=sessionmaker(bind=engine, expire_on_commit=False),
    )


@pytest.fixture
def app_config(tmp_path: Path) -> AppConfig:
    config = build_test_config(tmp_path)
    yield config
    config.engine.dispose()


@pytest.fixture
def video_repo(app_config: AppConfig) -> VideoRepository:
    return VideoRepository(app_config.session_factory)


@pytest.fixture
def owner_id() -> UUID:
    return uuid4()


@pytest.fixture
def video(video_repo: VideoRepository, owner_id: UUID) -> Video:
    return video_repo.create_video(user_id=owner_id, title="Boots demo", description="unboxing")


@pytest.fixture
def object_store() -> InMemoryObjectStore:
    return InMemoryObjectStore()


@pytest.fixture
def pipeline_factory(app_config: AppConfig, video_repo: VideoRepository, object_store):
    def build(
        *,
        store=None,
        prober=None,
        remuxer=None,
        repo: VideoRepository | None = None,
    ) -> MediaPipeline:
        target = object_store if store is None else store
        return MediaPipeline(
            video_repo=repo or video_repo,
            staging=LocalStagingStore(
                paths=app_config.storage_paths,
                chunk_size=app_config.upload_limits.chunk_size_bytes,
            ),
            prober=prober or FakeProber(),
            remuxer=remuxer or FakeRemuxer(),
            publisher=ObjectPublisher(store=target, container=TEST_CONTAINER),
            resolver=ReferenceResolver(
                store=target, default_ttl=app_config.object_store.presign_ttl_default
            ),
            limits=app_config.upload_limits,
            public_base_url=TEST_PUBLIC_BASE_URL,
        )

    return build


@pytest.fixture
def client(app_config: AppConfig):
    app = create_app(app_config)
    app.state.media_pipeline.prober = FakeProber()
    app.state.media_pipeline.remuxer = FakeRemuxer()
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def auth_headers(client: TestClient, owner_id: UUID) -> dict[str, str]:
    token = client.app.state.auth_service.issue_token(owner_id)  # type: ignore[attr-defined]
    return {"Authorization": f"Bearer {token}"}

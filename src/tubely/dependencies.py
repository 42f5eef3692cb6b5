"""Dependency wiring helpers."""

from fastapi import FastAPI

from .auth.auth_service import AuthService
from .config import AppConfig
from .media.probe import FFprobeProber
from .media.remux import FFmpegRemuxer
from .media.staging import LocalStagingStore
from .pipeline.pipeline_service import MediaPipeline
from .pipeline.uploads_api import router as uploads_router
from .storage.assets_api import router as assets_router
from .storage.local_store import LocalObjectStore
from .storage.object_store import ObjectStore
from .storage.publisher import ObjectPublisher
from .storage.references import ReferenceResolver
from .storage.s3_store import S3ObjectStore
from .videos.video_repository import VideoRepository


def build_object_store(config: AppConfig) -> ObjectStore:
    """Instantiate the backend selected by ``OBJECT_STORE``."""
    settings = config.object_store
    if settings.backend == "s3":
        return S3ObjectStore(region=settings.region, endpoint_url=settings.endpoint_url)
    return LocalObjectStore(
        root=config.storage_paths.assets,
        container=settings.container,
        public_base_url=settings.public_base_url,
        signing_credential=settings.signing_credential,
        chunk_size=config.upload_limits.chunk_size_bytes,
    )


def build_media_pipeline(
    config: AppConfig,
    *,
    store: ObjectStore,
    video_repo: VideoRepository,
) -> MediaPipeline:
    tools = config.media_tools
    return MediaPipeline(
        video_repo=video_repo,
        staging=LocalStagingStore(
            paths=config.storage_paths,
            chunk_size=config.upload_limits.chunk_size_bytes,
        ),
        prober=FFprobeProber(binary=tools.ffprobe_bin, timeout_seconds=tools.timeout_seconds),
        remuxer=FFmpegRemuxer(binary=tools.ffmpeg_bin, timeout_seconds=tools.timeout_seconds),
        publisher=ObjectPublisher(store=store, container=config.object_store.container),
        resolver=ReferenceResolver(
            store=store, default_ttl=config.object_store.presign_ttl_default
        ),
        limits=config.upload_limits,
        public_base_url=config.object_store.public_base_url,
    )


def include_routers(app: FastAPI, config: AppConfig) -> None:
    """Mount module routers and attach services."""
    video_repo = VideoRepository(config.session_factory)
    store = build_object_store(config)
    media_pipeline = build_media_pipeline(config, store=store, video_repo=video_repo)
    auth_service = AuthService(signing_key=config.jwt_secret)

    app.state.config = config
    app.state.video_repo = video_repo
    app.state.object_store = store
    app.state.media_pipeline = media_pipeline
    app.state.auth_service = auth_service
    app.state.local_object_store = store if isinstance(store, LocalObjectStore) else None

    app.include_router(uploads_router)
    app.include_router(assets_router)

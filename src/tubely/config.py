"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import timedelta
from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db


@dataclass(slots=True)
class StoragePaths:
    root: Path
    staging: Path
    assets: Path


@dataclass(slots=True)
class UploadLimits:
    thumbnail_content_types: tuple[str, ...]
    video_content_types: tuple[str, ...]
    thumbnail_max_bytes: int
    video_max_bytes: int
    chunk_size_bytes: int


@dataclass(slots=True)
class MediaToolsConfig:
    ffprobe_bin: str
    ffmpeg_bin: str
    # None means no deadline on probe/remux subprocesses.
    timeout_seconds: float | None = None


@dataclass(slots=True)
class ObjectStoreConfig:
    backend: str
    container: str
    public_base_url: str
    signing_credential: str
    presign_ttl_default: timedelta
    region: str | None = None
    endpoint_url: str | None = None


@dataclass(slots=True)
class AppConfig:
    storage_paths: StoragePaths
    upload_limits: UploadLimits
    media_tools: MediaToolsConfig
    object_store: ObjectStoreConfig
    jwt_secret: str
    database_url: str
    engine: Engine
    session_factory: sessionmaker[Session]


def build_storage_paths(root: Path) -> StoragePaths:
    return StoragePaths(root=root, staging=root / "staging", assets=root / "assets")


def _ensure_storage_paths(paths: StoragePaths) -> None:
    paths.root.mkdir(parents=True, exist_ok=True)
    paths.staging.mkdir(parents=True, exist_ok=True)
    paths.assets.mkdir(parents=True, exist_ok=True)


def _optional_float(name: str) -> float | None:
    raw = os.getenv(name, "").strip()
    if not raw:
        return None
    value = float(raw)
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero")
    return value


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    storage_paths = build_storage_paths(Path(os.getenv("STORAGE_ROOT", "var/tubely")))
    _ensure_storage_paths(storage_paths)

    upload_limits = UploadLimits(
        thumbnail_content_types=("image/jpeg", "image/png"),
        video_content_types=("video/mp4",),
        thumbnail_max_bytes=int(os.getenv("THUMBNAIL_MAX_BYTES", 10 << 20)),
        video_max_bytes=int(os.getenv("VIDEO_MAX_BYTES", 10 << 30)),
        chunk_size_bytes=int(os.getenv("UPLOAD_CHUNK_BYTES", 1 << 20)),
    )

    media_tools = MediaToolsConfig(
        ffprobe_bin=os.getenv("FFPROBE_BIN", "ffprobe"),
        ffmpeg_bin=os.getenv("FFMPEG_BIN", "ffmpeg"),
        timeout_seconds=_optional_float("SUBPROCESS_TIMEOUT_SECONDS"),
    )

    backend = os.getenv("OBJECT_STORE", "local").strip().lower()
    public_base_url = os.getenv("PUBLIC_BASE_URL", "").strip()
    if not public_base_url:
        if backend == "s3":
            # Thumbnail URLs must point at the bucket's CDN, not at /assets.
            raise RuntimeError("PUBLIC_BASE_URL is required with OBJECT_STORE=s3")
        public_base_url = "http://localhost:8091/assets"

    ttl_seconds = int(os.getenv("PRESIGN_TTL_SECONDS", 5 * 60))
    if ttl_seconds <= 0:
        raise ValueError("PRESIGN_TTL_SECONDS must be greater than zero")
    object_store = ObjectStoreConfig(
        backend=backend,
        container=os.getenv("OBJECT_CONTAINER") or os.getenv("S3_BUCKET", "tubely-media"),
        public_base_url=public_base_url,
        signing_credential=os.getenv("SIGNING_CREDENTIAL", ""),
        presign_ttl_default=timedelta(seconds=ttl_seconds),
        region=os.getenv("S3_REGION") or None,
        endpoint_url=os.getenv("S3_ENDPOINT_URL") or None,
    )
    if object_store.backend not in {"local", "s3"}:
        raise ValueError(f"Unsupported OBJECT_STORE backend: {object_store.backend}")
    if object_store.backend == "local" and not object_store.signing_credential:
        raise RuntimeError("SIGNING_CREDENTIAL is not configured")

    jwt_secret = os.getenv("JWT_SECRET", "")
    if not jwt_secret:
        raise RuntimeError("JWT_SECRET is not configured")

    database_url = os.getenv("DATABASE_URL", "sqlite:///tubely.db")
    engine = create_engine(database_url, future=True)
    session_factory: sessionmaker[Session] = sessionmaker(bind=engine, expire_on_commit=False)

    init_db(engine)

    return AppConfig(
        storage_paths=storage_paths,
        upload_limits=upload_limits,
        media_tools=media_tools,
        object_store=object_store,
        jwt_secret=jwt_secret,
        database_url=database_url,
        engine=engine,
        session_factory=session_factory,
    )

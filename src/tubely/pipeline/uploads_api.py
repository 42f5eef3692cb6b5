"""HTTP routes for thumbnail and video uploads."""

from __future__ import annotations

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from ..auth.auth_dependencies import require_user_id
from ..videos.video_schemas import VideoResponse
from .pipeline_errors import InvalidIdentifierError, MalformedUploadError, PipelineError
from .pipeline_models import UploadRequest
from .pipeline_service import MediaPipeline

router = APIRouter(prefix="/api", tags=["uploads"])
logger = logging.getLogger(__name__)


def get_media_pipeline(request: Request) -> MediaPipeline:
    """Fetch the upload pipeline from application state."""
    try:
        return request.app.state.media_pipeline  # type: ignore[attr-defined]
    except AttributeError as exc:  # pragma: no cover
        raise RuntimeError("MediaPipeline is not configured") from exc


def parse_video_id(raw: str) -> UUID:
    try:
        return UUID(raw)
    except ValueError as exc:
        raise InvalidIdentifierError(f"invalid video id {raw!r}") from exc


def parse_media_type(raw: str | None) -> str:
    """Return ``type/subtype`` without parameters, lowercased."""
    media_type = (raw or "").split(";", 1)[0].strip().lower()
    parts = media_type.split("/")
    if len(parts) != 2 or not all(part.strip() for part in parts):
        raise MalformedUploadError(
            f"unparsable media type {raw!r}", public_message="Media type can't be parsed"
        )
    return media_type


def _require_upload(upload: UploadFile | None, field_name: str) -> UploadFile:
    if upload is None:
        raise MalformedUploadError(f"multipart field {field_name!r} is missing")
    return upload


def to_http_error(exc: PipelineError) -> HTTPException:
    """Map a pipeline error to its single HTTP status and short public message."""
    detail = {
        "status": "error",
        "failure_reason": exc.failure_reason,
        "message": exc.public_message,
    }
    if exc.stage is not None:
        detail["stage"] = exc.stage.value
    return HTTPException(status_code=exc.status_code, detail=detail)


@router.post("/thumbnail_upload/{video_id}", response_model=VideoResponse)
async def upload_thumbnail(
    video_id: str,
    thumbnail: UploadFile | None = File(None),
    user_id: UUID = Depends(require_user_id),
    pipeline: MediaPipeline = Depends(get_media_pipeline),
) -> VideoResponse:
    """Store a thumbnail image and point the record at its public URL."""
    try:
        parsed_id = parse_video_id(video_id)
        upload = _require_upload(thumbnail, "thumbnail")
        request = UploadRequest(
            video_id=parsed_id,
            user_id=user_id,
            content_type=parse_media_type(upload.content_type),
            body=upload.read,
        )
        result = await pipeline.upload_thumbnail(request)
    except PipelineError as exc:
        logger.info(
            "uploads.thumbnail.rejected",
            extra={"video_id": video_id, "status_code": exc.status_code},
        )
        raise to_http_error(exc) from exc
    return VideoResponse.from_video(result.record)


@router.post("/video_upload/{video_id}", response_model=VideoResponse)
async def upload_video(
    video_id: str,
    video: UploadFile | None = File(None),
    user_id: UUID = Depends(require_user_id),
    pipeline: MediaPipeline = Depends(get_media_pipeline),
) -> VideoResponse:
    """Fast-start and publish an mp4, returning the record with a signed video URL."""
    try:
        parsed_id = parse_video_id(video_id)
        upload = _require_upload(video, "video")
        request = UploadRequest(
            video_id=parsed_id,
            user_id=user_id,
            content_type=parse_media_type(upload.content_type),
            body=upload.read,
        )
        result = await pipeline.upload_video(request)
        signed = pipeline.resolver.sign_record(result.record)
    except PipelineError as exc:
        logger.info(
            "uploads.video.rejected",
            extra={"video_id": video_id, "status_code": exc.status_code},
        )
        raise to_http_error(exc) from exc
    return VideoResponse.from_video(signed)


@router.get("/videos/{video_id}", response_model=VideoResponse)
def get_video(
    video_id: str,
    user_id: UUID = Depends(require_user_id),
    pipeline: MediaPipeline = Depends(get_media_pipeline),
) -> VideoResponse:
    """Return the record with its video reference resolved to a fresh signed URL."""
    try:
        signed = pipeline.get_signed_video(parse_video_id(video_id), user_id)
    except PipelineError as exc:
        raise to_http_error(exc) from exc
    return VideoResponse.from_video(signed)

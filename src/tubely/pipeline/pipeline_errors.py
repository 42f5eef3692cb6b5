"""Error taxonomy for the upload pipeline.

Each error carries the HTTP status class and the short public message that
the API layer returns; the underlying cause is only logged.
"""

from __future__ import annotations

from ..exceptions import AppError
from .pipeline_models import PipelineState


class PipelineError(AppError):
    """Base class for pipeline failures, tagged with the failing stage."""

    status_code: int = 500
    failure_reason: str = "internal_error"
    public_message: str = "Upload failed"

    def __init__(self, message: str | None = None, *, public_message: str | None = None) -> None:
        super().__init__(message or public_message or self.public_message)
        if public_message is not None:
            self.public_message = public_message
        self.stage: PipelineState | None = None


class InputError(PipelineError):
    """Malformed identifier, disallowed content type or malformed body."""

    status_code = 400
    failure_reason = "invalid_request"
    public_message = "Invalid request"


class InvalidIdentifierError(InputError):
    public_message = "Invalid ID"


class UnsupportedMediaError(InputError):
    failure_reason = "unsupported_media_type"
    public_message = "Unsupported media type"


class MalformedUploadError(InputError):
    public_message = "Unable to parse form file"


class PayloadTooLargeError(InputError):
    status_code = 413
    failure_reason = "payload_too_large"
    public_message = "Upload exceeds size limit"


class AuthError(PipelineError):
    """Missing or invalid credential, or the record belongs to someone else."""

    status_code = 401
    failure_reason = "unauthorized"
    public_message = "Unauthorized"


class RecordNotFoundError(PipelineError):
    status_code = 404
    failure_reason = "video_not_found"
    public_message = "Video not found"


class LookupFailedError(PipelineError):
    failure_reason = "lookup_failed"
    public_message = "Couldn't get video"


class ProcessingError(PipelineError):
    """Staging, probe or remux failure."""

    failure_reason = "processing_failed"
    public_message = "Couldn't process upload"


class StagingError(ProcessingError):
    public_message = "Couldn't stage upload"


class ProbeFailedError(ProcessingError):
    public_message = "Couldn't get video aspect ratio"


class MalformedMediaError(ProcessingError):
    public_message = "Video has no usable stream"


class RemuxFailedError(ProcessingError):
    public_message = "Couldn't process video for fast start"


class PublishError(PipelineError):
    failure_reason = "publish_failed"
    public_message = "Couldn't upload to object storage"


class CommitError(PipelineError):
    failure_reason = "commit_failed"
    public_message = "Couldn't update video"


class SigningError(PipelineError):
    failure_reason = "signing_failed"
    public_message = "Couldn't generate presigned video url"


__all__ = [
    "PipelineError",
    "InputError",
    "InvalidIdentifierError",
    "UnsupportedMediaError",
    "MalformedUploadError",
    "PayloadTooLargeError",
    "AuthError",
    "RecordNotFoundError",
    "LookupFailedError",
    "ProcessingError",
    "StagingError",
    "ProbeFailedError",
    "MalformedMediaError",
    "RemuxFailedError",
    "PublishError",
    "CommitError",
    "SigningError",
]

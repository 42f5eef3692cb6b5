"""S3 implementation of the ObjectStore interface."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import timedelta
from typing import Any, BinaryIO

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.exceptions import BotoCoreError, ClientError

from .object_store import ObjectStoreConfigError, ObjectStoreError

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class S3ObjectStore:
    """Stream uploads with ``upload_fileobj`` and sign reads with presigned GETs."""

    region: str | None = None
    endpoint_url: str | None = None
    s3_client: Any | None = None
    log: logging.Logger = field(default_factory=lambda: logger)

    def __post_init__(self) -> None:
        if self.s3_client is None:
            self.s3_client = boto3.client(
                "s3",
                region_name=self.region,
                endpoint_url=self.endpoint_url,
            )

    def put(self, container: str, key: str, content_type: str, stream: BinaryIO) -> None:
        try:
            # Multipart upload for large bodies; the file is never fully buffered.
            self.s3_client.upload_fileobj(
                stream,
                container,
                key,
                ExtraArgs={"ContentType": content_type},
            )
        except (BotoCoreError, ClientError, S3UploadFailedError) as exc:
            self.log.error(
                "storage.s3.put_failed",
                extra={"bucket": container, "key": key, "error": str(exc)},
            )
            raise ObjectStoreError(f"Failed to upload object '{key}'") from exc
        self.log.info(
            "storage.s3.put",
            extra={"bucket": container, "key": key, "content_type": content_type},
        )

    def presign_get(self, container: str, key: str, ttl: timedelta) -> str:
        expires_in = int(ttl.total_seconds())
        if expires_in <= 0:
            raise ObjectStoreConfigError("Signed URL expiration must be greater than zero")
        try:
            return self.s3_client.generate_presigned_url(
                "get_object",
                Params={"Bucket": container, "Key": key},
                ExpiresIn=expires_in,
            )
        except (BotoCoreError, ClientError) as exc:
            raise ObjectStoreError(f"Failed to generate signed URL for '{key}'") from exc

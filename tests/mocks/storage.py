"""In-memory object store and boto3 client doubles."""

from __future__ import annotations

from datetime import timedelta
from typing import Any, BinaryIO

from botocore.exceptions import ClientError

from src.tubely.storage.object_store import ObjectStoreError


class InMemoryObjectStore:
    def __init__(self, *, fail_put: bool = False, fail_sign: bool = False) -> None:
        self.fail_put = fail_put
        self.fail_sign = fail_sign
        self.objects: dict[tuple[str, str], tuple[str, bytes]] = {}
        self.presigned: list[tuple[str, str, timedelta]] = []

    def put(self, container: str, key: str, content_type: str, stream: BinaryIO) -> None:
        if self.fail_put:
            raise ObjectStoreError("bucket unavailable")
        self.objects[(container, key)] = (content_type, stream.read())

    def presign_get(self, container: str, key: str, ttl: timedelta) -> str:
        if self.fail_sign:
            raise ObjectStoreError("signer unavailable")
        self.presigned.append((container, key, ttl))
        return f"https://signed.test/{container}/{key}?ttl={int(ttl.total_seconds())}"


def client_error(operation: str, code: str = "InternalError") -> ClientError:
    return ClientError({"Error": {"Code": code, "Message": "boom"}}, operation)


class FakeS3Client:
    """Records calls made through the subset of the boto3 S3 client we use."""

    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.uploads: list[dict[str, Any]] = []
        self.presign_calls: list[dict[str, Any]] = []

    def upload_fileobj(self, fileobj, bucket, key, ExtraArgs=None):  # noqa: N803
        if self.error is not None:
            raise self.error
        self.uploads.append(
            {"bucket": bucket, "key": key, "body": fileobj.read(), "extra": ExtraArgs}
        )

    def generate_presigned_url(self, client_method, Params=None, ExpiresIn=3600):  # noqa: N803
        if self.error is not None:
            raise self.error
        self.presign_calls.append(
            {"method": client_method, "params": Params, "expires_in": ExpiresIn}
        )
        return f"https://{Params['Bucket']}.s3.test/{Params['Key']}?X-Amz-Expires={ExpiresIn}"

"""Filesystem implementation of the ObjectStore interface.

Objects live under ``<assets root>/<container>/<key>``. Read URLs point at the
``/assets`` route and carry an HMAC-SHA256 signature over container, key and
expiry, so the local backend hands out the same kind of time-limited links as
S3 presigned GETs.
"""

from __future__ import annotations

import base64
import hmac
import logging
import os
import shutil
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from hashlib import sha256
from pathlib import Path
from typing import BinaryIO
from urllib.parse import quote, urlencode

from .object_store import ObjectStoreConfigError, ObjectStoreError

CHUNK_SIZE = 1 * 1024 * 1024  # 1 MiB


def _b64encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).rstrip(b"=").decode("ascii")


def requires_signature(key: str) -> bool:
    """Partitioned keys hold videos and are only readable through signed URLs."""
    return "/" in key


@dataclass(slots=True)
class LocalObjectStore:
    """Store objects on local disk and sign read URLs with a shared secret."""

    root: Path
    container: str
    public_base_url: str
    signing_credential: str
    chunk_size: int = CHUNK_SIZE
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def __post_init__(self) -> None:
        if not self.signing_credential:
            raise ObjectStoreConfigError("SIGNING_CREDENTIAL is not configured")

    def object_path(self, container: str, key: str) -> Path:
        base = (self.root / container).resolve()
        target = (base / key).resolve()
        if not key or not target.is_relative_to(base) or target == base:
            raise ObjectStoreError(f"Invalid object key '{key}'")
        return target

    def put(self, container: str, key: str, content_type: str, stream: BinaryIO) -> None:
        target = self.object_path(container, key)
        tmp_name: str | None = None
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                mode="wb", dir=target.parent, prefix=".upload-", delete=False
            ) as sink:
                tmp_name = sink.name
                shutil.copyfileobj(stream, sink, self.chunk_size)
            os.replace(tmp_name, target)
        except OSError as exc:
            if tmp_name is not None:
                Path(tmp_name).unlink(missing_ok=True)
            self.log.error(
                "storage.local.put_failed",
                extra={"container": container, "key": key, "error": str(exc)},
            )
            raise ObjectStoreError(f"Failed to store object '{key}'") from exc
        self.log.info(
            "storage.local.put",
            extra={"container": container, "key": key, "content_type": content_type},
        )

    def presign_get(
        self,
        container: str,
        key: str,
        ttl: timedelta,
        *,
        now: datetime | None = None,
    ) -> str:
        if ttl.total_seconds() <= 0:
            raise ObjectStoreConfigError("Signed URL expiration must be greater than zero")
        issued = now or datetime.now(tz=timezone.utc)
        expires = int((issued + ttl).timestamp())
        query: dict[str, str | int] = {"expires": expires}
        if container != self.container:
            query["container"] = container
        query["signature"] = self.sign(container, key, expires)
        return f"{self.public_base_url.rstrip('/')}/{quote(key)}?{urlencode(query)}"

    def sign(self, container: str, key: str, expires: int) -> str:
        message = f"{container}\n{key}\n{expires}".encode("utf-8")
        digest = hmac.new(self.signing_credential.encode("utf-8"), message, sha256).digest()
        return _b64encode(digest)

    def verify(
        self,
        container: str,
        key: str,
        expires: int,
        signature: str,
        *,
        now: datetime | None = None,
    ) -> bool:
        current = now or datetime.now(tz=timezone.utc)
        if expires < int(current.timestamp()):
            return False
        return hmac.compare_digest(signature, self.sign(container, key, expires))

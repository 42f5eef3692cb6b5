"""Persisted storage references and their resolution to signed URLs."""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass, field
from datetime import timedelta
from urllib.parse import quote, urljoin

from ..pipeline.pipeline_errors import SigningError
from ..videos.video_models import Video
from .object_store import ObjectStore, ObjectStoreError

# Absent from bucket names and from generated keys (URL-safe base64, "/", ".").
REFERENCE_DELIMITER = ","
DEFAULT_PRESIGN_TTL = timedelta(minutes=5)


class ReferenceDecodeError(ValueError):
    """Raised when a persisted value is not an encoded storage reference."""


@dataclass(frozen=True, slots=True)
class StorageReference:
    container: str
    key: str

    def encode(self) -> str:
        return encode_reference(self.container, self.key)


def encode_reference(container: str, key: str) -> str:
    for name, value in (("container", container), ("key", key)):
        if not value:
            raise ValueError(f"{name} must not be empty")
        if REFERENCE_DELIMITER in value:
            raise ValueError(f"{name} must not contain {REFERENCE_DELIMITER!r}")
    return f"{container}{REFERENCE_DELIMITER}{key}"


def decode_reference(value: str) -> StorageReference:
    parts = value.split(REFERENCE_DELIMITER)
    if len(parts) != 2 or not all(parts):
        raise ReferenceDecodeError(f"not a storage reference: {value!r}")
    return StorageReference(container=parts[0], key=parts[1])


def build_public_url(base_url: str, key: str) -> str:
    base = base_url.rstrip("/") + "/"
    return urljoin(base, quote(key))


@dataclass(slots=True)
class ReferenceResolver:
    """Expand persisted references into fresh, time-limited read URLs.

    Values that do not decode (plain URLs written by older code) are returned
    unchanged. Nothing is cached: every read signs again.
    """

    store: ObjectStore
    default_ttl: timedelta = DEFAULT_PRESIGN_TTL
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    def resolve(self, value: str, ttl: timedelta | None = None) -> str:
        try:
            reference = decode_reference(value)
        except ReferenceDecodeError:
            self.log.debug("storage.reference.legacy", extra={"value": value})
            return value

        try:
            return self.store.presign_get(
                reference.container,
                reference.key,
                ttl if ttl is not None else self.default_ttl,
            )
        except ObjectStoreError as exc:
            self.log.error(
                "storage.reference.sign_failed",
                extra={"container": reference.container, "key": reference.key},
                exc_info=exc,
            )
            raise SigningError(str(exc)) from exc

    def sign_record(self, video: Video, ttl: timedelta | None = None) -> Video:
        """Return a copy of ``video`` whose video reference is a signed URL."""
        if not video.video_url:
            return video
        return dataclasses.replace(video, video_url=self.resolve(video.video_url, ttl))

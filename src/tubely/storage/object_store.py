"""Object store interface shared by the S3 and local backends."""

from __future__ import annotations

from datetime import timedelta
from typing import BinaryIO, Protocol


class ObjectStoreError(RuntimeError):
    """Base exception for object storage failures."""


class ObjectStoreConfigError(ObjectStoreError):
    """Raised when object storage configuration is missing or invalid."""


class ObjectStore(Protocol):
    """Storage interface used by the publisher and the reference resolver."""

    def put(self, container: str, key: str, content_type: str, stream: BinaryIO) -> None:
        """Store the whole of ``stream`` under ``key``; partial objects never remain."""

    def presign_get(self, container: str, key: str, ttl: timedelta) -> str:
        """Return a read URL for ``key`` that stops working after ``ttl``."""

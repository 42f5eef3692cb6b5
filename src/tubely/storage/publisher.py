"""Publishing of finished media to the object store."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import BinaryIO

from ..pipeline.pipeline_errors import PublishError
from .object_store import ObjectStore, ObjectStoreError


@dataclass(frozen=True, slots=True)
class PublishAck:
    """Acknowledgement that an object exists complete under ``key``."""

    container: str
    key: str
    content_type: str


@dataclass(slots=True)
class ObjectPublisher:
    """Stream bytes to the configured container without buffering them in memory."""

    store: ObjectStore
    container: str
    log: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))

    async def publish(self, stream: BinaryIO, key: str, content_type: str) -> PublishAck:
        try:
            await asyncio.to_thread(self.store.put, self.container, key, content_type, stream)
        except (ObjectStoreError, OSError) as exc:
            self.log.error(
                "storage.publish.failed",
                extra={"container": self.container, "key": key, "error": str(exc)},
            )
            raise PublishError(str(exc)) from exc

        self.log.info(
            "storage.publish.done",
            extra={"container": self.container, "key": key, "content_type": content_type},
        )
        return PublishAck(container=self.container, key=key, content_type=content_type)

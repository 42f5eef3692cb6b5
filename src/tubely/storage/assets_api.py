"""Serves objects written by the local object store."""

from __future__ import annotations

import logging
import mimetypes

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from fastapi.responses import FileResponse

from .local_store import LocalObjectStore, requires_signature
from .object_store import ObjectStoreError

router = APIRouter(prefix="/assets", tags=["assets"])
logger = logging.getLogger(__name__)


def get_local_store(request: Request) -> LocalObjectStore:
    store = getattr(request.app.state, "local_object_store", None)
    if store is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND)
    return store


def _error(status_code: int, failure_reason: str) -> HTTPException:
    return HTTPException(
        status_code=status_code,
        detail={"status": "error", "failure_reason": failure_reason},
    )


@router.get("/{key:path}")
def serve_asset(
    key: str,
    expires: int | None = Query(None),
    signature: str | None = Query(None),
    container: str | None = Query(None),
    store: LocalObjectStore = Depends(get_local_store),
) -> FileResponse:
    target_container = container or store.container
    signed = expires is not None or signature is not None
    if signed:
        if expires is None or signature is None or not store.verify(
            target_container, key, expires, signature
        ):
            logger.info("assets.signature.rejected", extra={"key": key})
            raise _error(status.HTTP_403_FORBIDDEN, "invalid_signature")
    elif container is not None or requires_signature(key):
        raise _error(status.HTTP_403_FORBIDDEN, "signature_required")

    try:
        path = store.object_path(target_container, key)
    except ObjectStoreError:
        raise _error(status.HTTP_404_NOT_FOUND, "asset_not_found") from None
    if not path.is_file():
        raise _error(status.HTTP_404_NOT_FOUND, "asset_not_found")

    media_type = mimetypes.guess_type(path.name)[0] or "application/octet-stream"
    return FileResponse(path=path, media_type=media_type)

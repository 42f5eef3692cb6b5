from __future__ import annotations

import io
from datetime import datetime, timedelta, timezone

from fastapi import status

from tests.conftest import TEST_CONTAINER


def _local_store(client):
    return client.app.state.local_object_store  # type: ignore[attr-defined]


def test_flat_key_is_public(client):
    _local_store(client).put(TEST_CONTAINER, "thumb.png", "image/png", io.BytesIO(b"png"))

    response = client.get("/assets/thumb.png")

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"png"
    assert response.headers["content-type"] == "image/png"


def test_partitioned_key_needs_signature(client):
    _local_store(client).put(TEST_CONTAINER, "landscape/k.mp4", "video/mp4", io.BytesIO(b"mp4"))

    response = client.get("/assets/landscape/k.mp4")

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"]["failure_reason"] == "signature_required"


def test_signed_url_serves_object(client):
    store = _local_store(client)
    store.put(TEST_CONTAINER, "portrait/k.mp4", "video/mp4", io.BytesIO(b"mp4-bytes"))
    url = store.presign_get(TEST_CONTAINER, "portrait/k.mp4", timedelta(minutes=5))

    response = client.get(url)

    assert response.status_code == status.HTTP_200_OK
    assert response.content == b"mp4-bytes"
    assert response.headers["content-type"] == "video/mp4"


def test_expired_signature_is_forbidden(client):
    store = _local_store(client)
    store.put(TEST_CONTAINER, "portrait/k.mp4", "video/mp4", io.BytesIO(b"mp4-bytes"))
    issued = datetime.now(tz=timezone.utc) - timedelta(hours=1)
    url = store.presign_get(TEST_CONTAINER, "portrait/k.mp4", timedelta(minutes=5), now=issued)

    response = client.get(url)

    assert response.status_code == status.HTTP_403_FORBIDDEN
    assert response.json()["detail"]["failure_reason"] == "invalid_signature"


def test_signature_for_other_key_is_forbidden(client):
    store = _local_store(client)
    store.put(TEST_CONTAINER, "portrait/a.mp4", "video/mp4", io.BytesIO(b"a"))
    store.put(TEST_CONTAINER, "portrait/b.mp4", "video/mp4", io.BytesIO(b"b"))
    url = store.presign_get(TEST_CONTAINER, "portrait/a.mp4", timedelta(minutes=5))

    response = client.get(url.replace("portrait/a.mp4", "portrait/b.mp4"))

    assert response.status_code == status.HTTP_403_FORBIDDEN


def test_missing_object_is_not_found(client):
    response = client.get("/assets/missing.png")

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["detail"]["failure_reason"] == "asset_not_found"

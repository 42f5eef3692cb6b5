"""Storage key generation for uploaded assets."""

from __future__ import annotations

import base64
import secrets

KEY_BYTES = 32
FALLBACK_EXTENSION = ".bin"


def media_type_to_extension(media_type: str) -> str:
    """Map ``type/subtype`` to ``.subtype``; anything else maps to ``.bin``."""
    parts = media_type.split("/")
    if len(parts) != 2:
        return FALLBACK_EXTENSION
    return "." + parts[1]


def generate_key(media_type: str) -> str:
    """Return a random URL-safe key with an extension derived from ``media_type``."""
    raw = secrets.token_bytes(KEY_BYTES)
    filename = base64.urlsafe_b64encode(raw).rstrip(b"=").decode("ascii")
    return f"{filename}{media_type_to_extension(media_type)}"


def partitioned_key(prefix: str, key: str) -> str:
    return f"{prefix}/{key}"

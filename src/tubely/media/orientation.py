"""Aspect ratio classification used as the storage partition for videos."""

from __future__ import annotations

from enum import StrEnum

DEFAULT_TOLERANCE = 0.01
SIXTEEN_NINE = 16.0 / 9.0
NINE_SIXTEEN = 9.0 / 16.0


class Orientation(StrEnum):
    LANDSCAPE = "landscape"
    PORTRAIT = "portrait"
    OTHER = "other"


def classify(width: int, height: int, tolerance: float = DEFAULT_TOLERANCE) -> Orientation:
    """Bucket ``width``/``height`` into landscape (16:9), portrait (9:16) or other.

    Matching is inclusive: a ratio exactly ``tolerance`` away still matches.
    """
    if width <= 0 or height <= 0:
        raise ValueError(f"dimensions must be positive, got {width}x{height}")

    ratio = float(width) / float(height)
    if abs(ratio - SIXTEEN_NINE) <= tolerance:
        return Orientation.LANDSCAPE
    if abs(ratio - NINE_SIXTEEN) <= tolerance:
        return Orientation.PORTRAIT
    return Orientation.OTHER

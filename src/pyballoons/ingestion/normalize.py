"""Normalization of upstream balloon payloads.

The feed has no fixed schema. Observed layouts:

- bare or ``{"data": ...}``-enveloped,
- a flat list of ``[a, b, attribute?]`` points,
- a list of tracks, each an ordered list of such points (latest last).

Payloads are first classified into a :class:`PayloadShape`, then each
shape is handled explicitly. Individual bad points are dropped; only an
unclassifiable payload is an error.
"""

from __future__ import annotations

import json
import logging
import math
from enum import StrEnum
from typing import Any, NamedTuple

from pyballoons._constants import PREVIEW_CHARS
from pyballoons.exceptions import MalformedPointError, UnrecognizedShapeError
from pyballoons.models.points import CanonicalPoint

_logger = logging.getLogger(__name__)


class PayloadShape(StrEnum):
    EMPTY = "empty"
    FLAT_POINTS = "flat_points"
    TRACKS = "tracks"
    UNRECOGNIZED = "unrecognized"


class ClassifiedPayload(NamedTuple):
    shape: PayloadShape
    items: Any


def is_finite_number(value: Any) -> bool:
    # bool is an int subclass but never a coordinate.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    try:
        return math.isfinite(value)
    except OverflowError:
        # int too large for a float
        return False


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _looks_like_point(value: Any) -> bool:
    return _is_sequence(value) and len(value) >= 2 and is_finite_number(value[0]) and is_finite_number(value[1])


def unwrap_payload(raw: Any) -> Any:
    """Return ``raw["data"]`` for enveloped payloads, ``raw`` otherwise."""
    if isinstance(raw, dict) and "data" in raw:
        return raw["data"]
    return raw


def classify_payload(raw: Any) -> ClassifiedPayload:
    """Detect the layout of an upstream payload.

    Checks run in a fixed order: empty list, flat point list, track list.
    Detection is structural and only inspects the first element.
    """
    data = unwrap_payload(raw)

    if not _is_sequence(data):
        return ClassifiedPayload(PayloadShape.UNRECOGNIZED, data)
    if len(data) == 0:
        return ClassifiedPayload(PayloadShape.EMPTY, data)

    first = data[0]
    if _looks_like_point(first):
        return ClassifiedPayload(PayloadShape.FLAT_POINTS, data)
    if _is_sequence(first) and len(first) > 0 and _looks_like_point(first[0]):
        return ClassifiedPayload(PayloadShape.TRACKS, data)
    return ClassifiedPayload(PayloadShape.UNRECOGNIZED, data)


def payload_preview(data: Any, limit: int = PREVIEW_CHARS) -> str:
    """Bounded JSON excerpt of ``data`` for error messages."""
    try:
        text = json.dumps(data, separators=(",", ":"))
    except (TypeError, ValueError):
        text = repr(data)
    return text[:limit]


def parse_point(candidate: Any) -> CanonicalPoint:
    """Interpret ``[a, b, attribute?]`` as a canonical point.

    Axis order is guessed: when ``|a| > 90`` and ``|b| <= 90`` the pair is
    read as ``[lon, lat]``, otherwise as ``[lat, lon]``. A third element is
    kept as the attribute only if it is a finite number.

    Raises
    ------
    MalformedPointError
        Not a sequence of two finite numbers, or out of range after the
        axis-order decision.
    """
    if not _is_sequence(candidate) or len(candidate) < 2:
        raise MalformedPointError(f"Not a coordinate pair: {payload_preview(candidate, 64)}")

    a, b = candidate[0], candidate[1]
    if not is_finite_number(a) or not is_finite_number(b):
        raise MalformedPointError(f"Non-numeric coordinates: {payload_preview(candidate, 64)}")

    looks_like_lon_lat = abs(a) > 90 and abs(b) <= 90
    lat, lon = (b, a) if looks_like_lon_lat else (a, b)

    if abs(lat) > 90 or abs(lon) > 180:
        raise MalformedPointError(f"Coordinates out of range: lat={lat}, lon={lon}")

    attribute = candidate[2] if len(candidate) > 2 and is_finite_number(candidate[2]) else None
    return CanonicalPoint(lat=float(lat), lon=float(lon), attribute=None if attribute is None else float(attribute))


def normalize_point(candidate: Any) -> CanonicalPoint | None:
    """Lenient :func:`parse_point`: malformed candidates become ``None``."""
    try:
        return parse_point(candidate)
    except MalformedPointError:
        return None


def _latest_of_track(track: Any) -> Any:
    if _is_sequence(track) and len(track) > 0:
        return track[-1]
    return None


def extract_points(raw: Any) -> list[CanonicalPoint]:
    """Normalize an upstream payload into an ordered point list.

    Output order follows input order (track order for track lists).
    Malformed entries are omitted, so the result is never longer than the
    input list.

    Raises
    ------
    UnrecognizedShapeError
        The payload is neither empty, a flat point list nor a track list.
    """
    classified = classify_payload(raw)

    if classified.shape == PayloadShape.EMPTY:
        return []
    if classified.shape == PayloadShape.FLAT_POINTS:
        candidates = list(classified.items)
    elif classified.shape == PayloadShape.TRACKS:
        candidates = [_latest_of_track(track) for track in classified.items]
    elif classified.shape == PayloadShape.UNRECOGNIZED:
        preview = payload_preview(classified.items)
        raise UnrecognizedShapeError(f"Unexpected balloon data shape. Preview: {preview}", preview=preview)
    else:  # pragma: no cover
        raise AssertionError(f"Unhandled payload shape: {classified.shape}")

    points: list[CanonicalPoint] = []
    for candidate in candidates:
        point = normalize_point(candidate)
        if point is not None:
            points.append(point)

    dropped = len(candidates) - len(points)
    if dropped:
        _logger.debug("Dropped %d malformed point(s) of %d (%s)", dropped, len(candidates), classified.shape)
    return points

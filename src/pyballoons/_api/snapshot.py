"""Hour-bucketed snapshot retrieval with last-known-good fallback.

Buckets are tried freshest-first, one request each, sequentially: an older
bucket is only needed when every newer one failed.
"""

from __future__ import annotations

import logging
import math
from typing import Any

from pyballoons._cache import LastKnownGoodCache
from pyballoons._constants import MAX_HOURS_AGO, MIN_HOURS_AGO
from pyballoons._transport import Transport
from pyballoons.config import BalloonConfig
from pyballoons.exceptions import BalloonTransportError, NoDataAvailableError
from pyballoons.models.snapshot import RawSnapshot, SnapshotSource

_logger = logging.getLogger(__name__)


def clamp_hours_ago(value: Any) -> int:
    """Coerce a requested bucket age into ``[0, 23]``.

    Numbers and numeric strings are floored then clamped. Anything that
    does not parse to a finite number maps to ``0``.
    """
    if isinstance(value, bool):
        return MIN_HOURS_AGO
    try:
        parsed = float(value)
    except (TypeError, ValueError):
        return MIN_HOURS_AGO
    if not math.isfinite(parsed):
        return MIN_HOURS_AGO
    return max(MIN_HOURS_AGO, min(MAX_HOURS_AGO, math.floor(parsed)))


def candidate_buckets(requested_hours_ago: Any) -> list[int]:
    """Bucket ages to try, in order: requested, requested+1, ..., 23."""
    start = clamp_hours_ago(requested_hours_ago)
    return list(range(start, MAX_HOURS_AGO + 1))


async def fetch_snapshot(
    config: BalloonConfig,
    transport: Transport,
    cache: LastKnownGoodCache,
    requested_hours_ago: Any = 0,
) -> RawSnapshot:
    """Return the freshest obtainable snapshot.

    Raises
    ------
    NoDataAvailableError
        Every bucket failed and ``cache`` is empty. ``last_error`` holds the
        transport error of the final attempt.
    """
    last_error: BalloonTransportError | None = None

    for hours_ago in candidate_buckets(requested_hours_ago):
        url = config.bucket_url(hours_ago)
        try:
            data = await transport.get_json(url)
        except BalloonTransportError as exc:
            _logger.debug("Bucket %02d failed: %s", hours_ago, exc)
            last_error = exc
            continue

        cache.store(hours_ago, data)
        _logger.debug("Bucket %02d fetched", hours_ago)
        return RawSnapshot(data=data, hours_ago=hours_ago, source=SnapshotSource.UPSTREAM)

    entry = cache.get()
    if entry is not None:
        age = cache.age_seconds()
        _logger.warning(
            "All upstream buckets failed; serving cached bucket %02d (%ss old)",
            entry.hours_ago,
            age,
        )
        return RawSnapshot(
            data=entry.data,
            hours_ago=entry.hours_ago,
            source=SnapshotSource.CACHE,
            cache_age_seconds=age,
        )

    _logger.warning("All upstream buckets failed and no cached snapshot exists")
    detail = str(last_error) if last_error is not None else "no buckets attempted"
    raise NoDataAvailableError(
        f"No upstream data available and no cached fallback present: {detail}",
        last_error=last_error,
    )

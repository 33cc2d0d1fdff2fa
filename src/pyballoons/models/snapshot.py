"""Raw snapshot model produced by the snapshot fetcher."""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import Field, model_validator

from pyballoons._constants import MAX_HOURS_AGO, MIN_HOURS_AGO
from pyballoons.models._base import BalloonBaseModel


class SnapshotSource(StrEnum):
    UPSTREAM = "upstream"
    CACHE = "cache"


class RawSnapshot(BalloonBaseModel):
    """An upstream payload that has not been normalized yet.

    Parameters
    ----------
    data : Any
        Decoded JSON exactly as received (or as cached).
    hours_ago : int
        Age of the hour bucket the payload came from (0-23).
    source : SnapshotSource
        ``upstream`` for a live fetch, ``cache`` for the last-known-good fallback.
    cache_age_seconds : int or None
        Whole seconds since the cached payload was fetched. Set only for
        ``source=cache``.
    """

    data: Any = None
    hours_ago: int = Field(ge=MIN_HOURS_AGO, le=MAX_HOURS_AGO)
    source: SnapshotSource
    cache_age_seconds: int | None = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _cache_age_only_for_cache(self) -> RawSnapshot:
        if self.source == SnapshotSource.UPSTREAM and self.cache_age_seconds is not None:
            raise ValueError("cache_age_seconds is only valid for cached snapshots")
        if self.source == SnapshotSource.CACHE and self.cache_age_seconds is None:
            raise ValueError("cached snapshots must carry cache_age_seconds")
        return self

"""Single-slot last-known-good cache for upstream snapshots."""

from __future__ import annotations

import copy
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class CacheEntry:
    """The most recent successful upstream payload."""

    timestamp: float
    hours_ago: int
    data: Any


class LastKnownGoodCache:
    """Hold exactly one snapshot: the last one fetched successfully upstream.

    Only a successful upstream fetch writes the slot; serving from it never
    refreshes it. Writers are serialised by the poller's in-flight guard, so
    no locking is done here.
    """

    def __init__(self, *, clock: Callable[[], float] = time.time) -> None:
        self._clock = clock
        self._entry: CacheEntry | None = None

    @property
    def is_empty(self) -> bool:
        return self._entry is None

    def store(self, hours_ago: int, data: Any) -> CacheEntry:
        """Overwrite the slot with a fresh upstream payload."""
        self._entry = CacheEntry(timestamp=self._clock(), hours_ago=hours_ago, data=copy.deepcopy(data))
        return self._entry

    def get(self) -> CacheEntry | None:
        return self._entry

    def age_seconds(self) -> int | None:
        """Whole seconds since the slot was written, or ``None`` when empty."""
        if self._entry is None:
            return None
        return max(0, int(round(self._clock() - self._entry.timestamp)))

    def reset(self) -> None:
        self._entry = None

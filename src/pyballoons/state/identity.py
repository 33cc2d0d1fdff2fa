"""Stable balloon identifiers across polls.

The upstream feed carries no identifiers, so continuity is inferred from
proximity: a point inherits the identifier of the nearest unclaimed
previous-poll point within ``match_radius_km``, otherwise it gets a new one.

Matching is greedy in input order. Earlier points claim candidates first,
so when two current points are both nearest to the same previous point the
earlier one wins and the later one is matched elsewhere or minted fresh.
This is deterministic but not a globally optimal assignment.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import NamedTuple

from pyballoons._constants import DEFAULT_BIN_DEG, DEFAULT_MATCH_RADIUS_KM, ID_PREFIX
from pyballoons.models.points import CanonicalPoint, TrackedPoint
from pyballoons.state.geo import CellKey, cell_key, haversine_km, neighbor_keys

_logger = logging.getLogger(__name__)

Position = tuple[float, float]


@dataclass(frozen=True, slots=True)
class _Candidate:
    id: str
    lat: float
    lon: float


class AssignmentStats(NamedTuple):
    matched: int
    minted: int
    retired: int


def _build_index(table: Mapping[str, Position], bin_deg: float) -> dict[CellKey, list[_Candidate]]:
    index: dict[CellKey, list[_Candidate]] = {}
    for balloon_id, (lat, lon) in table.items():
        index.setdefault(cell_key(lat, lon, bin_deg), []).append(_Candidate(balloon_id, lat, lon))
    return index


class IdentityTracker:
    """Assign identifiers to each poll's points and remember their positions.

    The identity table holds exactly the previous poll's output; it is
    replaced wholesale at the end of every :meth:`assign`. The sequence used
    to mint identifiers only grows, so an identifier is never handed out
    twice during the tracker's lifetime, even after :meth:`reset`.

    Not thread-safe: callers serialise :meth:`assign` (the poller's
    in-flight guard does).
    """

    def __init__(
        self,
        *,
        match_radius_km: float = DEFAULT_MATCH_RADIUS_KM,
        bin_deg: float = DEFAULT_BIN_DEG,
        id_prefix: str = ID_PREFIX,
    ) -> None:
        self._match_radius_km = match_radius_km
        self._bin_deg = bin_deg
        self._id_prefix = id_prefix
        self._id_pattern = re.compile(rf"^{re.escape(id_prefix)}(\d+)$")
        self._next_seq = 1
        self._table: dict[str, Position] = {}
        self.last_stats: AssignmentStats | None = None

    @property
    def match_radius_km(self) -> float:
        return self._match_radius_km

    def __len__(self) -> int:
        return len(self._table)

    def snapshot(self) -> dict[str, Position]:
        """Copy of the identity table (``id -> (lat, lon)``)."""
        return dict(self._table)

    def reset(self) -> None:
        """Forget all positions. Minted identifiers are still never reused."""
        self._table = {}
        self.last_stats = None

    def restore(self, table: Mapping[str, Position]) -> None:
        """Replace the identity table, e.g. with a persisted snapshot.

        The mint sequence is advanced past any restored identifier of the
        form ``<prefix><n>`` so new identifiers cannot collide with it.
        """
        restored: dict[str, Position] = {}
        for balloon_id, (lat, lon) in table.items():
            restored[balloon_id] = (float(lat), float(lon))
            match = self._id_pattern.match(balloon_id)
            if match:
                self._next_seq = max(self._next_seq, int(match.group(1)) + 1)
        self._table = restored

    def _mint(self) -> str:
        balloon_id = f"{self._id_prefix}{self._next_seq}"
        self._next_seq += 1
        return balloon_id

    def _nearest_unclaimed(
        self,
        point: CanonicalPoint,
        index: dict[CellKey, list[_Candidate]],
        claimed: set[str],
    ) -> tuple[str | None, float]:
        best_id: str | None = None
        best_km = float("inf")
        for key in neighbor_keys(point.lat, point.lon, self._bin_deg):
            for candidate in index.get(key, ()):
                if candidate.id in claimed:
                    continue
                km = haversine_km(point.lat, point.lon, candidate.lat, candidate.lon)
                # Strict: on equal distance the first candidate scanned keeps the claim.
                if km < best_km:
                    best_km = km
                    best_id = candidate.id
        return best_id, best_km

    def assign(self, points: Sequence[CanonicalPoint]) -> list[TrackedPoint]:
        """Attach identifiers to ``points`` (order preserved) and commit the table."""
        index = _build_index(self._table, self._bin_deg)
        claimed: set[str] = set()
        tracked: list[TrackedPoint] = []
        minted = 0

        for point in points:
            best_id, best_km = self._nearest_unclaimed(point, index, claimed)
            if best_id is not None and best_km <= self._match_radius_km:
                claimed.add(best_id)
                balloon_id = best_id
            else:
                balloon_id = self._mint()
                minted += 1
            tracked.append(TrackedPoint(id=balloon_id, lat=point.lat, lon=point.lon, attribute=point.attribute))

        retired = len(self._table) - len(claimed)
        self._table = {p.id: (p.lat, p.lon) for p in tracked}
        self.last_stats = AssignmentStats(matched=len(claimed), minted=minted, retired=retired)
        _logger.debug(
            "Identity assignment: %d matched, %d minted, %d retired",
            len(claimed),
            minted,
            retired,
        )
        return tracked

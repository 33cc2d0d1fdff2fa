from __future__ import annotations

from pyballoons.models.points import CanonicalPoint
from pyballoons.state.geo import haversine_km
from pyballoons.state.identity import AssignmentStats, IdentityTracker


def _pts(*coords: tuple[float, float]) -> list[CanonicalPoint]:
    return [CanonicalPoint(lat=lat, lon=lon) for lat, lon in coords]


def _ids(tracker: IdentityTracker, *coords: tuple[float, float]) -> list[str]:
    return [p.id for p in tracker.assign(_pts(*coords))]


def test_first_poll_mints_sequential_ids() -> None:
    tracker = IdentityTracker()

    assert _ids(tracker, (0, 0), (10, 10), (20, 20)) == ["b1", "b2", "b3"]


def test_nearby_point_keeps_previous_identifier() -> None:
    tracker = IdentityTracker()
    tracker.restore({"A": (10.0, 20.0)})

    assert _ids(tracker, (10.01, 20.01)) == ["A"]


def test_distant_point_gets_fresh_identifier() -> None:
    tracker = IdentityTracker()
    tracker.restore({"A": (10.0, 20.0)})

    ids = _ids(tracker, (60, 60))

    assert ids == ["b1"]
    assert ids[0] != "A"


def test_previous_identifier_claimed_at_most_once() -> None:
    tracker = IdentityTracker()
    tracker.restore({"A": (10.0, 20.0)})

    ids = _ids(tracker, (10.0, 20.01), (10.0, 20.02))

    assert ids[0] == "A"
    assert ids[1] != "A"
    assert len(set(ids)) == 2


def test_earlier_point_wins_tie_break_even_if_farther() -> None:
    tracker = IdentityTracker()
    tracker.restore({"A": (10.0, 20.0)})

    ids = _ids(tracker, (10.0, 20.5), (10.0, 20.01))

    assert ids == ["A", "b1"]


def test_each_point_takes_its_nearest_unclaimed_candidate() -> None:
    tracker = IdentityTracker()
    tracker.restore({"A": (0.0, 0.0), "B": (0.0, 0.5)})

    assert _ids(tracker, (0.0, 0.45), (0.0, 0.05)) == ["B", "A"]


def test_identity_stable_over_five_polls_without_drift() -> None:
    tracker = IdentityTracker()
    coords = ((45.0, -120.0), (-33.0, 151.0), (0.0, 0.0))

    first = _ids(tracker, *coords)
    for _ in range(4):
        assert _ids(tracker, *coords) == first


def test_identity_follows_small_drift_each_poll() -> None:
    tracker = IdentityTracker()
    first = _ids(tracker, (40.0, 10.0))

    for step in range(1, 6):
        assert _ids(tracker, (40.0, 10.0 + 0.8 * step)) == first


def test_threshold_distance_is_inclusive() -> None:
    radius = haversine_km(0.0, 1.3, 0.0, 0.0)

    at_threshold = IdentityTracker(match_radius_km=radius)
    at_threshold.restore({"A": (0.0, 0.0)})
    assert _ids(at_threshold, (0.0, 1.3)) == ["A"]

    just_below = IdentityTracker(match_radius_km=radius * (1 - 1e-9))
    just_below.restore({"A": (0.0, 0.0)})
    assert _ids(just_below, (0.0, 1.3)) == ["b1"]


def test_default_radius_is_150_km() -> None:
    tracker = IdentityTracker()
    tracker.restore({"near": (0.0, 0.5), "far": (30.0, 0.05)})

    # ~139 km along the equator, ~164 km along the 30th parallel; both one cell over.
    assert haversine_km(0.0, 1.75, 0.0, 0.5) < 150
    assert haversine_km(30.0, 1.75, 30.0, 0.05) > 150
    assert _ids(tracker, (0.0, 1.75), (30.0, 1.75)) == ["near", "b1"]


def test_search_is_limited_to_neighbouring_cells() -> None:
    tracker = IdentityTracker(bin_deg=0.1)
    tracker.restore({"A": (0.0, 0.0)})

    # ~56 km away, well inside the radius, but five cells over.
    assert _ids(tracker, (0.0, 0.5)) == ["b1"]


def test_table_is_replaced_with_latest_poll() -> None:
    tracker = IdentityTracker()
    tracker.restore({"A": (10.0, 20.0), "B": (-50.0, 100.0)})

    tracker.assign(_pts((10.0, 20.1), (70.0, 70.0)))

    assert tracker.snapshot() == {"A": (10.0, 20.1), "b1": (70.0, 70.0)}
    assert len(tracker) == 2
    assert tracker.last_stats == AssignmentStats(matched=1, minted=1, retired=1)


def test_identifiers_are_never_reused() -> None:
    tracker = IdentityTracker()

    assert _ids(tracker, (0, 0)) == ["b1"]
    assert _ids(tracker, (50, 50)) == ["b2"]
    # b1 dropped out one poll ago, so the same spot is a new balloon now.
    assert _ids(tracker, (0, 0)) == ["b3"]


def test_reset_clears_table_but_not_sequence() -> None:
    tracker = IdentityTracker()
    _ids(tracker, (0, 0), (1, 1))

    tracker.reset()

    assert tracker.snapshot() == {}
    assert _ids(tracker, (0, 0)) == ["b3"]


def test_restore_advances_sequence_past_restored_ids() -> None:
    tracker = IdentityTracker()
    tracker.restore({"b7": (0.0, 0.0), "custom": (5.0, 5.0)})

    assert _ids(tracker, (0.0, 0.0), (40.0, 40.0)) == ["b7", "b8"]


def test_output_preserves_order_and_attributes() -> None:
    tracker = IdentityTracker()
    points = [
        CanonicalPoint(lat=1.0, lon=2.0, attribute=3.5),
        CanonicalPoint(lat=-4.0, lon=5.0),
    ]

    tracked = tracker.assign(points)

    assert [(p.lat, p.lon, p.attribute) for p in tracked] == [(1.0, 2.0, 3.5), (-4.0, 5.0, None)]


def test_ids_unique_within_a_dense_poll() -> None:
    tracker = IdentityTracker()
    grid = [(lat * 0.3, lon * 0.3) for lat in range(10) for lon in range(10)]
    _ids(tracker, *grid)

    shifted = [(lat + 0.05, lon + 0.05) for lat, lon in grid] + [(0.01, 0.01), (0.02, 0.02)]
    ids = _ids(tracker, *shifted)

    assert len(ids) == len(set(ids))


def test_empty_poll_retires_everything() -> None:
    tracker = IdentityTracker()
    _ids(tracker, (0, 0))

    assert tracker.assign([]) == []
    assert tracker.snapshot() == {}

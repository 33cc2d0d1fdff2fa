from __future__ import annotations

import math

import pytest

from pyballoons.state.geo import cell_key, haversine_km, neighbor_keys


def test_haversine_zero_and_symmetry() -> None:
    assert haversine_km(12.0, 34.0, 12.0, 34.0) == 0.0
    assert haversine_km(10.0, 20.0, -5.0, 40.0) == pytest.approx(haversine_km(-5.0, 40.0, 10.0, 20.0))


def test_haversine_known_distances() -> None:
    # One degree along the equator on a 6371 km sphere.
    assert haversine_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(6371 * math.pi / 180)
    assert haversine_km(90.0, 0.0, -90.0, 0.0) == pytest.approx(6371 * math.pi)
    assert haversine_km(0.0, 0.0, 0.0, 180.0) == pytest.approx(6371 * math.pi)


def test_cell_key_counts_from_south_west() -> None:
    assert cell_key(-90.0, -180.0, 1.0) == (0, 0)
    assert cell_key(0.5, 0.5, 1.0) == (90, 180)
    assert cell_key(-0.5, -0.5, 1.0) == (89, 179)
    assert cell_key(10.0, 20.0, 5.0) == (20, 40)


def test_neighbor_keys_cover_three_by_three_block() -> None:
    keys = neighbor_keys(0.5, 0.5, 1.0)

    assert len(keys) == 9
    assert len(set(keys)) == 9
    assert keys[4] == (90, 180)
    assert set(keys) == {(r, c) for r in (89, 90, 91) for c in (179, 180, 181)}

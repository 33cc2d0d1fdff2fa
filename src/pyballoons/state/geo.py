"""Great-circle distance and the degree-grid spatial hash."""

from __future__ import annotations

import math

from pyballoons._constants import EARTH_RADIUS_KM

CellKey = tuple[int, int]


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance in kilometres on a 6371 km sphere."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    s1 = math.sin(d_phi / 2)
    s2 = math.sin(d_lambda / 2)
    q = s1 * s1 + math.cos(phi1) * math.cos(phi2) * s2 * s2
    # Rounding can push q a hair above 1 for antipodal points.
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(q)))


def cell_key(lat: float, lon: float, bin_deg: float) -> CellKey:
    """Grid cell ``(row, col)`` containing the point; rows count from the south pole."""
    return math.floor((lat + 90) / bin_deg), math.floor((lon + 180) / bin_deg)


def neighbor_keys(lat: float, lon: float, bin_deg: float) -> list[CellKey]:
    """The point's own cell and its 8 neighbours, row-major from south-west.

    Columns do not wrap at the antimeridian.
    """
    row, col = cell_key(lat, lon, bin_deg)
    return [(row + d_row, col + d_col) for d_row in (-1, 0, 1) for d_col in (-1, 0, 1)]

"""Point models: validated observations and identified balloons."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from pyballoons.models._base import BalloonBaseModel
from pyballoons.models.snapshot import SnapshotSource


class CanonicalPoint(BalloonBaseModel):
    """A validated ``(lat, lon, attribute?)`` observation.

    Construction enforces the coordinate ranges; NaN and infinities are
    rejected by the base model config.
    """

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    attribute: float | None = None


class TrackedPoint(CanonicalPoint):
    """A canonical point with the identifier assigned by the tracker."""

    id: str = Field(min_length=1)


class BalloonsPayload(BalloonBaseModel):
    """Result of one poll, as handed to renderers.

    ``to_dict()`` yields the wire structure::

        {"hoursAgo": 0, "source": "upstream", "points": [{"id": "b1", ...}]}

    with ``cacheAgeSeconds`` present only for cached snapshots.
    """

    hours_ago: int
    source: SnapshotSource
    cache_age_seconds: int | None = None
    points: list[TrackedPoint] = Field(default_factory=list)

    def to_geojson(self) -> dict[str, Any]:
        """Render the points as a GeoJSON FeatureCollection (``[lon, lat]`` order)."""
        return {
            "type": "FeatureCollection",
            "features": [
                {
                    "type": "Feature",
                    "geometry": {"type": "Point", "coordinates": [point.lon, point.lat]},
                    "properties": {"id": point.id, "attribute": point.attribute},
                }
                for point in self.points
            ],
        }

"""Local context models: upper-level wind and station-density rarity."""

from __future__ import annotations

from pydantic import Field

from pyballoons._constants import wind_bin
from pyballoons.models._base import BalloonBaseModel


class WindAloft(BalloonBaseModel):
    """250 hPa wind at the requested location.

    Parameters
    ----------
    valid_time : str
        Forecast timestep (GMT, ISO 8601 without offset) the values belong to.
    speed_ms : float
        Wind speed in m/s; the request pins ``wind_speed_unit=ms``.
    direction_deg : float or None
        Meteorological direction in degrees, ``None`` when not reported.
    speed_unit, direction_unit : str
        Units echoed back in the response's ``hourly_units``.
    """

    valid_time: str
    speed_ms: float = Field(ge=0.0)
    direction_deg: float | None = None
    speed_unit: str = "m/s"
    direction_unit: str = "°"

    @property
    def bin(self) -> str:
        return wind_bin(self.speed_ms)


class RarityCell(BalloonBaseModel):
    surface: int = 0
    upper: int = 0
    density: float = 0.0
    rarity: float = 100.0


class RarityGrid(BalloonBaseModel):
    """Precomputed station-density grid keyed by ``"latIdx,lonIdx"``."""

    res_deg: float = Field(gt=0.0)
    cells: dict[str, RarityCell] = Field(default_factory=dict)


class RarityContext(BalloonBaseModel):
    score: float
    label: str
    res_deg: float
    surface_stations_in_cell: int = 0
    upper_air_stations_in_cell: int = 0


class Coordinates(BalloonBaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)


class LocalContext(BalloonBaseModel):
    """Wind and rarity context for one clicked point."""

    requested: Coordinates
    wind: WindAloft
    rarity: RarityContext
    cache_hit: bool = False

"""Local context for a clicked point: 250 hPa wind and station rarity.

Wind comes from the Open-Meteo forecast API; rarity from a precomputed
station-density grid. Results are cached per ~1 km rounded location.
"""

from __future__ import annotations

import json
import logging
import math
import time
from collections.abc import Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from pyballoons._constants import DEFAULT_BIN_DEG, RARITY_MISSING_CELL_SCORE, rarity_label
from pyballoons._transport import Transport
from pyballoons.config import BalloonConfig
from pyballoons.exceptions import BalloonConfigError, BalloonTransportError, ContextLookupError
from pyballoons.ingestion.normalize import is_finite_number
from pyballoons.models.context import Coordinates, LocalContext, RarityContext, RarityGrid, WindAloft

_logger = logging.getLogger(__name__)

_SPEED_KEY = "wind_speed_250hPa"
_DIRECTION_KEY = "wind_direction_250hPa"


def validate_coordinates(lat: Any, lon: Any) -> tuple[float, float]:
    """Return ``(lat, lon)`` as floats or raise :class:`ValueError`."""
    try:
        lat_f = float(lat)
        lon_f = float(lon)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Missing/invalid lat/lon: {lat!r}, {lon!r}") from exc
    if not (math.isfinite(lat_f) and math.isfinite(lon_f)):
        raise ValueError(f"Missing/invalid lat/lon: {lat!r}, {lon!r}")
    if abs(lat_f) > 90 or abs(lon_f) > 180:
        raise ValueError(f"lat/lon out of range: {lat_f}, {lon_f}")
    return lat_f, lon_f


# ------------------------------------------------------------------
# Rarity grid
# ------------------------------------------------------------------


def wrap_lon(lon: float) -> float:
    """Wrap a longitude into ``[-180, 180)``."""
    return (lon + 180.0) % 360.0 - 180.0


def rarity_cell_key(lat: float, lon: float, res_deg: float) -> str:
    lat_idx = math.floor((lat + 90) / res_deg)
    lon_idx = math.floor((wrap_lon(lon) + 180) / res_deg)
    return f"{lat_idx},{lon_idx}"


def load_rarity_grid(path: str | Path) -> RarityGrid:
    """Read a station-density grid written by the offline grid builder.

    Raises
    ------
    BalloonConfigError
        The file is missing, not JSON, or not a grid.
    """
    try:
        raw = json.loads(Path(path).read_text(encoding="utf-8"))
        return RarityGrid.model_validate(raw)
    except (OSError, json.JSONDecodeError, ValidationError) as exc:
        raise BalloonConfigError(f"Cannot load rarity grid from {path}: {exc}") from exc


def lookup_rarity(grid: RarityGrid | None, lat: float, lon: float) -> RarityContext:
    """Rarity of the grid cell containing the point.

    Cells without any station are not stored in the grid and score as
    maximally rare.
    """
    if grid is None:
        grid = RarityGrid(res_deg=DEFAULT_BIN_DEG)
    cell = grid.cells.get(rarity_cell_key(lat, lon, grid.res_deg))
    score = cell.rarity if cell is not None else RARITY_MISSING_CELL_SCORE
    return RarityContext(
        score=score,
        label=rarity_label(score),
        res_deg=grid.res_deg,
        surface_stations_in_cell=cell.surface if cell is not None else 0,
        upper_air_stations_in_cell=cell.upper if cell is not None else 0,
    )


# ------------------------------------------------------------------
# Wind aloft
# ------------------------------------------------------------------


def _parse_gmt(value: str) -> datetime | None:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def _number_list(value: Any) -> list[float] | None:
    if not isinstance(value, list):
        return None
    if not all(is_finite_number(v) for v in value):
        return None
    return [float(v) for v in value]


def _reason(body: Any) -> str:
    if isinstance(body, dict) and isinstance(body.get("reason"), str):
        return body["reason"]
    return "Unknown"


def parse_wind_response(body: Any, now: datetime) -> WindAloft:
    """Pick the latest timestep not after ``now`` (else the first one)."""
    if not isinstance(body, dict):
        raise ContextLookupError("Open-Meteo invalid JSON shape")
    if body.get("error") is True:
        raise ContextLookupError("Open-Meteo failed", reason=_reason(body))

    hourly = body.get("hourly")
    if not isinstance(hourly, dict):
        raise ContextLookupError("Open-Meteo missing hourly")

    times = hourly.get("time")
    speeds = _number_list(hourly.get(_SPEED_KEY))
    if not isinstance(times, list) or not all(isinstance(t, str) for t in times) or speeds is None:
        raise ContextLookupError("Open-Meteo missing arrays")
    if not times or len(speeds) != len(times):
        raise ContextLookupError("Open-Meteo missing arrays")
    # Direction is optional; a missing or malformed array yields None.
    directions = _number_list(hourly.get(_DIRECTION_KEY)) or []

    idx = 0
    for i, stamp in enumerate(times):
        parsed = _parse_gmt(stamp)
        if parsed is not None and parsed <= now:
            idx = i

    units = body.get("hourly_units")
    units = units if isinstance(units, dict) else {}
    speed_unit = units.get(_SPEED_KEY)
    direction_unit = units.get(_DIRECTION_KEY)

    return WindAloft(
        valid_time=times[idx],
        speed_ms=speeds[idx],
        direction_deg=directions[idx] if idx < len(directions) else None,
        speed_unit=speed_unit if isinstance(speed_unit, str) else "m/s",
        direction_unit=direction_unit if isinstance(direction_unit, str) else "°",
    )


async def fetch_wind_aloft(
    config: BalloonConfig,
    transport: Transport,
    lat: float,
    lon: float,
    *,
    now: datetime | None = None,
) -> WindAloft:
    params = {
        "latitude": str(lat),
        "longitude": str(lon),
        "timezone": "GMT",
        "wind_speed_unit": "ms",
        "hourly": f"{_SPEED_KEY},{_DIRECTION_KEY}",
        "past_hours": "3",
        "forecast_hours": "3",
        "cell_selection": "nearest",
    }
    try:
        body = await transport.get_json(config.context_url, params)
    except BalloonTransportError as exc:
        raise ContextLookupError(
            f"Open-Meteo failed: {exc}",
            status_code=exc.status_code,
            reason=_reason(exc.body),
        ) from exc
    return parse_wind_response(body, now or datetime.now(UTC))


# ------------------------------------------------------------------
# Cache + composition
# ------------------------------------------------------------------


class ContextCache:
    """TTL cache of local-context results keyed by 2-decimal lat/lon."""

    def __init__(self, ttl_seconds: float, *, clock: Callable[[], float] = time.time) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, LocalContext]] = {}

    @staticmethod
    def key(lat: float, lon: float) -> str:
        return f"{lat:.2f},{lon:.2f}"

    def get(self, lat: float, lon: float) -> LocalContext | None:
        key = self.key(lat, lon)
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self._ttl:
            self._entries.pop(key, None)
            return None
        return value

    def put(self, lat: float, lon: float, value: LocalContext) -> None:
        now = self._clock()
        self.prune(now)
        self._entries[self.key(lat, lon)] = (now, value)

    def prune(self, now: float | None = None) -> int:
        """Drop expired entries and return how many were removed."""
        if now is None:
            now = self._clock()
        expired = [key for key, (stored_at, _) in self._entries.items() if now - stored_at >= self._ttl]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def __len__(self) -> int:
        return len(self._entries)

    def clear(self) -> None:
        self._entries.clear()


async def get_local_context(
    config: BalloonConfig,
    transport: Transport,
    cache: ContextCache,
    grid: RarityGrid | None,
    lat: Any,
    lon: Any,
) -> LocalContext:
    """Wind and rarity for one location, served from ``cache`` when fresh.

    Raises
    ------
    ValueError
        ``lat``/``lon`` missing, non-finite or out of range.
    ContextLookupError
        The wind lookup failed.
    """
    lat_f, lon_f = validate_coordinates(lat, lon)

    cached = cache.get(lat_f, lon_f)
    if cached is not None:
        return cached.model_copy(update={"cache_hit": True})

    wind = await fetch_wind_aloft(config, transport, lat_f, lon_f)
    value = LocalContext(
        requested=Coordinates(lat=lat_f, lon=lon_f),
        wind=wind,
        rarity=lookup_rarity(grid, lat_f, lon_f),
        cache_hit=False,
    )
    cache.put(lat_f, lon_f, value)
    _logger.debug("Context for %.2f,%.2f: wind %.1f m/s, rarity %s", lat_f, lon_f, wind.speed_ms, value.rarity.label)
    return value

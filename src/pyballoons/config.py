"""Client configuration for pyballoons."""

from __future__ import annotations

import dataclasses
import math
import os
from typing import Any

from pyballoons._constants import (
    DEFAULT_BIN_DEG,
    DEFAULT_CONTEXT_CACHE_TTL_S,
    DEFAULT_MATCH_RADIUS_KM,
    DEFAULT_POLL_INTERVAL_S,
    DEFAULT_REQUEST_TIMEOUT_S,
    OPEN_METEO_URL,
    UPSTREAM_URL_TEMPLATE,
    USER_AGENT,
)
from pyballoons.exceptions import BalloonConfigError


def _positive(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or not math.isfinite(value) or value <= 0:
        raise BalloonConfigError(f"{name} must be a positive finite number, got {value!r}")


@dataclasses.dataclass(frozen=True)
class BalloonConfig:
    """Client configuration.

    Parameters
    ----------
    url_template : str
        Upstream snapshot URL. Formatted with ``hour`` (0-23), so it must
        contain a ``{hour...}`` placeholder, e.g. ``.../{hour:02d}.json``.
    request_timeout : float
        Total timeout in seconds applied to every HTTP request.
    poll_interval : float
        Seconds between scheduled polls in :class:`~pyballoons.poller.BalloonPoller`.
    match_radius_km : float
        Maximum great-circle distance for a point to inherit the identifier
        of a previous-poll point. Inclusive.
    bin_deg : float
        Cell size, in degrees, of the spatial hash used by the identity
        tracker. Keep it large enough that ``match_radius_km`` fits inside
        one ring of neighbouring cells.
    context_url : str
        Open-Meteo forecast endpoint used for the 250 hPa wind lookup.
    context_cache_ttl : float
        Seconds a local-context lookup stays cached.
    rarity_grid_path : str or None
        Path to a precomputed station-density grid (JSON). When unset,
        every location is reported as maximally rare.
    user_agent : str
        User-Agent header sent with every request.
    """

    url_template: str = UPSTREAM_URL_TEMPLATE
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT_S
    poll_interval: float = DEFAULT_POLL_INTERVAL_S
    match_radius_km: float = DEFAULT_MATCH_RADIUS_KM
    bin_deg: float = DEFAULT_BIN_DEG
    context_url: str = OPEN_METEO_URL
    context_cache_ttl: float = DEFAULT_CONTEXT_CACHE_TTL_S
    rarity_grid_path: str | None = None
    user_agent: str = USER_AGENT

    def __post_init__(self) -> None:
        if "{hour" not in self.url_template:
            raise BalloonConfigError("url_template must contain an '{hour}' placeholder")
        _positive("request_timeout", self.request_timeout)
        _positive("poll_interval", self.poll_interval)
        _positive("match_radius_km", self.match_radius_km)
        _positive("bin_deg", self.bin_deg)
        _positive("context_cache_ttl", self.context_cache_ttl)

    def bucket_url(self, hours_ago: int) -> str:
        """Return the upstream URL for one hour bucket."""
        return self.url_template.format(hour=hours_ago)

    @classmethod
    def from_env(cls, **overrides: Any) -> BalloonConfig:
        """Create configuration from ``BALLOONS_*`` environment variables.

        Explicit keyword arguments override environment values.

        Raises
        ------
        BalloonConfigError
            If a numeric variable cannot be parsed or a value is invalid.
        """
        env = os.environ

        _ENV_STR_MAP = {
            "BALLOONS_URL_TEMPLATE": "url_template",
            "BALLOONS_CONTEXT_URL": "context_url",
            "BALLOONS_RARITY_GRID_PATH": "rarity_grid_path",
            "BALLOONS_USER_AGENT": "user_agent",
        }
        _ENV_FLOAT_MAP = {
            "BALLOONS_REQUEST_TIMEOUT": "request_timeout",
            "BALLOONS_POLL_INTERVAL": "poll_interval",
            "BALLOONS_MATCH_RADIUS_KM": "match_radius_km",
            "BALLOONS_BIN_DEG": "bin_deg",
            "BALLOONS_CONTEXT_CACHE_TTL": "context_cache_ttl",
        }

        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None and field_name not in overrides:
                config_kwargs[field_name] = val

        for env_key, field_name in _ENV_FLOAT_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(val)
            except ValueError as exc:
                raise BalloonConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

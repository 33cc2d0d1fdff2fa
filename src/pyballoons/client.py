"""High-level async client: snapshot fetch, normalization, identity tracking."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyballoons._api import context as _context_api
from pyballoons._api import snapshot as _snapshot_api
from pyballoons._cache import LastKnownGoodCache
from pyballoons._transport import HttpTransport, Transport
from pyballoons.config import BalloonConfig
from pyballoons.exceptions import BalloonError
from pyballoons.ingestion.normalize import extract_points
from pyballoons.models.context import LocalContext, RarityGrid
from pyballoons.models.points import BalloonsPayload
from pyballoons.models.snapshot import RawSnapshot
from pyballoons.state.identity import IdentityTracker

_logger = logging.getLogger(__name__)


class BalloonClient:
    """Async client for the balloon feed.

    Usage::

        async with BalloonClient(BalloonConfig()) as client:
            payload = await client.get_balloons()
            for point in payload.points:
                print(point.id, point.lat, point.lon)

    The client owns the two pieces of cross-poll state, the last-known-good
    cache and the identity tracker. Calls to :meth:`get_balloons` must not
    overlap; :class:`~pyballoons.poller.BalloonPoller` guarantees that.
    """

    def __init__(
        self,
        config: BalloonConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
        cache: LastKnownGoodCache | None = None,
        tracker: IdentityTracker | None = None,
    ) -> None:
        self._config = config or BalloonConfig()
        self._external_session = session is not None
        self._http_session = session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._cache = cache or LastKnownGoodCache()
        self._tracker = tracker or IdentityTracker(
            match_radius_km=self._config.match_radius_km,
            bin_deg=self._config.bin_deg,
        )
        self._context_cache = _context_api.ContextCache(self._config.context_cache_ttl)
        self._rarity_grid: RarityGrid | None = None
        self._rarity_grid_loaded = False

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BalloonClient:
        if not self._external_transport:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = HttpTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise BalloonError("Client not initialized. Use 'async with BalloonClient(...) as client:'")
        return self._transport

    def _grid(self) -> RarityGrid | None:
        if not self._rarity_grid_loaded:
            if self._config.rarity_grid_path:
                self._rarity_grid = _context_api.load_rarity_grid(self._config.rarity_grid_path)
            self._rarity_grid_loaded = True
        return self._rarity_grid

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def config(self) -> BalloonConfig:
        return self._config

    @property
    def cache(self) -> LastKnownGoodCache:
        return self._cache

    @property
    def tracker(self) -> IdentityTracker:
        return self._tracker

    def reset(self) -> None:
        """Drop the last-known-good snapshot, identity table and context cache."""
        self._cache.reset()
        self._tracker.reset()
        self._context_cache.clear()

    # ------------------------------------------------------------------
    # Pipeline
    # ------------------------------------------------------------------

    async def fetch_snapshot(self, hours_ago: Any = 0) -> RawSnapshot:
        """Fetch the freshest raw snapshot at or older than ``hours_ago``."""
        return await _snapshot_api.fetch_snapshot(self._config, self._require_transport(), self._cache, hours_ago)

    async def get_balloons(self, hours_ago: Any = 0) -> BalloonsPayload:
        """Run one poll: fetch, normalize, and assign stable identifiers.

        Raises
        ------
        NoDataAvailableError
            Upstream is down and nothing has been cached yet.
        UnrecognizedShapeError
            The payload layout is unknown. The identity table is untouched.
        """
        snapshot = await self.fetch_snapshot(hours_ago)
        points = extract_points(snapshot.data)
        tracked = self._tracker.assign(points)

        _logger.debug(
            "Poll: bucket %02d from %s, %d point(s)",
            snapshot.hours_ago,
            snapshot.source,
            len(tracked),
        )
        return BalloonsPayload(
            hours_ago=snapshot.hours_ago,
            source=snapshot.source,
            cache_age_seconds=snapshot.cache_age_seconds,
            points=tracked,
        )

    async def get_context(self, lat: Any, lon: Any) -> LocalContext:
        """Wind aloft and station rarity for one location."""
        return await _context_api.get_local_context(
            self._config,
            self._require_transport(),
            self._context_cache,
            self._grid(),
            lat,
            lon,
        )

"""Fixed-interval polling loop with overlap prevention.

One poll runs immediately on :meth:`BalloonPoller.start`, then one per
``interval`` seconds on a fixed cadence. A tick that fires while the
previous poll is still running is skipped, not queued.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable
from typing import Any

from pyballoons.client import BalloonClient
from pyballoons.exceptions import BalloonError
from pyballoons.models.points import BalloonsPayload

_logger = logging.getLogger(__name__)


class BalloonPoller:
    """Drive :meth:`BalloonClient.get_balloons` on a schedule.

    Parameters
    ----------
    client : BalloonClient
        An entered client.
    interval : float or None
        Seconds between ticks; defaults to ``client.config.poll_interval``.
    hours_ago : int
        Bucket age requested on every poll.
    on_update : callable or None
        Called with each successful :class:`BalloonsPayload`.
    on_error : callable or None
        Called with the :class:`BalloonError` of each failed poll.
    """

    def __init__(
        self,
        client: BalloonClient,
        *,
        interval: float | None = None,
        hours_ago: Any = 0,
        on_update: Callable[[BalloonsPayload], None] | None = None,
        on_error: Callable[[BalloonError], None] | None = None,
    ) -> None:
        self._client = client
        self._interval = interval if interval is not None else client.config.poll_interval
        if self._interval <= 0:
            raise ValueError(f"interval must be positive, got {self._interval}")
        self._hours_ago = hours_ago
        self._on_update = on_update
        self._on_error = on_error
        self._in_flight = False
        self._scheduler: asyncio.Task[None] | None = None
        self._polls: set[asyncio.Task[Any]] = set()
        self.last_payload: BalloonsPayload | None = None
        self.last_error: BalloonError | None = None
        self.skipped = 0

    @property
    def in_flight(self) -> bool:
        return self._in_flight

    @property
    def running(self) -> bool:
        return self._scheduler is not None and not self._scheduler.done()

    async def poll_once(self) -> BalloonsPayload | None:
        """Run one poll unless another is in flight.

        Returns the payload, or ``None`` when the poll was skipped or failed.
        Failures are reported through ``on_error`` and never raised.
        """
        if self._in_flight:
            self.skipped += 1
            _logger.debug("Poll skipped: previous poll still in flight")
            return None

        self._in_flight = True
        try:
            payload = await self._client.get_balloons(self._hours_ago)
        except BalloonError as exc:
            self.last_error = exc
            _logger.warning("Poll failed: %s", exc)
            _logger.debug("Poll failure details", exc_info=True)
            if self._on_error is not None:
                self._on_error(exc)
            return None
        finally:
            self._in_flight = False

        self.last_payload = payload
        self.last_error = None
        if self._on_update is not None:
            self._on_update(payload)
        return payload

    def _launch_poll(self) -> None:
        task = asyncio.get_running_loop().create_task(self.poll_once())
        self._polls.add(task)
        task.add_done_callback(self._poll_done)

    def _poll_done(self, task: asyncio.Task[Any]) -> None:
        self._polls.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            _logger.error("Unexpected error in poll", exc_info=exc)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        next_tick = loop.time()
        while True:
            self._launch_poll()
            next_tick += self._interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

    def start(self) -> None:
        """Schedule polling on the running event loop. Idempotent."""
        if self.running:
            return
        self._scheduler = asyncio.get_running_loop().create_task(self._run())

    async def stop(self, *, wait: bool = True) -> None:
        """Stop scheduling ticks.

        A poll already in flight is never cancelled; with ``wait=True`` this
        waits for it to finish.
        """
        scheduler = self._scheduler
        self._scheduler = None
        if scheduler is not None:
            scheduler.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await scheduler
        if wait and self._polls:
            await asyncio.gather(*self._polls, return_exceptions=True)

    async def __aenter__(self) -> BalloonPoller:
        self.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()

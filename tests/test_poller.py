from __future__ import annotations

import asyncio
from collections.abc import Mapping
from typing import Any

import pytest

from pyballoons.client import BalloonClient
from pyballoons.config import BalloonConfig
from pyballoons.exceptions import BalloonError, BalloonTransportError, NoDataAvailableError
from pyballoons.models.points import BalloonsPayload
from pyballoons.poller import BalloonPoller


class _FakeTransport:
    def __init__(self, payload: Any = None) -> None:
        self.payload = payload
        self.calls = 0

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        self.calls += 1
        if self.payload is None:
            raise BalloonTransportError(f"HTTP 502 from {url}", status_code=502, url=url)
        return self.payload


class _BlockingTransport:
    """Holds every request until ``release`` is set."""

    def __init__(self, payload: Any) -> None:
        self.payload = payload
        self.entered = asyncio.Event()
        self.release = asyncio.Event()
        self.calls = 0

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        self.calls += 1
        self.entered.set()
        await self.release.wait()
        return self.payload


@pytest.mark.asyncio
async def test_poll_once_reports_update() -> None:
    updates: list[BalloonsPayload] = []
    client = BalloonClient(BalloonConfig(), transport=_FakeTransport([[1, 2]]))
    poller = BalloonPoller(client, on_update=updates.append)

    payload = await poller.poll_once()

    assert payload is not None
    assert updates == [payload]
    assert poller.last_payload is payload
    assert not poller.in_flight


@pytest.mark.asyncio
async def test_overlapping_poll_is_skipped_not_queued() -> None:
    transport = _BlockingTransport([[1, 2]])
    poller = BalloonPoller(BalloonClient(BalloonConfig(), transport=transport))

    first = asyncio.create_task(poller.poll_once())
    await transport.entered.wait()
    assert poller.in_flight

    assert await poller.poll_once() is None
    assert poller.skipped == 1

    transport.release.set()
    assert await first is not None
    assert transport.calls == 1
    assert not poller.in_flight


@pytest.mark.asyncio
async def test_failed_poll_goes_to_on_error() -> None:
    errors: list[BalloonError] = []
    client = BalloonClient(BalloonConfig(), transport=_FakeTransport())
    poller = BalloonPoller(client, on_error=errors.append)

    assert await poller.poll_once() is None

    assert len(errors) == 1
    assert isinstance(errors[0], NoDataAvailableError)
    assert poller.last_error is errors[0]
    assert not poller.in_flight


@pytest.mark.asyncio
async def test_start_polls_immediately() -> None:
    polled = asyncio.Event()
    client = BalloonClient(BalloonConfig(), transport=_FakeTransport([[1, 2]]))
    poller = BalloonPoller(client, interval=3600, on_update=lambda _payload: polled.set())

    poller.start()
    await asyncio.wait_for(polled.wait(), timeout=1.0)
    await poller.stop()

    assert not poller.running
    assert poller.last_payload is not None


@pytest.mark.asyncio
async def test_polls_repeat_on_interval_and_survive_errors() -> None:
    transport = _FakeTransport()
    errors: list[BalloonError] = []
    done = asyncio.Event()

    def on_error(exc: BalloonError) -> None:
        errors.append(exc)
        if len(errors) == 2:
            transport.payload = [[1, 2]]

    client = BalloonClient(BalloonConfig(), transport=transport)
    poller = BalloonPoller(client, interval=0.01, on_update=lambda _p: done.set(), on_error=on_error)

    async with poller:
        await asyncio.wait_for(done.wait(), timeout=2.0)

    assert len(errors) == 2
    assert poller.last_payload is not None


@pytest.mark.asyncio
async def test_stop_does_not_abort_in_flight_poll() -> None:
    transport = _BlockingTransport([[1, 2]])
    poller = BalloonPoller(BalloonClient(BalloonConfig(), transport=transport), interval=3600)

    poller.start()
    await asyncio.wait_for(transport.entered.wait(), timeout=1.0)
    stopping = asyncio.create_task(poller.stop())
    await asyncio.sleep(0)
    transport.release.set()
    await stopping

    assert poller.last_payload is not None
    assert [p.id for p in poller.last_payload.points] == ["b1"]


@pytest.mark.asyncio
async def test_start_is_idempotent() -> None:
    transport = _BlockingTransport([[1, 2]])
    poller = BalloonPoller(BalloonClient(BalloonConfig(), transport=transport), interval=3600)

    poller.start()
    poller.start()
    await asyncio.wait_for(transport.entered.wait(), timeout=1.0)
    transport.release.set()
    await poller.stop()

    assert transport.calls == 1


def test_interval_must_be_positive() -> None:
    client = BalloonClient(BalloonConfig(), transport=_FakeTransport())

    with pytest.raises(ValueError):
        BalloonPoller(client, interval=0)


def test_interval_defaults_to_config() -> None:
    client = BalloonClient(BalloonConfig(poll_interval=42.0), transport=_FakeTransport())

    assert BalloonPoller(client)._interval == 42.0  # type: ignore[attr-defined]

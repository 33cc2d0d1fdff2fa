"""HTTP transport for upstream snapshot and context requests."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from pyballoons.config import BalloonConfig
from pyballoons.exceptions import BalloonTransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by the endpoint modules.

    Having a protocol here makes it easy to pass test doubles while keeping
    the production implementation (`HttpTransport`) concrete.
    """

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        ...


class HttpTransport:
    """aiohttp-backed transport returning decoded JSON bodies.

    Any 2xx response with a JSON body is a success. Everything else, a
    non-2xx status, a connection error, a timeout or an undecodable body,
    raises :class:`BalloonTransportError`.
    """

    def __init__(self, config: BalloonConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    async def get_json(self, url: str, params: Mapping[str, str] | None = None) -> Any:
        headers: dict[str, str] = {
            "accept": "application/json",
            "cache-control": "no-store",
            "user-agent": self._config.user_agent,
        }

        _logger.debug("GET %s", url)

        try:
            async with self._http.get(url, params=params, headers=headers, timeout=self._timeout) as resp:
                status = resp.status
                try:
                    text = await resp.text()
                except UnicodeDecodeError as exc:
                    raise BalloonTransportError(
                        f"Undecodable body from {url}: {exc}",
                        status_code=status,
                        url=url,
                    ) from exc
        # aiohttp timeout errors may also be ClientErrors.
        except asyncio.TimeoutError as exc:
            raise BalloonTransportError(
                f"Request to {url} timed out after {self._config.request_timeout}s",
                url=url,
            ) from exc
        except aiohttp.ClientError as exc:
            raise BalloonTransportError(f"Request to {url} failed: {exc}", url=url) from exc

        if not 200 <= status < 300:
            raise BalloonTransportError(
                f"HTTP {status} from {url}: {text[:200]}",
                status_code=status,
                url=url,
                body=_try_json(text),
            )

        # ValueError also covers ints past the interpreter digit limit.
        try:
            return json.loads(text)
        except ValueError as exc:
            raise BalloonTransportError(
                f"Invalid JSON from {url}: {text[:200]}",
                status_code=status,
                url=url,
            ) from exc


def _try_json(text: str) -> Any:
    try:
        return json.loads(text)
    except ValueError:
        return None

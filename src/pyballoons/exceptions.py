"""Custom exception hierarchy for pyballoons."""

from __future__ import annotations

from typing import Any


class BalloonError(Exception):
    """Base exception for all pyballoons errors."""


class BalloonConfigError(BalloonError):
    """Invalid or missing configuration."""


class BalloonTransportError(BalloonError):
    """HTTP-level failure (network, timeout, non-2xx, invalid JSON).

    Raised per request. The snapshot fetcher treats it as a failed hour
    bucket and moves on to the next older one. ``body`` holds the decoded
    JSON error body of a non-2xx response when there was one.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
        body: Any = None,
    ) -> None:
        self.status_code = status_code
        self.url = url
        self.body = body
        super().__init__(message)


class NoDataAvailableError(BalloonError):
    """Every upstream bucket failed and the last-known-good cache is empty."""

    def __init__(self, message: str, *, last_error: BaseException | None = None) -> None:
        self.last_error = last_error
        super().__init__(message)


class UnrecognizedShapeError(BalloonError):
    """The payload matches none of the known upstream layouts.

    ``preview`` holds a bounded JSON excerpt of the offending payload.
    """

    def __init__(self, message: str, *, preview: str = "") -> None:
        self.preview = preview
        super().__init__(message)


class MalformedPointError(BalloonError, ValueError):
    """A single candidate point failed numeric or range validation."""


class ContextLookupError(BalloonError):
    """Wind / rarity context lookup failed."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        reason: str = "",
    ) -> None:
        self.status_code = status_code
        self.reason = reason
        super().__init__(message)

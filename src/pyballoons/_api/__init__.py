"""Endpoint modules.

Each module exposes plain async functions that take the config, a
transport and whatever state they read or write. They are internal to
pyballoons; use :class:`pyballoons.client.BalloonClient` instead.
"""

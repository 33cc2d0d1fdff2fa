"""Ingestion layer.

Turns loosely-typed upstream payloads into validated
:class:`~pyballoons.models.CanonicalPoint` lists.
"""

from pyballoons.ingestion.normalize import PayloadShape, classify_payload, extract_points

__all__ = ["PayloadShape", "classify_payload", "extract_points"]

"""Typed data models for pyballoons."""

from pyballoons.models.context import (
    Coordinates,
    LocalContext,
    RarityCell,
    RarityContext,
    RarityGrid,
    WindAloft,
)
from pyballoons.models.points import BalloonsPayload, CanonicalPoint, TrackedPoint
from pyballoons.models.snapshot import RawSnapshot, SnapshotSource

__all__ = [
    "BalloonsPayload",
    "CanonicalPoint",
    "Coordinates",
    "LocalContext",
    "RarityCell",
    "RarityContext",
    "RarityGrid",
    "RawSnapshot",
    "SnapshotSource",
    "TrackedPoint",
    "WindAloft",
]

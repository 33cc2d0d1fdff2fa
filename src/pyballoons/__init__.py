"""pyballoons - Async client that tracks balloons across hourly feed snapshots."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyballoons")
except PackageNotFoundError:
    __version__ = "0+local"
from pyballoons.client import BalloonClient
from pyballoons.config import BalloonConfig
from pyballoons.exceptions import (
    BalloonConfigError,
    BalloonError,
    BalloonTransportError,
    ContextLookupError,
    MalformedPointError,
    NoDataAvailableError,
    UnrecognizedShapeError,
)
from pyballoons.models import (
    BalloonsPayload,
    CanonicalPoint,
    LocalContext,
    RarityContext,
    RawSnapshot,
    SnapshotSource,
    TrackedPoint,
    WindAloft,
)
from pyballoons.poller import BalloonPoller
from pyballoons.state import IdentityTracker

__all__ = [
    "__version__",
    "BalloonClient",
    "BalloonConfig",
    "BalloonConfigError",
    "BalloonError",
    "BalloonPoller",
    "BalloonTransportError",
    "BalloonsPayload",
    "CanonicalPoint",
    "ContextLookupError",
    "IdentityTracker",
    "LocalContext",
    "MalformedPointError",
    "NoDataAvailableError",
    "RarityContext",
    "RawSnapshot",
    "SnapshotSource",
    "TrackedPoint",
    "UnrecognizedShapeError",
    "WindAloft",
]

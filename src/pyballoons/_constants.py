"""Internal constants shared across the library."""

UPSTREAM_URL_TEMPLATE = "https://a.windbornesystems.com/treasure/{hour:02d}.json"
OPEN_METEO_URL = "https://api.open-meteo.com/v1/forecast"
USER_AGENT = "pyballoons/0.1 (+aiohttp)"

# Hour buckets offered upstream: 00 is the freshest, 23 the oldest.
MIN_HOURS_AGO = 0
MAX_HOURS_AGO = 23

EARTH_RADIUS_KM = 6371.0

# Continuity threshold and spatial-hash cell size for the identity tracker.
DEFAULT_MATCH_RADIUS_KM = 150.0
DEFAULT_BIN_DEG = 1.0

DEFAULT_REQUEST_TIMEOUT_S = 15.0
DEFAULT_POLL_INTERVAL_S = 60 * 60.0
DEFAULT_CONTEXT_CACHE_TTL_S = 10 * 60.0

ID_PREFIX = "b"

# Upper bound on the payload excerpt carried by shape errors.
PREVIEW_CHARS = 200

# ------------------------------------------------------------------
# Rarity labels  (score 0-100 → label)
# ------------------------------------------------------------------

RARITY_LABELS: tuple[tuple[float, str], ...] = (
    (90.0, "very rare"),
    (70.0, "rare"),
    (40.0, "uncommon"),
)
RARITY_DEFAULT_LABEL = "common"
RARITY_MISSING_CELL_SCORE = 100.0


def rarity_label(score: float) -> str:
    """Map a rarity score to its display label."""
    for threshold, label in RARITY_LABELS:
        if score >= threshold:
            return label
    return RARITY_DEFAULT_LABEL


# ------------------------------------------------------------------
# 250 hPa wind bins  (m/s → w0-w3)
# ------------------------------------------------------------------

_WIND_BIN_EDGES: tuple[float, ...] = (20.0, 30.0, 45.0)


def wind_bin(speed_ms: float | None) -> str:
    """Bucket a 250 hPa wind speed into ``w0`` (calm) .. ``w3`` (jet core).

    ``None`` maps to ``w0``.
    """
    if speed_ms is None:
        return "w0"
    for index, edge in enumerate(_WIND_BIN_EDGES):
        if speed_ms < edge:
            return f"w{index}"
    return f"w{len(_WIND_BIN_EDGES)}"

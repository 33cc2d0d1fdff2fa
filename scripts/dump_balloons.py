#!/usr/bin/env python3
"""Poll the balloon feed and print identified points.

Runs one or more polls through the full pipeline (fetch, normalize,
identity tracking) and prints each result, so identifier continuity
between polls can be checked by eye.

Usage
-----
::

    python scripts/dump_balloons.py
    python scripts/dump_balloons.py --polls 3 --interval 60 --json

Options::

    --hours-ago N        Start from this hour bucket (0-23, default 0)
    --polls N            Number of polls to run (default 1)
    --interval S         Seconds between polls (default 60)
    --context LAT,LON    Also look up wind/rarity context for a location
    --json               Output machine-readable JSON
    --geojson            Output the last poll as a GeoJSON FeatureCollection
    --output FILE        Write output to FILE instead of stdout
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

from pyballoons import BalloonClient, BalloonConfig, BalloonError, BalloonsPayload  # noqa: E402


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


def _summarize(index: int, payload: BalloonsPayload, previous_ids: set[str], limit: int) -> list[str]:
    ids = {p.id for p in payload.points}
    out = [_section(f"POLL {index}")]
    out.append(f"  bucket    : {payload.hours_ago:02d}h ago")
    out.append(f"  source    : {payload.source}")
    if payload.cache_age_seconds is not None:
        out.append(f"  cache age : {payload.cache_age_seconds}s")
    out.append(f"  points    : {len(payload.points)}")
    if previous_ids:
        out.append(f"  kept ids  : {len(ids & previous_ids)}")
        out.append(f"  new ids   : {len(ids - previous_ids)}")
    for point in payload.points[:limit]:
        attribute = "" if point.attribute is None else f"  attr={point.attribute:g}"
        out.append(f"    {point.id:>8}  {point.lat:9.4f} {point.lon:10.4f}{attribute}")
    if len(payload.points) > limit:
        out.append(f"    ... {len(payload.points) - limit} more")
    return out


def _parse_lat_lon(value: str) -> tuple[float, float]:
    try:
        lat_s, lon_s = value.split(",", 1)
        return float(lat_s), float(lon_s)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got {value!r}") from exc


async def main() -> int:
    parser = argparse.ArgumentParser(description="Poll the balloon feed and print identified points.")
    parser.add_argument("--hours-ago", type=int, default=0, help="Start from this hour bucket (0-23)")
    parser.add_argument("--polls", type=int, default=1, help="Number of polls to run")
    parser.add_argument("--interval", type=float, default=60.0, help="Seconds between polls")
    parser.add_argument("--limit", type=int, default=20, help="Points to list per poll in text mode")
    parser.add_argument("--context", type=_parse_lat_lon, help="Look up wind/rarity context for LAT,LON")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--geojson", action="store_true", help="Output the last poll as GeoJSON")
    parser.add_argument("--output", "-o", help="Write output to FILE instead of stdout")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")
    else:
        logging.basicConfig(level=logging.WARNING)

    config = BalloonConfig.from_env()
    result: dict[str, Any] = {"timestamp": datetime.now(UTC).isoformat(), "polls": []}
    last: BalloonsPayload | None = None
    previous_ids: set[str] = set()

    async with BalloonClient(config) as client:
        for index in range(1, max(1, args.polls) + 1):
            if index > 1:
                await asyncio.sleep(args.interval)
            try:
                payload = await client.get_balloons(args.hours_ago)
            except BalloonError as exc:
                print(f"poll {index} failed: {exc}", file=sys.stderr)
                result["polls"].append({"error": str(exc)})
                continue
            last = payload
            result["polls"].append(payload.to_dict())
            if not (args.json_mode or args.geojson):
                print("\n".join(_summarize(index, payload, previous_ids, args.limit)))
            previous_ids = {p.id for p in payload.points}

        if args.context is not None:
            lat, lon = args.context
            try:
                context = await client.get_context(lat, lon)
            except (BalloonError, ValueError) as exc:
                print(f"context lookup failed: {exc}", file=sys.stderr)
            else:
                result["context"] = context.to_dict()
                if not (args.json_mode or args.geojson):
                    print(_section("CONTEXT"))
                    print(json.dumps(result["context"], indent=2))

    if args.geojson:
        text = json.dumps(last.to_geojson() if last else {"type": "FeatureCollection", "features": []})
    elif args.json_mode:
        text = json.dumps(result, indent=2, default=str)
    else:
        text = ""

    if text:
        if args.output:
            Path(args.output).write_text(text, encoding="utf-8")
            print(f"Output written to {args.output}", file=sys.stderr)
        else:
            print(text)

    return 0 if last is not None else 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))

#!/usr/bin/env python3
"""Fetch every feed once and show what the monitor would ingest.

Useful for checking that the configured URLs still return payloads the
parsers accept, without starting the monitor loops.

Usage
-----
::

    python scripts/probe_feeds.py
    python scripts/probe_feeds.py --json --output probe.json

URLs come from ``ROADRISK_*`` environment variables (see
``roadrisk.config.RoadRiskConfig``).
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

# Allow running from the repo root without installing the package.
_repo = Path(__file__).resolve().parent.parent
_src = _repo / "src"
if _src.is_dir():
    sys.path.insert(0, str(_src))

import aiohttp  # noqa: E402

from roadrisk import RoadRiskConfig, RoadRiskError  # noqa: E402
from roadrisk._transport import HttpFetcher  # noqa: E402
from roadrisk.ingestion.parsers import (  # noqa: E402
    parse_congestion,
    parse_geometry,
    parse_volumes,
    parse_weather_code,
)


def _section(title: str) -> str:
    line = "=" * 60
    return f"\n{line}\n  {title}\n{line}"


async def _probe(name: str, run: Callable[[], Awaitable[Any]], out: list[str]) -> dict[str, Any]:
    out.append(_section(name))
    try:
        value = await run()
    except RoadRiskError as exc:
        out.append(f"  !! {name} failed: {exc}")
        return {"error": str(exc)}
    out.append(f"  {value}")
    return {"value": value}


async def main() -> None:
    parser = argparse.ArgumentParser(description="Probe the roadrisk feeds once")
    parser.add_argument("--json", action="store_true", dest="json_mode", help="Output machine-readable JSON")
    parser.add_argument("--output", help="Write JSON output to FILE")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    config = RoadRiskConfig.from_env()
    out: list[str] = [_section("roadrisk probe_feeds"), f"  time      : {datetime.now(UTC).isoformat()}"]
    result: dict[str, Any] = {"timestamp": datetime.now(UTC).isoformat()}

    async with aiohttp.ClientSession() as session:
        fetcher = HttpFetcher(session, timeout=config.http_timeout)

        async def geometry() -> dict[str, Any]:
            table = parse_geometry(
                await fetcher.fetch(config.geometry_url),
                max_segments=config.max_segments,
                max_points=config.max_geometry_points,
            )
            return {"segments": table.num_segments, "points": [len(s) for s in table.segments]}

        async def weather() -> int:
            return parse_weather_code(
                await fetcher.fetch(config.weather_url),
                adverse_codes=config.adverse_weather_codes,
            )

        async def volumes() -> list[float]:
            return parse_volumes(await fetcher.fetch(config.volume_url), limit=config.max_segments)

        result["geometry"] = await _probe("GEOMETRY", geometry, out)
        result["weather"] = await _probe("WEATHER", weather, out)
        result["volume"] = await _probe("VOLUME", volumes, out)

        if config.congestion_url is not None:
            url = config.congestion_url

            async def congestion() -> list[float]:
                return parse_congestion(await fetcher.fetch(url))

            result["congestion"] = await _probe("CONGESTION", congestion, out)
        else:
            out.append(_section("CONGESTION"))
            out.append("  simulated (no ROADRISK_CONGESTION_URL)")

    if args.json_mode or args.output:
        payload = json.dumps(result, indent=2, default=str)
        if args.output:
            Path(args.output).write_text(payload, encoding="utf-8")
            print(f"JSON written to {args.output}", file=sys.stderr)
        else:
            print(payload)
    else:
        print("\n".join(out))


if __name__ == "__main__":
    asyncio.run(main())

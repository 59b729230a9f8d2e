"""Command-line entry point: ``python -m roadrisk``.

Configuration comes from ``ROADRISK_*`` environment variables; see
:class:`roadrisk.config.RoadRiskConfig`.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from roadrisk.config import RoadRiskConfig
from roadrisk.exceptions import LogWriteError, RoadRiskConfigError
from roadrisk.monitor import RiskMonitor

_logger = logging.getLogger("roadrisk.cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Fuse live traffic feeds into a road risk layer")
    parser.add_argument("--duration", type=float, default=None, help="Stop after this many seconds")
    parser.add_argument("--log-path", help="Event log file (default: system.log)")
    parser.add_argument("--export-path", help="GeoJSON risk layer (default: risky_roads.geojson)")
    parser.add_argument("--seed", type=int, help="Seed for simulated congestion and accident rates")
    parser.add_argument("--verbose", "-v", action="store_true")
    return parser.parse_args(argv)


async def _run(config: RoadRiskConfig, duration: float | None) -> None:
    async with RiskMonitor(config) as monitor:
        await monitor.run(duration)


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    overrides = {
        key: value
        for key, value in (("log_path", args.log_path), ("export_path", args.export_path), ("seed", args.seed))
        if value is not None
    }
    try:
        config = RoadRiskConfig.from_env(**overrides)
    except RoadRiskConfigError as exc:
        print(f"roadrisk: {exc}", file=sys.stderr)
        return 2

    try:
        asyncio.run(_run(config, args.duration))
    except LogWriteError as exc:
        print(f"roadrisk: {exc}", file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        _logger.info("Interrupted, shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""Feed payload parsers.

Each parser takes the raw response body and returns plain values, or
raises :class:`~roadrisk.exceptions.ParseError`. None of them touch the
shared risk state.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable, Collection
from typing import Any

from pydantic import ValidationError

from roadrisk._constants import ADVERSE_WEATHER_CODES, MAX_GEOMETRY_POINTS, MAX_SEGMENTS
from roadrisk.exceptions import ParseError
from roadrisk.ingestion.normalize import safe_float, safe_int
from roadrisk.models.geometry import GeometryPoint, GeometryTable, SegmentGeometry

_logger = logging.getLogger(__name__)

VOLUME_FIELD = "total_passing_vehicle_volume"


def _load_json(payload: bytes, feed: str) -> Any:
    try:
        return json.loads(payload)
    except (ValueError, RecursionError) as exc:
        raise ParseError(f"{feed} payload is not JSON: {payload[:64]!r}", feed=feed) from exc


def parse_geometry(
    payload: bytes,
    *,
    max_segments: int = MAX_SEGMENTS,
    max_points: int = MAX_GEOMETRY_POINTS,
) -> GeometryTable:
    """Parse an Overpass ``out geom`` response into a :class:`GeometryTable`.

    Ways beyond ``max_segments`` and points beyond ``max_points`` are
    dropped; each kind of truncation is logged once per call.
    """
    root = _load_json(payload, "geometry")
    elements = root.get("elements") if isinstance(root, dict) else None
    if not isinstance(elements, list):
        raise ParseError("geometry payload has no 'elements' array", feed="geometry")

    if len(elements) > max_segments:
        _logger.warning("Geometry has %d ways; keeping the first %d", len(elements), max_segments)
        elements = elements[:max_segments]

    points_truncated = False
    segments: list[SegmentGeometry] = []
    for index, element in enumerate(elements):
        raw_points = element.get("geometry") if isinstance(element, dict) else None
        if not isinstance(raw_points, list):
            raw_points = []
        if len(raw_points) > max_points:
            points_truncated = True
            raw_points = raw_points[:max_points]
        try:
            points = tuple(GeometryPoint.model_validate(point) for point in raw_points)
        except ValidationError as exc:
            raise ParseError(f"geometry way {index} has an invalid point: {exc}", feed="geometry") from exc
        segments.append(SegmentGeometry(points=points))

    if points_truncated:
        _logger.warning("Some ways exceed %d points; their polylines were truncated", max_points)

    return GeometryTable(segments=tuple(segments))


def parse_congestion(payload: bytes) -> list[float]:
    """Parse a congestion feed: an array of levels or of ``{"congestion": level}`` objects."""
    root = _load_json(payload, "congestion")
    if not isinstance(root, list):
        raise ParseError("congestion payload is not an array", feed="congestion")

    levels: list[float] = []
    for index, item in enumerate(root):
        raw = item.get("congestion") if isinstance(item, dict) else item
        level = safe_float(raw)
        if level is None:
            raise ParseError(f"congestion entry {index} is not numeric: {raw!r}", feed="congestion")
        levels.append(level)
    return levels


def parse_weather_code(
    payload: bytes,
    *,
    adverse_codes: Collection[int] = ADVERSE_WEATHER_CODES,
) -> int:
    """Map an Open-Meteo response to ``1`` (adverse) or ``0`` (clear).

    Reads ``current_weather.weathercode`` (or ``current.weather_code``).
    A positive ``rain`` reading in either block also counts as adverse.
    """
    root = _load_json(payload, "weather")
    if not isinstance(root, dict):
        raise ParseError("weather payload is not an object", feed="weather")

    blocks = [block for block in (root.get("current_weather"), root.get("current")) if isinstance(block, dict)]
    if not blocks:
        raise ParseError("weather payload has no current conditions", feed="weather")

    code: int | None = None
    raining = False
    for block in blocks:
        if code is None:
            code = safe_int(block.get("weathercode", block.get("weather_code")))
        rain = safe_float(block.get("rain"))
        if rain is not None and rain > 0:
            raining = True

    if code is None and not raining:
        raise ParseError("weather payload carries no weather code", feed="weather")
    return 1 if raining or code in adverse_codes else 0


def parse_volumes(
    payload: bytes,
    *,
    limit: int | None = None,
    on_truncate: Callable[[int], None] | None = None,
) -> list[float]:
    """Parse the Socrata traffic-count array into passing volumes.

    Only the first ``limit`` records are read. Magnitudes may arrive as
    numbers or numeric strings; anything else fails the whole payload.
    ``on_truncate`` is called with the full record count when records
    were dropped.
    """
    root = _load_json(payload, "volume")
    if not isinstance(root, list):
        raise ParseError("volume payload is not an array", feed="volume")

    records = root if limit is None else root[:limit]
    if len(records) < len(root) and on_truncate is not None:
        on_truncate(len(root))
    volumes: list[float] = []
    for index, item in enumerate(records):
        raw = item.get(VOLUME_FIELD) if isinstance(item, dict) else None
        volume = safe_float(raw)
        if volume is None:
            raise ParseError(f"volume record {index} has non-numeric {VOLUME_FIELD}: {raw!r}", feed="volume")
        volumes.append(volume)
    return volumes

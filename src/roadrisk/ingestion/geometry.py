"""One-time road geometry bootstrap."""

from __future__ import annotations

import logging

from roadrisk._transport import Fetcher
from roadrisk.ingestion.parsers import parse_geometry
from roadrisk.models.geometry import GeometryTable

_logger = logging.getLogger(__name__)


async def load_geometry(
    fetcher: Fetcher,
    url: str,
    *,
    max_segments: int,
    max_points: int,
) -> GeometryTable:
    """Fetch and parse the static road geometry.

    Raises :class:`~roadrisk.exceptions.FetchError` or
    :class:`~roadrisk.exceptions.ParseError`; the caller decides whether
    to degrade to an empty table.
    """
    payload = await fetcher.fetch(url)
    table = parse_geometry(payload, max_segments=max_segments, max_points=max_points)
    _logger.info("Loaded geometry for %d segments", table.num_segments)
    return table

"""Periodic feed producers.

This module owns the "sleep + fetch + update" loops for the three live
feeds. Each producer is independent: it never waits on the other two,
and a failed cycle is logged and skipped without affecting anyone else.
"""

from __future__ import annotations

import asyncio
import logging
import random
from abc import ABC, abstractmethod
from collections.abc import Collection

from roadrisk._constants import ADVERSE_WEATHER_CODES, CONGESTION_LEVELS
from roadrisk._transport import Fetcher
from roadrisk.exceptions import FetchError, ParseError
from roadrisk.ingestion.parsers import parse_congestion, parse_volumes, parse_weather_code
from roadrisk.state.store import RiskState

_logger = logging.getLogger(__name__)


class PeriodicProducer(ABC):
    """Base loop: sleep one interval, then poll, forever.

    Subclasses implement :meth:`poll_once`. Cancelling the task running
    :meth:`run` stops the loop at the next ``await``.
    """

    name = "producer"

    def __init__(self, state: RiskState, *, interval: float) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self._state = state
        self._interval = interval
        self.cycles = 0
        self.failures = 0

    @property
    def interval(self) -> float:
        return self._interval

    @abstractmethod
    async def poll_once(self) -> None:
        """Fetch one reading and push it into the shared state."""

    async def run(self) -> None:
        _logger.debug("%s producer started (interval %.1fs)", self.name, self._interval)
        while True:
            await asyncio.sleep(self._interval)
            self.cycles += 1
            try:
                await self.poll_once()
            except (FetchError, ParseError) as exc:
                self.failures += 1
                _logger.warning("%s feed cycle skipped: %s", self.name, exc)


class CongestionProducer(PeriodicProducer):
    """Congestion levels per segment, simulated unless a feed URL is given."""

    name = "congestion"

    def __init__(
        self,
        state: RiskState,
        *,
        interval: float,
        fetcher: Fetcher | None = None,
        url: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        super().__init__(state, interval=interval)
        if url is not None and fetcher is None:
            raise ValueError("a fetcher is required when a congestion URL is set")
        self._fetcher = fetcher
        self._url = url
        self._rng = rng or random.Random()

    async def poll_once(self) -> None:
        if self._url is None:
            levels = [float(self._rng.randrange(CONGESTION_LEVELS)) for _ in range(self._state.num_segments)]
        else:
            assert self._fetcher is not None  # noqa: S101
            levels = parse_congestion(await self._fetcher.fetch(self._url))
        await self._state.update_congestion(levels)


class WeatherProducer(PeriodicProducer):
    """Single city-wide weather signal."""

    name = "weather"

    def __init__(
        self,
        state: RiskState,
        *,
        interval: float,
        fetcher: Fetcher,
        url: str,
        adverse_codes: Collection[int] = ADVERSE_WEATHER_CODES,
    ) -> None:
        super().__init__(state, interval=interval)
        self._fetcher = fetcher
        self._url = url
        self._adverse_codes = adverse_codes

    async def poll_once(self) -> None:
        payload = await self._fetcher.fetch(self._url)
        code = parse_weather_code(payload, adverse_codes=self._adverse_codes)
        await self._state.update_weather(code)


class VolumeProducer(PeriodicProducer):
    """Passing vehicle volumes, mapped onto segments by position."""

    name = "volume"

    def __init__(self, state: RiskState, *, interval: float, fetcher: Fetcher, url: str) -> None:
        super().__init__(state, interval=interval)
        self._fetcher = fetcher
        self._url = url
        self._truncation_logged = False

    def _on_truncate(self, total: int) -> None:
        if self._truncation_logged:
            return
        self._truncation_logged = True
        _logger.warning(
            "Volume feed returned %d records for %d segments; extra records are ignored",
            total,
            self._state.num_segments,
        )

    async def poll_once(self) -> None:
        payload = await self._fetcher.fetch(self._url)
        volumes = parse_volumes(payload, limit=self._state.num_segments, on_truncate=self._on_truncate)
        await self._state.update_volumes(volumes)

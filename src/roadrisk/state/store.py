"""Shared mutable risk state guarded by one condition variable.

Producers are the only writers, the analyzer is the only consumer.
Every read goes through :meth:`RiskState.snapshot` or
:meth:`RiskState.wait_snapshot`, which copy the arrays while holding the
lock, so scoring never observes a torn mix of old and new values.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass

from roadrisk._constants import ACCIDENT_RATE_MAX, VOLUME_THRESHOLD
from roadrisk.state.scoring import score_segment

_logger = logging.getLogger(__name__)


class Readiness(enum.Flag):
    """Which gating feeds have delivered since the last analyzer wakeup."""

    NONE = 0
    TRAFFIC = 1
    WEATHER = 2
    BOTH = TRAFFIC | WEATHER


@dataclass(frozen=True, slots=True)
class RiskSnapshot:
    """Owned point-in-time copy of :class:`RiskState`."""

    congestion: tuple[float, ...]
    accident_rate: tuple[float, ...]
    passing_volume: tuple[float, ...]
    weather_code: int

    @property
    def num_segments(self) -> int:
        return len(self.congestion)

    def score(self, index: int, *, volume_threshold: float = VOLUME_THRESHOLD) -> float:
        return score_segment(
            congestion=self.congestion[index],
            weather_code=self.weather_code,
            accident_rate=self.accident_rate[index],
            passing_volume=self.passing_volume[index],
            volume_threshold=volume_threshold,
        )

    def scores(self, *, volume_threshold: float = VOLUME_THRESHOLD) -> list[float]:
        return [self.score(i, volume_threshold=volume_threshold) for i in range(self.num_segments)]


def random_accident_rates(
    num_segments: int,
    *,
    rng: random.Random | None = None,
    maximum: float = ACCIDENT_RATE_MAX,
) -> list[float]:
    """Draw a fixed accident rate per segment, uniform in ``[0, maximum)``."""
    rng = rng or random.Random()
    return [rng.random() * maximum for _ in range(num_segments)]


class RiskState:
    """Per-segment live signals plus the two readiness bits.

    ``num_segments`` is fixed at construction. Updates longer than that
    are truncated; shorter updates leave the tail segments unchanged.
    """

    def __init__(self, num_segments: int, *, accident_rates: Sequence[float] | None = None) -> None:
        if num_segments < 0:
            raise ValueError("num_segments must not be negative")
        if accident_rates is None:
            accident_rates = [0.0] * num_segments
        if len(accident_rates) != num_segments:
            raise ValueError(f"expected {num_segments} accident rates, got {len(accident_rates)}")

        self._num_segments = num_segments
        self._congestion: list[float] = [0.0] * num_segments
        self._accident_rate: tuple[float, ...] = tuple(float(v) for v in accident_rates)
        self._passing_volume: list[float] = [0.0] * num_segments
        self._weather_code = 0
        self._ready = Readiness.NONE
        self._cond = asyncio.Condition()

    @property
    def num_segments(self) -> int:
        return self._num_segments

    @property
    def ready(self) -> Readiness:
        """Current readiness bits (unsynchronised read, for diagnostics)."""
        return self._ready

    def _copy(self) -> RiskSnapshot:
        return RiskSnapshot(
            congestion=tuple(self._congestion),
            accident_rate=self._accident_rate,
            passing_volume=tuple(self._passing_volume),
            weather_code=self._weather_code,
        )

    def _write(self, target: list[float], values: Sequence[float]) -> int:
        count = min(len(values), self._num_segments)
        target[:count] = (float(v) for v in values[:count])
        return count

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    async def update_congestion(self, values: Sequence[float]) -> int:
        """Store congestion levels and mark traffic ready."""
        async with self._cond:
            count = self._write(self._congestion, values)
            self._ready |= Readiness.TRAFFIC
            self._cond.notify()
        return count

    async def update_weather(self, weather_code: int) -> None:
        """Store the weather signal and mark weather ready."""
        async with self._cond:
            self._weather_code = 1 if weather_code else 0
            self._ready |= Readiness.WEATHER
            self._cond.notify()

    async def update_volumes(self, values: Sequence[float]) -> int:
        """Store passing volumes.

        Volume does not gate the analyzer; the values are picked up by
        the next traffic+weather wakeup.
        """
        async with self._cond:
            return self._write(self._passing_volume, values)

    async def clear_ready(self, flags: Readiness = Readiness.BOTH) -> None:
        """Withdraw readiness bits without waking the consumer."""
        async with self._cond:
            self._ready &= ~flags

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    async def wait_snapshot(self) -> RiskSnapshot:
        """Block until both gating feeds are ready, then consume and copy.

        Both readiness bits are cleared in the same critical section
        that takes the copy.
        """
        async with self._cond:
            await self._cond.wait_for(lambda: self._ready == Readiness.BOTH)
            self._ready = Readiness.NONE
            snapshot = self._copy()
        _logger.debug("Snapshot taken for %d segments", snapshot.num_segments)
        return snapshot

    async def snapshot(self) -> RiskSnapshot:
        """Copy the current state without waiting or touching readiness."""
        async with self._cond:
            return self._copy()

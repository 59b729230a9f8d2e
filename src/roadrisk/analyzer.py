"""Risk analyzer: the sole consumer of the shared risk state.

Each cycle waits for fresh traffic and weather data, scores every
segment from one owned snapshot, raises alerts for high-risk segments
and hands a fresh snapshot to the exporter. Neither scoring nor any
I/O happens while the state lock is held.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Protocol

from roadrisk._constants import HIGH_RISK_THRESHOLD, VOLUME_THRESHOLD
from roadrisk.exceptions import ExportError
from roadrisk.export import IncrementalExporter
from roadrisk.models.alert import RiskAlert
from roadrisk.ringlog import RingLogger
from roadrisk.state.scoring import is_high_risk
from roadrisk.state.store import RiskSnapshot, RiskState

_logger = logging.getLogger(__name__)


class AlertSink(Protocol):
    """Receives high-risk alerts as the analyzer raises them."""

    def emit(self, alert: RiskAlert) -> None:
        ...


class ConsoleAlertSink:
    """Print alerts to standard output."""

    def emit(self, alert: RiskAlert) -> None:
        print(f"[ALERT] Road {alert.segment} HIGH RISK {alert.score:.2f}", flush=True)


@dataclass(slots=True)
class AnalysisResult:
    """Outcome of one analyzer cycle."""

    scores: list[float]
    alerts: list[RiskAlert] = field(default_factory=list)
    exported: bool = False


class Analyzer:
    """Wait, snapshot, score and alert, then maybe export, in a loop."""

    def __init__(
        self,
        state: RiskState,
        ring: RingLogger,
        exporter: IncrementalExporter | None = None,
        *,
        alert_sink: AlertSink | None = None,
        volume_threshold: float = VOLUME_THRESHOLD,
        high_risk_threshold: float = HIGH_RISK_THRESHOLD,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._state = state
        self._ring = ring
        self._exporter = exporter
        self._sink: AlertSink = alert_sink if alert_sink is not None else ConsoleAlertSink()
        self._volume_threshold = volume_threshold
        self._high_risk_threshold = high_risk_threshold
        self._clock = clock
        self.cycles = 0

    def score_and_alert(self, snapshot: RiskSnapshot) -> AnalysisResult:
        """Score every segment of ``snapshot`` and raise alerts."""
        now = int(self._clock())
        scores = snapshot.scores(volume_threshold=self._volume_threshold)
        result = AnalysisResult(scores=scores)
        for index, score in enumerate(scores):
            if not is_high_risk(score, self._high_risk_threshold):
                continue
            alert = RiskAlert(segment=index, score=score, timestamp=now)
            result.alerts.append(alert)
            self._ring.enqueue(alert.log_line())
            try:
                self._sink.emit(alert)
            except Exception:
                _logger.debug("Alert sink failed for segment %d", index, exc_info=True)
        return result

    async def maybe_export(self) -> bool:
        """Hand a fresh snapshot to the exporter; ``True`` if it rewrote the file."""
        if self._exporter is None:
            return False
        snapshot = await self._state.snapshot()
        try:
            return await asyncio.to_thread(self._exporter.export, snapshot)
        except ExportError as exc:
            _logger.warning("Risk layer export skipped: %s", exc)
            return False

    async def process(self, snapshot: RiskSnapshot) -> AnalysisResult:
        result = self.score_and_alert(snapshot)
        result.exported = await self.maybe_export()
        self.cycles += 1
        if result.alerts:
            _logger.info("Cycle %d: %d high-risk segments", self.cycles, len(result.alerts))
        return result

    async def run_once(self) -> AnalysisResult:
        """Run exactly one cycle, blocking until traffic and weather are both ready."""
        snapshot = await self._state.wait_snapshot()
        return await self.process(snapshot)

    async def run(self) -> None:
        while True:
            await self.run_once()

"""High-level async runner for the road risk monitor."""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

import aiohttp

from roadrisk._transport import Fetcher, HttpFetcher
from roadrisk.analyzer import AlertSink, Analyzer
from roadrisk.config import RoadRiskConfig
from roadrisk.exceptions import FetchError, ParseError, RoadRiskError
from roadrisk.export import IncrementalExporter
from roadrisk.ingestion.geometry import load_geometry
from roadrisk.ingestion.producers import (
    CongestionProducer,
    PeriodicProducer,
    VolumeProducer,
    WeatherProducer,
)
from roadrisk.models.geometry import GeometryTable
from roadrisk.ringlog import RingLogger, RingLogHandler
from roadrisk.state.store import RiskState, random_accident_rates

_logger = logging.getLogger(__name__)

_PACKAGE_LOGGER = "roadrisk"


class RiskMonitor:
    """Bootstrap the geometry, then run producers, analyzer and log flusher.

    Usage::

        async with RiskMonitor(config) as monitor:
            await monitor.run()

    Entering the context opens the event log (raising
    :class:`~roadrisk.exceptions.LogWriteError` if it cannot be opened)
    and loads the geometry. A failed geometry load is logged and the
    monitor continues with zero segments. Leaving the context cancels
    every task, flushes the event log and closes owned resources.
    """

    def __init__(
        self,
        config: RoadRiskConfig,
        *,
        session: aiohttp.ClientSession | None = None,
        fetcher: Fetcher | None = None,
        alert_sink: AlertSink | None = None,
    ) -> None:
        self._config = config
        self._external_session = session is not None
        self._http_session = session
        self._fetcher = fetcher
        self._alert_sink = alert_sink
        self._rng = random.Random(config.seed)
        self._ring = RingLogger(
            config.log_path,
            capacity=config.log_capacity,
            line_width=config.log_line_width,
            flush_interval=config.log_flush_interval,
        )
        self._log_handler: RingLogHandler | None = None
        self._geometry = GeometryTable.empty()
        self._state: RiskState | None = None
        self._exporter: IncrementalExporter | None = None
        self._analyzer: Analyzer | None = None
        self._producers: list[PeriodicProducer] = []
        self._tasks: list[asyncio.Task[None]] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> RiskMonitor:
        self._ring.open()
        self._log_handler = RingLogHandler(self._ring)
        logging.getLogger(_PACKAGE_LOGGER).addHandler(self._log_handler)
        try:
            if self._fetcher is None:
                if self._http_session is None:
                    self._http_session = aiohttp.ClientSession()
                self._fetcher = HttpFetcher(self._http_session, timeout=self._config.http_timeout)
            self._geometry = await self._bootstrap_geometry(self._fetcher)
            self._build(self._fetcher)
        except BaseException:
            await self._close()
            raise
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.stop()
        await self._close()

    async def _close(self) -> None:
        if self._log_handler is not None:
            logging.getLogger(_PACKAGE_LOGGER).removeHandler(self._log_handler)
            self._log_handler = None
        self._ring.close()
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None

    # ------------------------------------------------------------------
    # Bootstrap
    # ------------------------------------------------------------------

    async def _bootstrap_geometry(self, fetcher: Fetcher) -> GeometryTable:
        try:
            return await load_geometry(
                fetcher,
                self._config.geometry_url,
                max_segments=self._config.max_segments,
                max_points=self._config.max_geometry_points,
            )
        except (FetchError, ParseError) as exc:
            _logger.warning("Geometry bootstrap failed, starting with no segments: %s", exc)
            return GeometryTable.empty()

    def _build(self, fetcher: Fetcher) -> None:
        cfg = self._config
        num_segments = self._geometry.num_segments
        accident_rates = random_accident_rates(num_segments, rng=self._rng, maximum=cfg.accident_rate_max)
        state = RiskState(num_segments, accident_rates=accident_rates)
        exporter = IncrementalExporter(
            cfg.export_path,
            self._geometry,
            volume_threshold=cfg.volume_threshold,
            high_risk_threshold=cfg.high_risk_threshold,
        )
        self._state = state
        self._exporter = exporter
        self._analyzer = Analyzer(
            state,
            self._ring,
            exporter,
            alert_sink=self._alert_sink,
            volume_threshold=cfg.volume_threshold,
            high_risk_threshold=cfg.high_risk_threshold,
        )
        self._producers = [
            CongestionProducer(
                state,
                interval=cfg.traffic_interval,
                fetcher=fetcher,
                url=cfg.congestion_url,
                rng=self._rng,
            ),
            WeatherProducer(
                state,
                interval=cfg.weather_interval,
                fetcher=fetcher,
                url=cfg.weather_url,
                adverse_codes=cfg.adverse_weather_codes,
            ),
            VolumeProducer(state, interval=cfg.volume_interval, fetcher=fetcher, url=cfg.volume_url),
        ]

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def config(self) -> RoadRiskConfig:
        return self._config

    @property
    def geometry(self) -> GeometryTable:
        return self._geometry

    @property
    def ring(self) -> RingLogger:
        return self._ring

    @property
    def state(self) -> RiskState:
        if self._state is None:
            raise RoadRiskError("Monitor not initialized. Use 'async with RiskMonitor(...) as monitor:'")
        return self._state

    @property
    def exporter(self) -> IncrementalExporter:
        if self._exporter is None:
            raise RoadRiskError("Monitor not initialized. Use 'async with RiskMonitor(...) as monitor:'")
        return self._exporter

    @property
    def analyzer(self) -> Analyzer:
        if self._analyzer is None:
            raise RoadRiskError("Monitor not initialized. Use 'async with RiskMonitor(...) as monitor:'")
        return self._analyzer

    @property
    def producers(self) -> list[PeriodicProducer]:
        return list(self._producers)

    @property
    def is_running(self) -> bool:
        return any(not task.done() for task in self._tasks)

    # ------------------------------------------------------------------
    # Task lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Spawn the producer, analyzer and log-flusher tasks."""
        if self._tasks:
            return
        analyzer = self.analyzer
        self._tasks = [asyncio.create_task(p.run(), name=f"roadrisk-{p.name}") for p in self._producers]
        self._tasks.append(asyncio.create_task(analyzer.run(), name="roadrisk-analyzer"))
        self._tasks.append(asyncio.create_task(self._ring.run(), name="roadrisk-log-flusher"))
        _logger.info("Monitoring %d segments", self._geometry.num_segments)

    async def run(self, duration: float | None = None) -> None:
        """Start the tasks and block until ``duration`` elapses (forever if ``None``).

        An unexpected exception in any task is re-raised here.
        """
        self.start()
        done, _pending = await asyncio.wait(self._tasks, timeout=duration, return_when=asyncio.FIRST_EXCEPTION)
        for task in done:
            if not task.cancelled() and task.exception() is not None:
                raise task.exception()  # type: ignore[misc]

    async def stop(self) -> None:
        """Cancel every task, wait for them, then flush the event log."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        await asyncio.to_thread(self._ring.flush)

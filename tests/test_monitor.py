from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import pytest

from roadrisk.__main__ import main
from roadrisk.config import RoadRiskConfig
from roadrisk.exceptions import FetchError, LogWriteError, RoadRiskError
from roadrisk.models.alert import RiskAlert
from roadrisk.monitor import RiskMonitor

GEOMETRY_URL = "https://geometry.test/interpreter"
WEATHER_URL = "https://weather.test/forecast"
VOLUME_URL = "https://volume.test/counts"
CONGESTION_URL = "https://congestion.test/levels"


@dataclass
class FakeFeeds:
    payloads: dict[str, object] = field(default_factory=dict)
    calls: dict[str, int] = field(default_factory=dict)

    async def fetch(self, url: str) -> bytes:
        self.calls[url] = self.calls.get(url, 0) + 1
        if url not in self.payloads:
            raise FetchError(f"no route for {url}", url=url, status_code=404)
        return json.dumps(self.payloads[url]).encode()


class ListSink:
    def __init__(self) -> None:
        self.alerts: list[RiskAlert] = []

    def emit(self, alert: RiskAlert) -> None:
        self.alerts.append(alert)


def _feeds() -> FakeFeeds:
    return FakeFeeds(
        payloads={
            GEOMETRY_URL: {
                "elements": [
                    {"geometry": [{"lat": 41.8781, "lon": -87.6298}, {"lat": 41.879, "lon": -87.6301}]},
                    {"geometry": [{"lat": 41.88, "lon": -87.63}, {"lat": 41.881, "lon": -87.631}]},
                ]
            },
            WEATHER_URL: {"current_weather": {"weathercode": 61}},
            VOLUME_URL: [{"total_passing_vehicle_volume": "45000"}],
            CONGESTION_URL: [9, 1],
        }
    )


def _config(tmp_path: Path, **overrides: object) -> RoadRiskConfig:
    values: dict[str, object] = {
        "geometry_url": GEOMETRY_URL,
        "weather_url": WEATHER_URL,
        "volume_url": VOLUME_URL,
        "congestion_url": CONGESTION_URL,
        "traffic_interval": 0.02,
        "weather_interval": 0.03,
        "volume_interval": 0.02,
        "log_flush_interval": 0.02,
        "log_path": str(tmp_path / "system.log"),
        "export_path": str(tmp_path / "risky_roads.geojson"),
        "seed": 42,
    }
    values.update(overrides)
    return RoadRiskConfig(**values)  # type: ignore[arg-type]


@pytest.mark.asyncio
async def test_monitor_runs_end_to_end_and_shuts_down_cleanly(tmp_path: Path) -> None:
    sink = ListSink()
    feeds = _feeds()

    async with RiskMonitor(_config(tmp_path), fetcher=feeds, alert_sink=sink) as monitor:
        assert monitor.geometry.num_segments == 2
        assert monitor.state.num_segments == 2
        await monitor.run(duration=0.3)
        assert monitor.analyzer.cycles >= 1
        assert monitor.is_running

    assert not monitor.is_running
    assert sink.alerts
    assert {alert.segment for alert in sink.alerts} == {0}

    log_lines = (tmp_path / "system.log").read_text(encoding="utf-8").splitlines()
    assert any(line.endswith("HighRisk: Road0 = " + f"{sink.alerts[0].score:.2f}") for line in log_lines)

    doc = json.loads((tmp_path / "risky_roads.geojson").read_text(encoding="utf-8"))
    assert doc["type"] == "FeatureCollection"
    assert doc["features"][0]["geometry"]["coordinates"][0] == [-87.6298, 41.8781]
    assert feeds.calls[GEOMETRY_URL] == 1


@pytest.mark.asyncio
async def test_geometry_failure_degrades_to_zero_segments(tmp_path: Path) -> None:
    feeds = _feeds()
    del feeds.payloads[GEOMETRY_URL]

    async with RiskMonitor(_config(tmp_path), fetcher=feeds, alert_sink=ListSink()) as monitor:
        assert monitor.state.num_segments == 0
        await monitor.run(duration=0.1)

    log_text = (tmp_path / "system.log").read_text(encoding="utf-8")
    assert "Geometry bootstrap failed" in log_text
    assert not (tmp_path / "risky_roads.geojson").exists()


@pytest.mark.asyncio
async def test_unopenable_log_file_fails_bootstrap(tmp_path: Path) -> None:
    config = _config(tmp_path, log_path=str(tmp_path / "missing" / "system.log"))

    with pytest.raises(LogWriteError):
        async with RiskMonitor(config, fetcher=_feeds()):
            pass


def test_accessing_state_before_enter_raises(tmp_path: Path) -> None:
    monitor = RiskMonitor(_config(tmp_path), fetcher=_feeds())

    with pytest.raises(RoadRiskError, match="not initialized"):
        _ = monitor.state


def test_cli_exits_nonzero_when_log_cannot_be_opened(tmp_path: Path) -> None:
    code = main(["--log-path", str(tmp_path / "missing" / "system.log"), "--duration", "0"])

    assert code == 1


def test_cli_rejects_bad_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ROADRISK_TRAFFIC_INTERVAL", "often")

    assert main(["--duration", "0"]) == 2

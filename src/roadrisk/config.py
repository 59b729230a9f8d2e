"""Monitor configuration for roadrisk."""

from __future__ import annotations

import dataclasses
import os
from collections.abc import Mapping
from typing import Any

from roadrisk import _constants as c
from roadrisk.exceptions import RoadRiskConfigError


def _env_float(env: Mapping[str, str], key: str) -> float | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return float(value)
    except ValueError as exc:
        raise RoadRiskConfigError(f"{key} must be a number, got {value!r}") from exc


def _env_int(env: Mapping[str, str], key: str) -> int | None:
    value = env.get(key)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError as exc:
        raise RoadRiskConfigError(f"{key} must be an integer, got {value!r}") from exc


def _parse_codes(value: str) -> frozenset[int]:
    try:
        return frozenset(int(part) for part in value.split(",") if part.strip())
    except ValueError as exc:
        raise RoadRiskConfigError(f"weather codes must be comma-separated integers, got {value!r}") from exc


@dataclasses.dataclass(frozen=True)
class RoadRiskConfig:
    """Monitor configuration.

    Parameters
    ----------
    geometry_url : str
        Overpass query returning the monitored road ways with geometry.
    weather_url : str
        Open-Meteo forecast URL with ``current_weather=true``.
    volume_url : str
        Socrata traffic-count dataset URL.
    congestion_url : str or None
        Congestion feed URL. When ``None`` the congestion producer
        simulates a random level per segment.
    traffic_interval, weather_interval, volume_interval : float
        Producer periods in seconds.
    volume_threshold : float
        Passing volume (vehicles/hour) above which a segment is busy.
    high_risk_threshold : float
        Score at or above which a segment alerts and is exported.
    max_segments : int
        Upper bound on segments loaded from the geometry feed.
    max_geometry_points : int
        Upper bound on polyline points kept per segment.
    accident_rate_max : float
        Accident rates are drawn uniformly from ``[0, accident_rate_max)``.
    seed : int or None
        Seed for the accident-rate and congestion simulation RNG.
    adverse_weather_codes : frozenset of int
        WMO weather codes treated as adverse.
    http_timeout : float
        Total timeout for each feed request in seconds.
    log_path : str
        Append-only event log file.
    log_capacity : int
        Ring buffer size in lines.
    log_line_width : int
        Maximum characters kept per log line.
    log_flush_interval : float
        Seconds between log flushes.
    export_path : str
        Public GeoJSON risk layer path.
    """

    geometry_url: str = c.GEOMETRY_URL
    weather_url: str = c.WEATHER_URL
    volume_url: str = c.VOLUME_URL
    congestion_url: str | None = None
    traffic_interval: float = c.TRAFFIC_INTERVAL
    weather_interval: float = c.WEATHER_INTERVAL
    volume_interval: float = c.VOLUME_INTERVAL
    volume_threshold: float = c.VOLUME_THRESHOLD
    high_risk_threshold: float = c.HIGH_RISK_THRESHOLD
    max_segments: int = c.MAX_SEGMENTS
    max_geometry_points: int = c.MAX_GEOMETRY_POINTS
    accident_rate_max: float = c.ACCIDENT_RATE_MAX
    seed: int | None = None
    adverse_weather_codes: frozenset[int] = c.ADVERSE_WEATHER_CODES
    http_timeout: float = 5.0
    log_path: str = "system.log"
    log_capacity: int = c.LOG_CAPACITY
    log_line_width: int = c.LOG_LINE_WIDTH
    log_flush_interval: float = c.LOG_FLUSH_INTERVAL
    export_path: str = "risky_roads.geojson"

    def __post_init__(self) -> None:
        for name in ("traffic_interval", "weather_interval", "volume_interval", "log_flush_interval"):
            if getattr(self, name) <= 0:
                raise RoadRiskConfigError(f"{name} must be positive")
        if self.log_capacity < 1:
            raise RoadRiskConfigError("log_capacity must be at least 1")
        if self.max_segments < 0 or self.max_geometry_points < 0:
            raise RoadRiskConfigError("capacity limits must not be negative")

    @classmethod
    def from_env(cls, **overrides: Any) -> RoadRiskConfig:
        """Create configuration from environment variables.

        Reads optional ``ROADRISK_*`` variables. Explicit keyword
        arguments override environment values.

        Returns
        -------
        RoadRiskConfig
            Populated configuration.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        _ENV_STR_MAP = {
            "ROADRISK_GEOMETRY_URL": "geometry_url",
            "ROADRISK_WEATHER_URL": "weather_url",
            "ROADRISK_VOLUME_URL": "volume_url",
            "ROADRISK_CONGESTION_URL": "congestion_url",
            "ROADRISK_LOG_PATH": "log_path",
            "ROADRISK_EXPORT_PATH": "export_path",
        }
        for env_key, field_name in _ENV_STR_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        _ENV_FLOAT_MAP = {
            "ROADRISK_TRAFFIC_INTERVAL": "traffic_interval",
            "ROADRISK_WEATHER_INTERVAL": "weather_interval",
            "ROADRISK_VOLUME_INTERVAL": "volume_interval",
            "ROADRISK_VOLUME_THRESHOLD": "volume_threshold",
            "ROADRISK_HIGH_RISK_THRESHOLD": "high_risk_threshold",
            "ROADRISK_ACCIDENT_RATE_MAX": "accident_rate_max",
            "ROADRISK_HTTP_TIMEOUT": "http_timeout",
            "ROADRISK_LOG_FLUSH_INTERVAL": "log_flush_interval",
        }
        for env_key, field_name in _ENV_FLOAT_MAP.items():
            parsed_float = _env_float(env, env_key)
            if parsed_float is not None:
                config_kwargs[field_name] = parsed_float

        _ENV_INT_MAP = {
            "ROADRISK_MAX_SEGMENTS": "max_segments",
            "ROADRISK_MAX_GEOMETRY_POINTS": "max_geometry_points",
            "ROADRISK_SEED": "seed",
            "ROADRISK_LOG_CAPACITY": "log_capacity",
            "ROADRISK_LOG_LINE_WIDTH": "log_line_width",
        }
        for env_key, field_name in _ENV_INT_MAP.items():
            parsed_int = _env_int(env, env_key)
            if parsed_int is not None:
                config_kwargs[field_name] = parsed_int

        codes_env = env.get("ROADRISK_ADVERSE_WEATHER_CODES")
        if codes_env is not None:
            config_kwargs["adverse_weather_codes"] = _parse_codes(codes_env)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)

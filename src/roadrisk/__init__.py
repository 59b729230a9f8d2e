"""roadrisk - Async road risk monitor fusing congestion, weather and volume feeds."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("roadrisk")
except PackageNotFoundError:
    __version__ = "0+local"
from roadrisk.analyzer import AlertSink, AnalysisResult, Analyzer, ConsoleAlertSink
from roadrisk.config import RoadRiskConfig
from roadrisk.exceptions import (
    ExportError,
    FetchError,
    LogWriteError,
    ParseError,
    RoadRiskConfigError,
    RoadRiskError,
    RoadRiskIOError,
)
from roadrisk.export import IncrementalExporter
from roadrisk.models import FeatureCollection, GeometryPoint, GeometryTable, RiskAlert, SegmentGeometry
from roadrisk.monitor import RiskMonitor
from roadrisk.ringlog import RingLogger, RingLogHandler
from roadrisk.state.scoring import score_segment
from roadrisk.state.store import Readiness, RiskSnapshot, RiskState

__all__ = [
    "__version__",
    "AlertSink",
    "AnalysisResult",
    "Analyzer",
    "ConsoleAlertSink",
    "ExportError",
    "FeatureCollection",
    "FetchError",
    "GeometryPoint",
    "GeometryTable",
    "IncrementalExporter",
    "LogWriteError",
    "ParseError",
    "Readiness",
    "RingLogHandler",
    "RingLogger",
    "RiskAlert",
    "RiskMonitor",
    "RiskSnapshot",
    "RiskState",
    "RoadRiskConfig",
    "RoadRiskConfigError",
    "RoadRiskError",
    "RoadRiskIOError",
    "SegmentGeometry",
    "score_segment",
]

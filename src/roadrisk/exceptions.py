"""Custom exception hierarchy for roadrisk."""

from __future__ import annotations


class RoadRiskError(Exception):
    """Base exception for all roadrisk errors."""


class RoadRiskConfigError(RoadRiskError):
    """Invalid or missing configuration."""


class FetchError(RoadRiskError):
    """Feed retrieval failed (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        url: str = "",
        status_code: int | None = None,
    ) -> None:
        self.url = url
        self.status_code = status_code
        super().__init__(message)


class ParseError(RoadRiskError):
    """Feed payload could not be decoded into the expected shape."""

    def __init__(self, message: str, *, feed: str = "") -> None:
        self.feed = feed
        super().__init__(message)


class RoadRiskIOError(RoadRiskError):
    """An output artifact could not be written."""

    def __init__(self, message: str, *, path: str = "") -> None:
        self.path = path
        super().__init__(message)


class LogWriteError(RoadRiskIOError):
    """The event log file cannot be opened or written."""


class ExportError(RoadRiskIOError):
    """The GeoJSON risk layer could not be written.

    The exporter leaves its last-exported scores untouched when this is
    raised, so the next analyzer cycle retries the write.
    """

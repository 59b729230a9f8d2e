"""Ingestion layer.

This package contains the periodic producers that fetch the congestion,
weather and volume feeds, and the parsers that turn their payloads into
plain values for the shared risk state.
"""

__all__: list[str] = []

"""Per-segment risk scoring.

A score is the sum of the weights of the factors that hold for a
segment, clamped to ``[0, 1]`` and rounded to two decimals so that
equal factor sets always compare equal.
"""

from __future__ import annotations

from roadrisk._constants import HIGH_RISK_THRESHOLD, VOLUME_THRESHOLD

CONGESTION_WEIGHT = 0.5
WEATHER_WEIGHT = 0.3
ACCIDENT_WEIGHT = 0.2
VOLUME_WEIGHT = 0.2

CONGESTION_LEVEL = 8.0
ACCIDENT_RATE_LEVEL = 0.01
ADVERSE_WEATHER = 1


def score_segment(
    *,
    congestion: float,
    weather_code: int,
    accident_rate: float,
    passing_volume: float,
    volume_threshold: float = VOLUME_THRESHOLD,
) -> float:
    """Score one segment from its signals."""
    total = 0.0
    if congestion >= CONGESTION_LEVEL:
        total += CONGESTION_WEIGHT
    if weather_code == ADVERSE_WEATHER:
        total += WEATHER_WEIGHT
    if accident_rate > ACCIDENT_RATE_LEVEL:
        total += ACCIDENT_WEIGHT
    if passing_volume > volume_threshold:
        total += VOLUME_WEIGHT
    return round(min(total, 1.0), 2)


def is_high_risk(score: float, threshold: float = HIGH_RISK_THRESHOLD) -> bool:
    return score >= threshold

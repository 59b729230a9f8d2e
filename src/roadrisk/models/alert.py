"""High-risk alert model."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field


class RiskAlert(BaseModel):
    """A segment whose score reached the high-risk threshold in one cycle.

    Parameters
    ----------
    segment : int
        Segment index.
    score : float
        Score computed from the analyzer snapshot.
    timestamp : int
        Epoch seconds when the cycle scored the segment.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    segment: int = Field(ge=0)
    score: float = Field(ge=0.0, le=1.0)
    timestamp: int

    def log_line(self) -> str:
        return f"[{self.timestamp}] HighRisk: Road{self.segment} = {self.score:.2f}"

"""Road geometry models.

The geometry table is loaded once at bootstrap and is read-only
afterwards, so every model here is frozen.
"""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class GeometryPoint(BaseModel):
    """A single polyline vertex in WGS84 degrees."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    lon: float = Field(allow_inf_nan=False, validation_alias=AliasChoices("lon", "lng", "longitude"))
    lat: float = Field(allow_inf_nan=False, validation_alias=AliasChoices("lat", "latitude"))

    def as_position(self) -> list[float]:
        """GeoJSON position order: ``[lon, lat]``."""
        return [self.lon, self.lat]


class SegmentGeometry(BaseModel):
    """Ordered polyline for one monitored segment."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    points: tuple[GeometryPoint, ...] = ()

    def __len__(self) -> int:
        return len(self.points)


class GeometryTable(BaseModel):
    """Immutable per-segment geometry, indexed by segment number."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    segments: tuple[SegmentGeometry, ...] = ()

    @classmethod
    def empty(cls) -> GeometryTable:
        return cls()

    @property
    def num_segments(self) -> int:
        return len(self.segments)

    def __getitem__(self, index: int) -> SegmentGeometry:
        return self.segments[index]

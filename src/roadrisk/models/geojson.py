"""GeoJSON output models for the exported risk layer."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class RiskProperties(BaseModel):
    model_config = ConfigDict(frozen=True)

    risk: float


class LineStringGeometry(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["LineString"] = "LineString"
    coordinates: list[list[float]] = Field(min_length=2)


class Feature(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: Literal["Feature"] = "Feature"
    properties: RiskProperties
    geometry: LineStringGeometry


class FeatureCollection(BaseModel):
    """Strict GeoJSON ``FeatureCollection`` of high-risk segments."""

    model_config = ConfigDict(frozen=True)

    type: Literal["FeatureCollection"] = "FeatureCollection"
    features: list[Feature] = Field(default_factory=list)

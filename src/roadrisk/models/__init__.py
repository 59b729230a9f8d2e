"""Data models for roadrisk."""

from roadrisk.models.alert import RiskAlert
from roadrisk.models.geojson import Feature, FeatureCollection, LineStringGeometry, RiskProperties
from roadrisk.models.geometry import GeometryPoint, GeometryTable, SegmentGeometry

__all__ = [
    "Feature",
    "FeatureCollection",
    "GeometryPoint",
    "GeometryTable",
    "LineStringGeometry",
    "RiskAlert",
    "RiskProperties",
    "SegmentGeometry",
]

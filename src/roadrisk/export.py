"""Change-detecting GeoJSON exporter.

The exporter remembers the score it last wrote for every segment and
rewrites the public artifact only when at least one score moved. Writes
go to a sibling temp file which is then renamed over the public path, so
a reader sees either the previous or the new document in full.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from roadrisk._constants import HIGH_RISK_THRESHOLD, VOLUME_THRESHOLD
from roadrisk.exceptions import ExportError
from roadrisk.models.geojson import Feature, FeatureCollection, LineStringGeometry, RiskProperties
from roadrisk.models.geometry import GeometryTable
from roadrisk.state.scoring import is_high_risk
from roadrisk.state.store import RiskSnapshot

_logger = logging.getLogger(__name__)


class IncrementalExporter:
    """Rewrite the risk layer whenever any segment's score changes.

    Not thread-safe: a single caller (the analyzer) drives it.
    """

    def __init__(
        self,
        path: str | Path,
        geometry: GeometryTable,
        *,
        volume_threshold: float = VOLUME_THRESHOLD,
        high_risk_threshold: float = HIGH_RISK_THRESHOLD,
    ) -> None:
        self._path = Path(path)
        self._tmp_path = self._path.with_name(self._path.name + ".tmp")
        self._geometry = geometry
        self._volume_threshold = volume_threshold
        self._high_risk_threshold = high_risk_threshold
        self._last_scores: list[float] = [0.0] * geometry.num_segments
        self.writes = 0

    @property
    def path(self) -> Path:
        return self._path

    @property
    def last_scores(self) -> list[float]:
        return list(self._last_scores)

    def build(self, scores: list[float]) -> FeatureCollection:
        """Feature collection of high-risk segments that have a drawable polyline."""
        features: list[Feature] = []
        for index, score in enumerate(scores):
            if not is_high_risk(score, self._high_risk_threshold):
                continue
            segment = self._geometry[index]
            if len(segment) < 2:
                continue
            features.append(
                Feature(
                    properties=RiskProperties(risk=round(score, 2)),
                    geometry=LineStringGeometry(coordinates=[point.as_position() for point in segment.points]),
                )
            )
        return FeatureCollection(features=features)

    def export(self, snapshot: RiskSnapshot) -> bool:
        """Rewrite the artifact if any score changed since the last write.

        Returns ``True`` when the file was rewritten.

        Raises
        ------
        ExportError
            If the file could not be written. Last-exported scores are
            left unchanged so the next call retries.
        """
        count = min(snapshot.num_segments, len(self._last_scores))
        scores = [snapshot.score(i, volume_threshold=self._volume_threshold) for i in range(count)]
        if scores == self._last_scores[:count]:
            return False

        document = self.build(scores).model_dump_json()
        try:
            with self._tmp_path.open("w", encoding="utf-8") as fp:
                fp.write(document)
                fp.flush()
                os.fsync(fp.fileno())
            os.replace(self._tmp_path, self._path)
        except OSError as exc:
            try:
                self._tmp_path.unlink(missing_ok=True)
            except OSError:
                _logger.debug("Could not remove %s", self._tmp_path, exc_info=True)
            raise ExportError(f"Cannot write {self._path}: {exc}", path=str(self._path)) from exc

        self._last_scores[:count] = scores
        self.writes += 1
        _logger.debug("Exported risk layer to %s", self._path)
        return True

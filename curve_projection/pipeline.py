"""Batch projection of curves onto a plane.

The pipeline tessellates and projects every input curve independently and
collects the segments in input order. A curve that cannot be tessellated is
recorded as a :class:`CurveFailure` and the batch carries on; only an invalid
plane aborts the whole run.

Usage::

    from curve_projection.pipeline import ProjectionPipeline
    from curve_projection.plane import build_plane

    plane = build_plane((0, 0, 1), (0, 0, 0))
    result = ProjectionPipeline().run(plane, curves, tolerance=0.01)
    logging.info(result.summary())
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from . import projection, tessellation
from .errors import DegenerateCurve, InvalidGeometry
from .plane import Plane
from .projection import Segment
from .tessellation import Curve

__all__ = [
    "ProjectedSegment",
    "CurveFailure",
    "ProjectionResult",
    "ProjectionPipeline",
    "run",
]


@dataclass(frozen=True, slots=True)
class ProjectedSegment:
    curve_index: int
    segment: Segment

    @property
    def start(self):
        return self.segment.start

    @property
    def end(self):
        return self.segment.end


@dataclass(frozen=True, slots=True)
class CurveFailure:
    curve_index: int
    reason: str


@dataclass
class ProjectionResult:
    segments: List[ProjectedSegment] = field(default_factory=list)
    failures: List[CurveFailure] = field(default_factory=list)
    curve_count: int = 0

    @property
    def ok(self) -> bool:
        return not self.failures

    def segments_for(self, curve_index: int) -> List[Segment]:
        return [s.segment for s in self.segments if s.curve_index == curve_index]

    def failed_indices(self) -> List[int]:
        return [f.curve_index for f in self.failures]

    def summary(self) -> str:
        return (
            f"{len(self.segments)} segments from {self.curve_count - len(self.failures)}"
            f"/{self.curve_count} curves ({len(self.failures)} failed)"
        )


# Per-curve outcome: (segments, failure reason or None).
_CurveOutcome = Tuple[List[Segment], Optional[str]]


class ProjectionPipeline:
    """Tessellate-then-project flow shared by the CLI and the FreeCAD macro.

    ``workers > 1`` spreads curves over a thread pool; results are always
    reassembled in input order. ``in_plane=True`` skips orthogonal projection
    for callers whose points already lie in the target plane.
    """

    def __init__(self, workers: int = 1, in_plane: bool = False) -> None:
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self.workers = workers
        self.in_plane = in_plane

    def run(self, plane: Plane, curves: Sequence[Curve], tolerance: float) -> ProjectionResult:
        """Project *curves* onto *plane*; see the module docstring."""
        if plane is None or not plane.is_valid():
            raise InvalidGeometry("Projection plane is invalid")
        if not math.isfinite(tolerance) or tolerance <= 0:
            raise ValueError(f"Tessellation tolerance must be positive, got {tolerance!r}")

        curves = list(curves)
        logging.info(
            "Projecting %d curves (tolerance=%g, workers=%d)", len(curves), tolerance, self.workers
        )

        def _process(item: Tuple[int, Curve]) -> _CurveOutcome:
            index, curve = item
            return self._process_curve(index, curve, plane, tolerance)

        if self.workers > 1 and len(curves) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as pool:
                outcomes = list(pool.map(_process, enumerate(curves)))
        else:
            outcomes = [_process(item) for item in enumerate(curves)]

        result = ProjectionResult(curve_count=len(curves))
        for index, (segments, reason) in enumerate(outcomes):
            if reason is not None:
                result.failures.append(CurveFailure(curve_index=index, reason=reason))
                continue
            result.segments.extend(ProjectedSegment(index, s) for s in segments)

        _log_result_report(result)
        return result

    def _process_curve(
        self, index: int, curve: Curve, plane: Plane, tolerance: float
    ) -> _CurveOutcome:
        try:
            points = tessellation.tessellate(curve, tolerance)
            segments = projection.project(points, plane, in_plane=self.in_plane)
        except DegenerateCurve as exc:
            logging.warning("Curve %d skipped: %s", index, exc)
            return [], str(exc)
        if not segments:
            logging.info("Curve %d projects to a point; no segments emitted", index)
        else:
            logging.debug("Curve %d: %d points -> %d segments", index, len(points), len(segments))
        return segments, None


def run(
    plane: Plane,
    curves: Sequence[Curve],
    tolerance: float,
    *,
    workers: int = 1,
    in_plane: bool = False,
) -> ProjectionResult:
    """Convenience wrapper around :meth:`ProjectionPipeline.run`."""
    return ProjectionPipeline(workers=workers, in_plane=in_plane).run(plane, curves, tolerance)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _log_result_report(result: ProjectionResult) -> None:
    logging.info("Projection summary: %s", result.summary())
    if result.failures:
        sample = [(f.curve_index, f.reason) for f in result.failures[:5]]
        logging.warning("%d curves could not be projected (sample: %s)", len(result.failures), sample)
    lengths = _length_stats(result.segments)
    if lengths:
        logging.info("Segment length stats: %s", lengths)


def _length_stats(segments: Sequence[ProjectedSegment]) -> Dict[str, Any]:
    if not segments:
        return {}
    lengths = [s.segment.length for s in segments]
    return {
        "min": round(min(lengths), 6),
        "max": round(max(lengths), 6),
        "total": round(sum(lengths), 6),
    }

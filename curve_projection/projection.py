"""Straight segment construction on a projection plane."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from . import vec3 as v3
from .errors import DegenerateCurve
from .plane import Plane
from .vec3 import Point3

__all__ = [
    "Segment",
    "project_points",
    "project",
    "segment_to_local",
]


@dataclass(frozen=True, slots=True)
class Segment:
    """Bounded straight line; the two endpoints never coincide."""

    start: Point3
    end: Point3

    def __post_init__(self) -> None:
        if v3.is_close(self.start, self.end):
            raise DegenerateCurve(f"Segment endpoints coincide at {self.start}")

    @property
    def length(self) -> float:
        return v3.distance(self.start, self.end)

    @property
    def midpoint(self) -> Point3:
        return v3.lerp(self.start, self.end, 0.5)


def project_points(points: Iterable[Point3], plane: Plane) -> List[Point3]:
    """Orthogonally drop every point onto *plane*."""
    return [plane.project_point(p) for p in points]


def project(points: Sequence[Point3], plane: Plane, *, in_plane: bool = False) -> List[Segment]:
    """Join consecutive points into segments lying in *plane*.

    Off-plane points are projected along the plane normal first; pass
    ``in_plane=True`` when the points are known to lie in the plane already.
    Pairs that coincide after projection are skipped, so a result may be
    empty (for instance a line perpendicular to the plane).
    """
    placed = list(points) if in_plane else project_points(points, plane)
    segments: List[Segment] = []
    for a, b in zip(placed, placed[1:]):
        if v3.is_close(a, b):
            continue
        segments.append(Segment(a, b))
    return segments


def segment_to_local(segment: Segment, plane: Plane) -> Tuple[Tuple[float, float], Tuple[float, float]]:
    """Endpoints of *segment* in the plane's 2D sketch coordinates."""
    return plane.to_local(segment.start), plane.to_local(segment.end)

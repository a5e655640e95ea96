"""Curve tessellation into bounded-error polylines.

Every curve kind exposes a single ``tessellate(tolerance)`` capability; this
module owns the sampling strategies those implementations share and the
:func:`tessellate` entry point that validates their output.

Sampling strategies:
- circular arcs: uniform angular steps sized by the sagitta rule
- general parametric curves: adaptive bisection on the parameter
- Bezier splines: adaptive de Casteljau subdivision (convex-hull bound)
"""

from __future__ import annotations

import logging
import math
from typing import Callable, List, Protocol, Sequence, Tuple, runtime_checkable

from . import vec3 as v3
from .errors import DegenerateCurve
from .vec3 import Point3

__all__ = [
    "Curve",
    "tessellate",
    "chord_segment_count",
    "sample_parametric",
    "subdivide_bezier",
    "distance_to_chord",
    "max_chordal_error",
]

# Widest angle a single chord may span on an arc, even for huge tolerances.
_MAX_ARC_STEP = 2.0 * math.pi / 3.0
_MAX_DEPTH = 24


@runtime_checkable
class Curve(Protocol):
    """Anything that can approximate itself by an ordered point sequence."""

    def tessellate(self, tolerance: float) -> List[Point3]:
        ...


def tessellate(curve: Curve, tolerance: float) -> List[Point3]:
    """Return at least two distinct points approximating *curve*.

    Consecutive samples closer than :data:`vec3.EPSILON` are collapsed. Raises
    :class:`DegenerateCurve` for zero-length curves or when fewer than two
    distinct points remain.
    """
    if not math.isfinite(tolerance) or tolerance <= 0:
        raise ValueError(f"Tessellation tolerance must be positive, got {tolerance!r}")
    if not hasattr(curve, "tessellate"):
        raise TypeError(f"{type(curve).__name__} does not provide tessellate()")

    raw = curve.tessellate(tolerance)
    points: List[Point3] = []
    for p in raw:
        p = v3.as_vector(p)
        if not v3.is_finite(p):
            raise DegenerateCurve(f"{type(curve).__name__} produced a non-finite point")
        if points and v3.is_close(points[-1], p):
            continue
        points.append(p)

    if len(points) < 2:
        raise DegenerateCurve(
            f"{type(curve).__name__} has zero length (fewer than two distinct points)"
        )
    logging.debug("Tessellated %s into %d points", type(curve).__name__, len(points))
    return points


def chord_segment_count(radius: float, sweep: float, tolerance: float) -> int:
    """Number of equal chords keeping a circular arc within *tolerance*.

    A chord spanning angle ``theta`` deviates ``r * (1 - cos(theta / 2))``
    from the arc (the sagitta), so the widest admissible step is
    ``2 * acos(1 - tol / r)``.
    """
    sweep = abs(sweep)
    if radius <= 0 or sweep <= 0:
        return 0
    ratio = 1.0 - tolerance / radius
    step = 2.0 * math.acos(ratio) if ratio > -1.0 else math.pi
    step = min(step, _MAX_ARC_STEP)
    if step <= 0:
        raise DegenerateCurve(f"Tolerance {tolerance!r} is too small for radius {radius!r}")
    return max(1, int(math.ceil(sweep / step - 1e-9)))


def distance_to_chord(p: Point3, a: Point3, b: Point3) -> float:
    """Distance from *p* to the bounded segment ``a``-``b``."""
    ab = v3.sub(b, a)
    denom = v3.dot(ab, ab)
    if denom <= 1e-24:
        return v3.distance(p, a)
    t = v3.dot(v3.sub(p, a), ab) / denom
    t = max(0.0, min(1.0, t))
    return v3.distance(p, v3.lerp(a, b, t))


def sample_parametric(
    evaluate: Callable[[float], Point3],
    t0: float,
    t1: float,
    tolerance: float,
    initial_spans: int = 8,
) -> List[Point3]:
    """Adaptively sample ``evaluate`` over ``[t0, t1]``.

    The range is first cut into *initial_spans* equal spans so features
    smaller than the whole range are not missed; each span is then bisected
    until the curve at its quarter points lies within *tolerance* of the chord.
    """
    spans = max(1, int(initial_spans))
    points: List[Point3] = [evaluate(t0)]
    step = (t1 - t0) / spans
    for i in range(spans):
        a = t0 + step * i
        b = t1 if i == spans - 1 else a + step
        _bisect(evaluate, a, b, points[-1], evaluate(b), tolerance, 0, points)
    return points


def _bisect(
    evaluate: Callable[[float], Point3],
    ta: float,
    tb: float,
    pa: Point3,
    pb: Point3,
    tolerance: float,
    depth: int,
    out: List[Point3],
) -> None:
    stack: List[Tuple[float, float, Point3, Point3, int]] = [(ta, tb, pa, pb, depth)]
    while stack:
        ta, tb, pa, pb, depth = stack.pop()
        tm = 0.5 * (ta + tb)
        pm = evaluate(tm)
        probes = (pm, evaluate(0.5 * (ta + tm)), evaluate(0.5 * (tm + tb)))
        deviation = max(distance_to_chord(p, pa, pb) for p in probes)
        if deviation <= tolerance or depth >= _MAX_DEPTH:
            out.append(pb)
            continue
        # Right half first so the left half is emitted first.
        stack.append((tm, tb, pm, pb, depth + 1))
        stack.append((ta, tm, pa, pm, depth + 1))


def subdivide_bezier(control_points: Sequence[Point3], tolerance: float) -> List[Point3]:
    """Flatten a Bezier of any degree by adaptive de Casteljau subdivision.

    A piece is accepted once every control point lies within *tolerance* of
    the chord joining its end points; the curve stays inside the control
    polygon's convex hull, so the chordal error is bounded by the same value.
    """
    ctrl = [v3.as_vector(p) for p in control_points]
    if len(ctrl) < 2:
        raise DegenerateCurve("Bezier curve needs at least two control points")
    out: List[Point3] = [ctrl[0]]
    stack: List[Tuple[List[Point3], int]] = [(ctrl, 0)]
    while stack:
        pts, depth = stack.pop()
        first, last = pts[0], pts[-1]
        flat = max(distance_to_chord(p, first, last) for p in pts[1:-1]) if len(pts) > 2 else 0.0
        if flat <= tolerance or depth >= _MAX_DEPTH:
            out.append(last)
            continue
        left, right = _split_bezier(pts, 0.5)
        stack.append((right, depth + 1))
        stack.append((left, depth + 1))
    return out


def _split_bezier(pts: List[Point3], t: float) -> Tuple[List[Point3], List[Point3]]:
    left = [pts[0]]
    right = [pts[-1]]
    level = pts
    while len(level) > 1:
        level = [v3.lerp(level[i], level[i + 1], t) for i in range(len(level) - 1)]
        left.append(level[0])
        right.append(level[-1])
    right.reverse()
    return left, right


def max_chordal_error(points: Sequence[Point3], samples: Sequence[Point3]) -> float:
    """Largest distance from any true-curve sample to the polyline *points*."""
    if len(points) < 2:
        raise ValueError("Polyline needs at least two points")
    worst = 0.0
    for s in samples:
        nearest = min(distance_to_chord(s, points[i], points[i + 1]) for i in range(len(points) - 1))
        worst = max(worst, nearest)
    return worst

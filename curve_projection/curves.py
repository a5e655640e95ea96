"""Curve kinds accepted by the projection pipeline.

Each kind is a small frozen dataclass implementing the one-method
:class:`~curve_projection.tessellation.Curve` protocol. The pipeline never
inspects which kind it holds; the ``kind`` tag only matters for the JSON form
used by job files (see :func:`curve_from_dict`).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, ClassVar, Dict, List, Mapping, Tuple

from . import tessellation
from . import vec3 as v3
from .errors import DegenerateCurve
from .tessellation import Curve
from .vec3 import Point3, Vector3

__all__ = [
    "LineCurve",
    "ArcCurve",
    "EllipseCurve",
    "BezierCurve",
    "PolylineCurve",
    "curve_from_dict",
    "curve_to_dict",
]

TWO_PI = 2.0 * math.pi
_FULL_TURN = TWO_PI + 1e-9


@dataclass(frozen=True, slots=True)
class LineCurve:
    kind: ClassVar[str] = "line"

    start: Point3
    end: Point3

    def tessellate(self, tolerance: float) -> List[Point3]:
        return [self.start, self.end]

    @property
    def length(self) -> float:
        return v3.distance(self.start, self.end)


@dataclass(frozen=True, slots=True)
class ArcCurve:
    """Circular arc from *start_angle* to *end_angle* (radians) around *normal*.

    Angles are measured from *reference* (projected into the arc plane), or
    from the default frame axis of *normal* when no reference is given. A
    sweep of ``2*pi`` is a full circle.
    """

    kind: ClassVar[str] = "arc"

    center: Point3
    normal: Vector3
    radius: float
    start_angle: float = 0.0
    end_angle: float = TWO_PI
    reference: Vector3 | None = None

    @property
    def sweep(self) -> float:
        return self.end_angle - self.start_angle

    def _frame(self) -> Tuple[Vector3, Vector3]:
        try:
            unit = v3.normalize(self.normal)
        except ValueError as exc:
            raise DegenerateCurve("Arc normal has zero length") from exc
        return v3.orthonormal_frame(unit, self.reference)

    def point_at(self, angle: float) -> Point3:
        x_axis, y_axis = self._frame()
        return _on_circle(self.center, x_axis, y_axis, self.radius, self.radius, angle)

    def tessellate(self, tolerance: float) -> List[Point3]:
        _check_arc_parameters("Arc", (self.radius,), self.start_angle, self.end_angle)
        x_axis, y_axis = self._frame()
        count = tessellation.chord_segment_count(self.radius, self.sweep, tolerance)
        step = self.sweep / count
        return [
            _on_circle(self.center, x_axis, y_axis, self.radius, self.radius, self.start_angle + step * i)
            for i in range(count + 1)
        ]


@dataclass(frozen=True, slots=True)
class EllipseCurve:
    """Elliptical arc; angles are the parametric (eccentric) angles."""

    kind: ClassVar[str] = "ellipse"

    center: Point3
    normal: Vector3
    major_radius: float
    minor_radius: float
    start_angle: float = 0.0
    end_angle: float = TWO_PI
    major_axis: Vector3 | None = None

    def _frame(self) -> Tuple[Vector3, Vector3]:
        try:
            unit = v3.normalize(self.normal)
        except ValueError as exc:
            raise DegenerateCurve("Ellipse normal has zero length") from exc
        return v3.orthonormal_frame(unit, self.major_axis)

    def point_at(self, angle: float) -> Point3:
        x_axis, y_axis = self._frame()
        return _on_circle(self.center, x_axis, y_axis, self.major_radius, self.minor_radius, angle)

    def tessellate(self, tolerance: float) -> List[Point3]:
        _check_arc_parameters(
            "Ellipse", (self.major_radius, self.minor_radius), self.start_angle, self.end_angle
        )
        sweep = self.end_angle - self.start_angle
        x_axis, y_axis = self._frame()

        def _evaluate(t: float) -> Point3:
            return _on_circle(self.center, x_axis, y_axis, self.major_radius, self.minor_radius, t)

        spans = max(4, int(math.ceil(abs(sweep) / (math.pi / 8))))
        return tessellation.sample_parametric(_evaluate, self.start_angle, self.end_angle, tolerance, spans)


@dataclass(frozen=True, slots=True)
class BezierCurve:
    kind: ClassVar[str] = "bezier"

    control_points: Tuple[Point3, ...]

    def point_at(self, t: float) -> Point3:
        level = list(self.control_points)
        while len(level) > 1:
            level = [v3.lerp(level[i], level[i + 1], t) for i in range(len(level) - 1)]
        return level[0]

    def tessellate(self, tolerance: float) -> List[Point3]:
        return tessellation.subdivide_bezier(self.control_points, tolerance)


@dataclass(frozen=True, slots=True)
class PolylineCurve:
    """Curve already discretized by its producer (for example a CAD host)."""

    kind: ClassVar[str] = "polyline"

    points: Tuple[Point3, ...]

    def tessellate(self, tolerance: float) -> List[Point3]:
        return list(self.points)


def _check_arc_parameters(
    label: str, radii: Tuple[float, ...], start_angle: float, end_angle: float
) -> None:
    if not all(math.isfinite(value) for value in (*radii, start_angle, end_angle)):
        raise DegenerateCurve(f"{label} has a non-finite radius or angle")
    sweep = end_angle - start_angle
    if any(r <= 0 for r in radii) or sweep == 0:
        raise DegenerateCurve(f"{label} has a zero radius or zero sweep")
    if abs(sweep) > _FULL_TURN:
        raise DegenerateCurve(f"{label} sweep exceeds a full turn")


def _on_circle(
    center: Point3, x_axis: Vector3, y_axis: Vector3, rx: float, ry: float, angle: float
) -> Point3:
    return v3.add(
        center,
        v3.add(v3.scale(x_axis, rx * math.cos(angle)), v3.scale(y_axis, ry * math.sin(angle))),
    )


def _optional_vector(data: Mapping[str, Any], key: str) -> Vector3 | None:
    value = data.get(key)
    return None if value is None else v3.as_vector(value)


def curve_from_dict(data: Mapping[str, Any]) -> Curve:
    """Build a curve from its tagged JSON form, e.g. ``{"type": "line", ...}``."""
    if not isinstance(data, Mapping):
        raise ValueError("Curve entry must be an object")
    kind = str(data.get("type", "")).lower()
    try:
        if kind == "line":
            return LineCurve(v3.as_vector(data["start"]), v3.as_vector(data["end"]))
        if kind in {"arc", "circle"}:
            return ArcCurve(
                center=v3.as_vector(data["center"]),
                normal=v3.as_vector(data.get("normal", (0.0, 0.0, 1.0))),
                radius=float(data["radius"]),
                start_angle=float(data.get("start_angle", 0.0)),
                end_angle=float(data.get("end_angle", TWO_PI)),
                reference=_optional_vector(data, "reference"),
            )
        if kind == "ellipse":
            return EllipseCurve(
                center=v3.as_vector(data["center"]),
                normal=v3.as_vector(data.get("normal", (0.0, 0.0, 1.0))),
                major_radius=float(data["major_radius"]),
                minor_radius=float(data["minor_radius"]),
                start_angle=float(data.get("start_angle", 0.0)),
                end_angle=float(data.get("end_angle", TWO_PI)),
                major_axis=_optional_vector(data, "major_axis"),
            )
        if kind == "bezier":
            return BezierCurve(tuple(v3.as_vector(p) for p in data["control_points"]))
        if kind == "polyline":
            return PolylineCurve(tuple(v3.as_vector(p) for p in data["points"]))
    except KeyError as exc:
        raise ValueError(f"Curve of type '{kind}' is missing field {exc}") from exc
    raise ValueError(f"Unknown curve type '{data.get('type')}'")


def curve_to_dict(curve: Curve) -> Dict[str, Any]:
    """Inverse of :func:`curve_from_dict` for the built-in curve kinds."""
    if isinstance(curve, LineCurve):
        return {"type": "line", "start": list(curve.start), "end": list(curve.end)}
    if isinstance(curve, ArcCurve):
        data: Dict[str, Any] = {
            "type": "arc",
            "center": list(curve.center),
            "normal": list(curve.normal),
            "radius": curve.radius,
            "start_angle": curve.start_angle,
            "end_angle": curve.end_angle,
        }
        if curve.reference is not None:
            data["reference"] = list(curve.reference)
        return data
    if isinstance(curve, EllipseCurve):
        data = {
            "type": "ellipse",
            "center": list(curve.center),
            "normal": list(curve.normal),
            "major_radius": curve.major_radius,
            "minor_radius": curve.minor_radius,
            "start_angle": curve.start_angle,
            "end_angle": curve.end_angle,
        }
        if curve.major_axis is not None:
            data["major_axis"] = list(curve.major_axis)
        return data
    if isinstance(curve, BezierCurve):
        return {"type": "bezier", "control_points": [list(p) for p in curve.control_points]}
    if isinstance(curve, PolylineCurve):
        return {"type": "polyline", "points": [list(p) for p in curve.points]}
    raise TypeError(f"No JSON form for {type(curve).__name__}")

"""Projection plane construction.

A :class:`Plane` is built once per run from a picked planar face (normal and
origin). Besides the unit normal it carries an orthonormal in-plane frame so
projected geometry can also be expressed in 2D sketch coordinates.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Tuple

from . import vec3 as v3
from .errors import InvalidGeometry
from .vec3 import Point3, Vector3

__all__ = ["Plane", "build_plane"]

_NORMAL_EPSILON = 1e-12


@dataclass(frozen=True, slots=True)
class Plane:
    origin: Point3
    normal: Vector3
    x_axis: Vector3
    y_axis: Vector3

    def signed_distance(self, point: Point3) -> float:
        """Distance from the plane along the normal (positive on the normal side)."""
        return v3.dot(self.normal, v3.sub(point, self.origin))

    def project_point(self, point: Point3) -> Point3:
        d = self.signed_distance(point)
        return v3.sub(point, v3.scale(self.normal, d))

    def contains(self, point: Point3, tol: float = v3.EPSILON) -> bool:
        return abs(self.signed_distance(point)) <= tol

    def to_local(self, point: Point3) -> Tuple[float, float]:
        """2D sketch coordinates of *point* (after dropping its normal offset)."""
        rel = v3.sub(point, self.origin)
        return (v3.dot(rel, self.x_axis), v3.dot(rel, self.y_axis))

    def to_world(self, u: float, v: float) -> Point3:
        return v3.add(
            self.origin,
            v3.add(v3.scale(self.x_axis, u), v3.scale(self.y_axis, v)),
        )

    def is_valid(self) -> bool:
        if not (v3.is_finite(self.origin) and v3.is_finite(self.normal)):
            return False
        return math.isclose(v3.norm(self.normal), 1.0, abs_tol=1e-9)


def build_plane(normal: Vector3, origin: Point3) -> Plane:
    """Return an oriented plane through *origin* with unit normal along *normal*.

    Raises :class:`InvalidGeometry` when the normal is zero-length or any
    coordinate is not finite.
    """
    normal = v3.as_vector(normal)
    origin = v3.as_vector(origin)
    if not (v3.is_finite(normal) and v3.is_finite(origin)):
        raise InvalidGeometry("Plane normal and origin must be finite")
    length = v3.norm(normal)
    if length < _NORMAL_EPSILON:
        raise InvalidGeometry("Plane normal has zero length")

    unit = v3.scale(normal, 1.0 / length)
    x_axis, y_axis = v3.orthonormal_frame(unit)
    return Plane(origin=origin, normal=unit, x_axis=x_axis, y_axis=y_axis)

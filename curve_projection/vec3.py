"""Tuple-based 3D vector algebra used across the projection core.

Points and directions are plain ``Tuple[float, float, float]`` values so every
result is immutable and hashable. Nothing here depends on a CAD host.
"""

from __future__ import annotations

import math
from typing import Iterable, Sequence, Tuple

__all__ = [
    "Vector3",
    "Point3",
    "EPSILON",
    "as_vector",
    "norm",
    "normalize",
    "dot",
    "cross",
    "sub",
    "add",
    "scale",
    "lerp",
    "distance",
    "is_close",
    "is_finite",
    "orthonormal_frame",
]

Vector3 = Tuple[float, float, float]
Point3 = Vector3

# Coincidence threshold for points and zero-length checks (model units).
EPSILON = 1e-9


def as_vector(values: Sequence[float] | Iterable[float]) -> Vector3:
    """Coerce a 3-item sequence (list, tuple, JSON array) into a float triple."""
    items = [float(v) for v in values]
    if len(items) != 3:
        raise ValueError(f"Expected 3 coordinates, got {len(items)}")
    return (items[0], items[1], items[2])


def norm(v: Vector3) -> float:
    return math.sqrt(v[0] * v[0] + v[1] * v[1] + v[2] * v[2])


def normalize(v: Vector3) -> Vector3:
    """Unit vector along *v*; raises ``ValueError`` for a zero vector."""
    n = norm(v)
    if n <= 1e-12:
        raise ValueError("Cannot normalize a zero-length vector")
    return (v[0] / n, v[1] / n, v[2] / n)


def dot(a: Vector3, b: Vector3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def cross(a: Vector3, b: Vector3) -> Vector3:
    return (
        a[1] * b[2] - a[2] * b[1],
        a[2] * b[0] - a[0] * b[2],
        a[0] * b[1] - a[1] * b[0],
    )


def sub(a: Vector3, b: Vector3) -> Vector3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def add(a: Vector3, b: Vector3) -> Vector3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def scale(v: Vector3, s: float) -> Vector3:
    return (v[0] * s, v[1] * s, v[2] * s)


def lerp(a: Vector3, b: Vector3, t: float) -> Vector3:
    return (
        a[0] + (b[0] - a[0]) * t,
        a[1] + (b[1] - a[1]) * t,
        a[2] + (b[2] - a[2]) * t,
    )


def distance(a: Vector3, b: Vector3) -> float:
    return norm(sub(b, a))


def is_close(a: Vector3, b: Vector3, tol: float = EPSILON) -> bool:
    """True when *a* and *b* coincide within *tol*."""
    return distance(a, b) <= tol


def is_finite(v: Vector3) -> bool:
    return all(math.isfinite(c) for c in v)


def orthonormal_frame(normal: Vector3, reference: Vector3 | None = None) -> Tuple[Vector3, Vector3]:
    """Return ``(x_axis, y_axis)`` spanning the plane perpendicular to *normal*.

    *normal* must already be unit length. When *reference* is given its
    component perpendicular to the normal becomes the x axis; otherwise the
    world axis least aligned with the normal is used.
    """
    if reference is None or norm(sub(reference, scale(normal, dot(reference, normal)))) <= 1e-12:
        ax, ay, az = abs(normal[0]), abs(normal[1]), abs(normal[2])
        if ax <= ay and ax <= az:
            reference = (1.0, 0.0, 0.0)
        elif ay <= az:
            reference = (0.0, 1.0, 0.0)
        else:
            reference = (0.0, 0.0, 1.0)
    x_axis = normalize(sub(reference, scale(normal, dot(reference, normal))))
    return x_axis, cross(normal, x_axis)

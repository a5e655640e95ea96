"""Error kinds raised by the projection core."""

from __future__ import annotations

__all__ = ["ProjectionError", "InvalidGeometry", "DegenerateCurve"]


class ProjectionError(ValueError):
    """Base class for geometry errors raised by this package."""


class InvalidGeometry(ProjectionError):
    """Plane input that cannot be oriented (zero or non-finite normal)."""


class DegenerateCurve(ProjectionError):
    """A curve that cannot be tessellated into two distinct points."""

"""Job loading and result export for curve projection.

Handles the JSON job format, the JSON result manifest and persistence into a
FreeCAD document. FreeCAD imports are lazy so the module can be imported in
headless/test environments.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping

from . import vec3 as v3
from .curves import curve_from_dict, curve_to_dict
from .plane import Plane, build_plane
from .pipeline import ProjectionResult
from .projection import segment_to_local
from .tessellation import Curve
from .vec3 import Point3, Vector3

__all__ = [
    "ProjectionJob",
    "job_from_dict",
    "job_to_dict",
    "load_job",
    "save_job",
    "manifest_dict",
    "export_manifest",
    "export_freecad",
]


# ---------------------------------------------------------------------------
# Job files
# ---------------------------------------------------------------------------


@dataclass
class ProjectionJob:
    """Already-resolved selection: the picked face's plane data plus curves."""

    normal: Vector3
    origin: Point3
    curves: List[Curve] = field(default_factory=list)

    def build_plane(self) -> Plane:
        return build_plane(self.normal, self.origin)


def job_from_dict(data: Mapping[str, Any]) -> ProjectionJob:
    if not isinstance(data, Mapping):
        raise ValueError("Top-level JSON job must be an object")
    plane = data.get("plane")
    if not isinstance(plane, Mapping) or "normal" not in plane or "origin" not in plane:
        raise ValueError("Job needs a 'plane' object with 'normal' and 'origin'")
    curves = data.get("curves", [])
    if not isinstance(curves, list):
        raise ValueError("Job 'curves' must be a list")
    return ProjectionJob(
        normal=v3.as_vector(plane["normal"]),
        origin=v3.as_vector(plane["origin"]),
        curves=[curve_from_dict(c) for c in curves],
    )


def job_to_dict(job: ProjectionJob) -> Dict[str, Any]:
    return {
        "plane": {"normal": list(job.normal), "origin": list(job.origin)},
        "curves": [curve_to_dict(c) for c in job.curves],
    }


def load_job(path: Path | str) -> ProjectionJob:
    job_path = Path(path)
    if not job_path.exists():
        raise FileNotFoundError(f"Job file not found: {job_path}")
    job = job_from_dict(json.loads(job_path.read_text(encoding="utf-8")))
    logging.info("Loaded job %s with %d curves", job_path, len(job.curves))
    return job


def save_job(job: ProjectionJob, destination: Path) -> None:
    destination.write_text(json.dumps(job_to_dict(job), indent=2), encoding="utf-8")


# ---------------------------------------------------------------------------
# Manifest export
# ---------------------------------------------------------------------------


def manifest_dict(result: ProjectionResult, plane: Plane) -> Dict[str, Any]:
    segments = []
    for i, item in enumerate(result.segments):
        local_start, local_end = segment_to_local(item.segment, plane)
        segments.append(
            {
                "index": i,
                "curve_index": item.curve_index,
                "start": list(item.start),
                "end": list(item.end),
                "length": item.segment.length,
                "local": [list(local_start), list(local_end)],
            }
        )
    return {
        "plane": {
            "origin": list(plane.origin),
            "normal": list(plane.normal),
            "x_axis": list(plane.x_axis),
            "y_axis": list(plane.y_axis),
        },
        "curve_count": result.curve_count,
        "segments": segments,
        "failures": [{"curve_index": f.curve_index, "reason": f.reason} for f in result.failures],
    }


def export_manifest(result: ProjectionResult, plane: Plane, destination: Path) -> None:
    """Write the projected segments and per-curve failures as JSON."""
    destination.write_text(json.dumps(manifest_dict(result, plane), indent=2), encoding="utf-8")
    logging.info("Wrote manifest %s", destination)


# ---------------------------------------------------------------------------
# FreeCAD persistence
# ---------------------------------------------------------------------------


def export_freecad(
    result: ProjectionResult,
    plane: Plane,
    doc: Any = None,
    label: str = "ProjectedCurves",
) -> Any:
    """Store the segments as line geometry of a sketch placed on *plane*.

    All objects are created inside one document transaction; on any error the
    transaction is aborted and the exception propagates. Returns the sketch.
    """
    try:
        import FreeCAD  # type: ignore
        import Part  # type: ignore
    except ImportError as exc:
        raise RuntimeError("FreeCAD is required to persist projected segments") from exc

    if doc is None:
        doc = FreeCAD.ActiveDocument or FreeCAD.newDocument("CurveProjection")

    rotation = FreeCAD.Rotation(
        FreeCAD.Vector(*plane.x_axis),
        FreeCAD.Vector(*plane.y_axis),
        FreeCAD.Vector(*plane.normal),
        "ZXY",
    )
    placement = FreeCAD.Placement(FreeCAD.Vector(*plane.origin), rotation)

    geometry = []
    for item in result.segments:
        (u1, v1), (u2, v2) = segment_to_local(item.segment, plane)
        geometry.append(Part.LineSegment(FreeCAD.Vector(u1, v1, 0), FreeCAD.Vector(u2, v2, 0)))

    doc.openTransaction("Project curves")
    try:
        sketch = doc.addObject("Sketcher::SketchObject", label)
        sketch.Placement = placement
        if geometry:
            sketch.addGeometry(geometry, False)
        doc.recompute()
    except Exception:
        doc.abortTransaction()
        raise
    doc.commitTransaction()
    logging.info("Added sketch %s with %d line segments", sketch.Name, len(geometry))
    return sketch

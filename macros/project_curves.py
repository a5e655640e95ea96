"""Project curves onto a planar face (FreeCAD macro).

Select one planar face plus the edges (or whole objects) to project, then run
this macro. Each edge is discretized by FreeCAD, flattened onto the face's
plane and stored as line segments in a new sketch on that plane.

Add/run in FreeCAD:
- Macro -> Macros... -> Add -> select this file
- Execute
"""

from __future__ import annotations

import sys
import traceback
from pathlib import Path

try:
    import FreeCADGui  # noqa: F401
    from PySide import QtWidgets
except Exception as exc:
    raise SystemExit(f"This macro must be run inside FreeCAD GUI. Error: {exc}")

import FreeCAD  # type: ignore
import Part  # type: ignore

TITLE = "Project curves"


def _repo_root() -> Path:
    macro_path = Path(globals().get("__file__", "")).resolve()
    if macro_path.is_file():
        return macro_path.parents[1]
    return Path.cwd()


def _planar_face(selection):
    """Return ``(normal, origin)`` of the first selected planar face, or None."""
    for sel in selection:
        for sub in getattr(sel, "SubObjects", []) or []:
            if not isinstance(sub, Part.Face):
                continue
            if not isinstance(sub.Surface, Part.Plane):
                continue
            u0, u1, v0, v1 = sub.ParameterRange
            normal = sub.normalAt(0.5 * (u0 + u1), 0.5 * (v0 + v1))
            origin = sub.Surface.Position
            return (normal.x, normal.y, normal.z), (origin.x, origin.y, origin.z)
    return None


def _selected_edges(selection):
    edges = []
    for sel in selection:
        subs = list(getattr(sel, "SubObjects", []) or [])
        if subs:
            edges.extend(s for s in subs if isinstance(s, Part.Edge))
        else:
            shape = getattr(sel.Object, "Shape", None)
            if shape is not None:
                edges.extend(shape.Edges)
    return edges


def _edge_to_curve(edge, tolerance: float):
    from curve_projection.curves import LineCurve, PolylineCurve

    def _tuple(v):
        return (v.x, v.y, v.z)

    if isinstance(edge.Curve, (Part.Line, Part.LineSegment)):
        return LineCurve(_tuple(edge.Vertexes[0].Point), _tuple(edge.Vertexes[-1].Point))
    points = edge.discretize(Deflection=tolerance)
    return PolylineCurve(tuple(_tuple(p) for p in points))


def main() -> None:
    repo_root = _repo_root().resolve()
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

    for key in list(sys.modules.keys()):
        if key == "curve_projection" or key.startswith("curve_projection."):
            sys.modules.pop(key, None)

    from curve_projection import export
    from curve_projection.errors import InvalidGeometry
    from curve_projection.parameters import ProjectionParameters
    from curve_projection.pipeline import ProjectionPipeline
    from curve_projection.plane import build_plane

    params = ProjectionParameters()
    selection = FreeCADGui.Selection.getSelectionEx()
    face = _planar_face(selection)
    edges = _selected_edges(selection)
    if face is None or not edges:
        QtWidgets.QMessageBox.information(
            None, TITLE, "Selection cancelled.\n\nSelect one planar face and the curves to project."
        )
        return

    try:
        plane = build_plane(*face)
        curves = [_edge_to_curve(e, params.tolerance) for e in edges]
        result = ProjectionPipeline().run(plane, curves, params.tolerance)
        doc = FreeCAD.ActiveDocument
        sketch = export.export_freecad(result, plane, doc=doc, label=params.group_label)
    except InvalidGeometry as exc:
        QtWidgets.QMessageBox.critical(None, TITLE, f"Invalid projection plane: {exc}")
        return
    except BaseException:
        err = traceback.format_exc()
        QtWidgets.QMessageBox.critical(None, f"{TITLE} failed", err)
        raise

    lines = [f"Sketch: {sketch.Label}", result.summary()]
    for failure in result.failures:
        lines.append(f"Curve {failure.curve_index}: {failure.reason}")
    QtWidgets.QMessageBox.information(None, TITLE, "\n".join(lines))


main()

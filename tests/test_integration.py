"""Integration tests: configuration layering, job/manifest files, CLI and FreeCAD.

FreeCAD-backed tests are skipped when FreeCAD cannot be imported::

    freecadcmd -c "import pytest; pytest.main(['tests/test_integration.py', '-v'])"
"""

from __future__ import annotations

import json
import math
from pathlib import Path

import pytest

_FREECAD_AVAILABLE = False
try:
    import FreeCAD  # type: ignore  # noqa: F401

    _FREECAD_AVAILABLE = True
except ImportError:
    pass

requires_freecad = pytest.mark.skipif(
    not _FREECAD_AVAILABLE,
    reason="FreeCAD not available",
)

from curve_projection import cli, export, parameters
from curve_projection.curves import ArcCurve, LineCurve
from curve_projection.parameters import ProjectionParameters
from curve_projection.pipeline import ProjectionPipeline


def _write_job(path: Path, normal=(0.0, 0.0, 1.0), curves=None) -> Path:
    if curves is None:
        curves = [
            {"type": "line", "start": [0, 0, 5], "end": [10, 0, 5]},
            {"type": "line", "start": [1, 1, 1], "end": [1, 1, 1]},
            {"type": "arc", "center": [0, 0, 0], "normal": [0, 0, 1], "radius": 2,
             "start_angle": 0, "end_angle": math.pi / 2},
        ]
    path.write_text(
        json.dumps({"plane": {"normal": list(normal), "origin": [0, 0, 0]}, "curves": curves}),
        encoding="utf-8",
    )
    return path


# ---------------------------------------------------------------------------
# Parameters
# ---------------------------------------------------------------------------


class TestParameters:
    def test_defaults_validate(self):
        params = ProjectionParameters()
        params.validate()
        assert params.tolerance > 0
        assert params.workers == 1

    @pytest.mark.parametrize(
        "override",
        [{"tolerance": 0.0}, {"tolerance": -1.0}, {"workers": 0}, {"group_label": ""}],
    )
    def test_invalid_values_rejected(self, override):
        with pytest.raises(ValueError):
            ProjectionParameters.from_dict(override)

    def test_unknown_json_keys_are_ignored(self):
        params = ProjectionParameters.from_dict({"tolerance": 0.2, "colour": "red"})
        assert params.tolerance == 0.2

    def test_unknown_override_raises(self):
        with pytest.raises(KeyError):
            parameters.apply_overrides(ProjectionParameters(), {"colour": "red"})

    def test_missing_config_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            parameters.load_json_config(tmp_path / "missing.json")

    def test_config_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(ValueError):
            parameters.load_json_config(path)

    def test_cli_overrides_win_over_json(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"tolerance": 0.05, "workers": 3}))
        params = parameters.load_parameters(config_path, cli_overrides={"tolerance": 0.2})
        assert params.tolerance == 0.2
        assert params.workers == 3

    def test_parse_cli_overrides(self):
        overrides, parsed = parameters.parse_cli_overrides(
            ["job.json", "--tolerance", "0.5", "--in-plane", "--workers", "2"]
        )
        assert overrides == {"tolerance": 0.5, "in_plane": True, "workers": 2}
        assert parsed.job == "job.json"
        assert parsed.out_dir == "exports"

    def test_negated_flags_override_json_config(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"in_plane": True, "strict": True}))
        overrides, _ = parameters.parse_cli_overrides(["job.json", "--no-in-plane", "--no-strict"])
        assert overrides == {"in_plane": False, "strict": False}

        params = parameters.load_parameters(config_path, cli_overrides=overrides)
        assert params.in_plane is False
        assert params.strict is False

    def test_flags_left_unset_keep_json_values(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"in_plane": True, "strict": True}))
        overrides, _ = parameters.parse_cli_overrides(["job.json"])
        assert overrides == {}
        params = parameters.load_parameters(config_path, cli_overrides=overrides)
        assert params.in_plane is True
        assert params.strict is True

    def test_roundtrip(self):
        params = ProjectionParameters(tolerance=0.3, in_plane=True, workers=2, strict=True)
        assert ProjectionParameters.from_dict(params.to_dict()) == params


# ---------------------------------------------------------------------------
# Job and manifest files
# ---------------------------------------------------------------------------


class TestJobFiles:
    def test_load_job(self, tmp_path):
        job = export.load_job(_write_job(tmp_path / "job.json"))
        assert job.normal == (0.0, 0.0, 1.0)
        assert len(job.curves) == 3
        assert isinstance(job.curves[0], LineCurve)
        assert isinstance(job.curves[2], ArcCurve)

    def test_save_and_reload_job(self, tmp_path):
        job = export.load_job(_write_job(tmp_path / "job.json"))
        copy_path = tmp_path / "copy.json"
        export.save_job(job, copy_path)
        again = export.load_job(copy_path)
        assert again.curves == job.curves
        assert again.origin == job.origin

    @pytest.mark.parametrize(
        "payload",
        [[], {"curves": []}, {"plane": {"normal": [0, 0, 1]}}, {"plane": {"normal": [0, 0, 1], "origin": [0, 0, 0]}, "curves": {}}],
    )
    def test_malformed_jobs(self, payload):
        with pytest.raises(ValueError):
            export.job_from_dict(payload)

    def test_missing_job_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            export.load_job(tmp_path / "nope.json")

    def test_manifest_contents(self, tmp_path):
        job = export.load_job(_write_job(tmp_path / "job.json"))
        plane = job.build_plane()
        result = ProjectionPipeline().run(plane, job.curves, 0.01)
        destination = tmp_path / "manifest.json"
        export.export_manifest(result, plane, destination)

        data = json.loads(destination.read_text())
        assert data["curve_count"] == 3
        assert data["plane"]["normal"] == [0.0, 0.0, 1.0]
        assert data["failures"][0]["curve_index"] == 1
        first = data["segments"][0]
        assert first["curve_index"] == 0
        assert first["start"] == [0.0, 0.0, 0.0]
        assert first["end"] == [10.0, 0.0, 0.0]
        assert math.isclose(first["length"], 10.0)
        assert first["local"] == [[0.0, 0.0], [10.0, 0.0]]
        assert [s["index"] for s in data["segments"]] == list(range(len(data["segments"])))
        assert {s["curve_index"] for s in data["segments"]} == {0, 2}


# ---------------------------------------------------------------------------
# CLI
# ---------------------------------------------------------------------------


class TestCli:
    def test_writes_manifest(self, tmp_path):
        job_path = _write_job(tmp_path / "job.json")
        out_dir = tmp_path / "out"
        code = cli.main([str(job_path), "--out-dir", str(out_dir), "--manifest-name", "m.json"])
        assert code == cli.EXIT_OK
        data = json.loads((out_dir / "m.json").read_text())
        assert len(data["failures"]) == 1

    def test_strict_mode_reports_curve_failures(self, tmp_path):
        job_path = _write_job(tmp_path / "job.json")
        code = cli.main([str(job_path), "--out-dir", str(tmp_path / "out"), "--strict"])
        assert code == cli.EXIT_CURVE_FAILURES
        assert (tmp_path / "out" / "projection_manifest.json").exists()

    def test_zero_normal_is_rejected_before_projection(self, tmp_path):
        job_path = _write_job(tmp_path / "job.json", normal=(0.0, 0.0, 0.0))
        out_dir = tmp_path / "out"
        code = cli.main([str(job_path), "--out-dir", str(out_dir)])
        assert code == cli.EXIT_INVALID_INPUT
        assert not out_dir.exists()

    def test_non_finite_arc_angle_is_a_curve_failure(self, tmp_path):
        curves = [
            {"type": "line", "start": [0, 0, 0], "end": [1, 0, 0]},
            {"type": "arc", "center": [0, 0, 0], "normal": [0, 0, 1], "radius": 1,
             "start_angle": 0, "end_angle": math.inf},
        ]
        job_path = _write_job(tmp_path / "job.json", curves=curves)
        out_dir = tmp_path / "out"
        code = cli.main([str(job_path), "--out-dir", str(out_dir)])
        assert code == cli.EXIT_OK
        data = json.loads((out_dir / "projection_manifest.json").read_text())
        assert [f["curve_index"] for f in data["failures"]] == [1]
        assert len(data["segments"]) == 1

    def test_no_strict_overrides_strict_config(self, tmp_path):
        config_path = tmp_path / "config.json"
        config_path.write_text(json.dumps({"strict": True}))
        job_path = _write_job(tmp_path / "job.json")
        argv = [str(job_path), "--config", str(config_path), "--out-dir", str(tmp_path / "out")]
        assert cli.main(argv) == cli.EXIT_CURVE_FAILURES
        assert cli.main(argv + ["--no-strict"]) == cli.EXIT_OK

    def test_missing_job_is_rejected(self, tmp_path):
        code = cli.main([str(tmp_path / "missing.json"), "--out-dir", str(tmp_path / "out")])
        assert code == cli.EXIT_INVALID_INPUT


# ---------------------------------------------------------------------------
# FreeCAD persistence
# ---------------------------------------------------------------------------


@pytest.mark.skipif(_FREECAD_AVAILABLE, reason="FreeCAD is available")
def test_freecad_export_requires_freecad(xy_plane):
    result = ProjectionPipeline().run(xy_plane, [LineCurve((0.0, 0.0, 0.0), (1.0, 0.0, 0.0))], 0.01)
    with pytest.raises(RuntimeError):
        export.export_freecad(result, xy_plane)


@requires_freecad
class TestFreeCADExport:
    def test_segments_become_sketch_lines(self, tilted_plane):
        import FreeCAD  # type: ignore

        doc = FreeCAD.newDocument("ProjectionTest")
        try:
            curves = [
                LineCurve((0.0, 0.0, 5.0), (10.0, 0.0, 5.0)),
                ArcCurve((0.0, 0.0, 0.0), (0.0, 0.0, 1.0), 3.0, 0.0, math.pi),
            ]
            result = ProjectionPipeline().run(tilted_plane, curves, 0.01)
            sketch = export.export_freecad(result, tilted_plane, doc=doc, label="Projected")
            assert sketch.GeometryCount == len(result.segments)
            base = sketch.Placement.Base
            assert math.isclose(base.x, tilted_plane.origin[0], abs_tol=1e-9)
            assert math.isclose(base.y, tilted_plane.origin[1], abs_tol=1e-9)
            assert math.isclose(base.z, tilted_plane.origin[2], abs_tol=1e-9)
        finally:
            FreeCAD.closeDocument(doc.Name)

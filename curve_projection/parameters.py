"""Configuration stack for curve projection runs.

Parameters are layered from lowest to highest precedence:

1. Built-in defaults (:class:`ProjectionParameters`).
2. JSON file: persistent per-project settings.
3. CLI overrides: runtime tweaks for automation/headless workflows.

Everything here is pure Python so it can be used inside or outside FreeCAD.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple
import logging
import json
import math


@dataclass(slots=True)
class ProjectionParameters:
    """Canonical set of adjustable projection settings."""

    tolerance: float = 0.01  # Max chordal error, model units
    in_plane: bool = False  # Input points already lie in the target plane
    workers: int = 1
    strict: bool = False  # Treat per-curve failures as a failed run (CLI exit code)
    group_label: str = "ProjectedCurves"
    manifest_name: str = "projection_manifest.json"

    def validate(self) -> None:
        if not math.isfinite(self.tolerance) or self.tolerance <= 0:
            raise ValueError("Tolerance must be a positive number")
        if self.workers < 1:
            raise ValueError("Workers must be at least 1")
        if not self.group_label:
            raise ValueError("Group label cannot be empty")
        if not self.manifest_name:
            raise ValueError("Manifest name cannot be empty")

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ProjectionParameters":
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            logging.warning("Ignoring unknown parameters: %s", ", ".join(unknown))
        merged = {**asdict(cls()), **{k: v for k, v in data.items() if k in known}}
        params = cls(**merged)
        params.validate()
        return params


def load_json_config(path: Path | str | None) -> Dict[str, Any]:
    """Load the JSON config file or return an empty dict when no path is given."""

    if path is None:
        return {}
    json_path = Path(path)
    if not json_path.exists():
        raise FileNotFoundError(f"Config file not found: {json_path}")
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError("Top-level JSON config must be an object")
    return dict(data)


def apply_overrides(base: ProjectionParameters, overrides: Mapping[str, Any]) -> ProjectionParameters:
    """Return a copy of ``base`` with overrides applied."""

    merged = base.to_dict()
    for key, value in overrides.items():
        if key not in merged:
            raise KeyError(f"Unknown parameter '{key}'")
        merged[key] = value
    return ProjectionParameters.from_dict(merged)


def build_arg_parser():
    import argparse

    parser = argparse.ArgumentParser(description="Project curves onto a plane as line segments")
    parser.add_argument("job", type=str, help="Path to the JSON job (plane + curves)")
    parser.add_argument("--config", type=str, help="Path to JSON config", default=None)
    parser.add_argument("--out-dir", type=str, default="exports", help="Export folder")
    parser.add_argument("--manifest-name", type=str, help="Manifest file name")
    parser.add_argument("--tolerance", type=float, help="Maximum chordal error")
    parser.add_argument("--workers", type=int, help="Worker threads for per-curve processing")
    parser.add_argument(
        "--in-plane",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Input curves already lie in the plane (skip orthogonal projection)",
    )
    parser.add_argument(
        "--strict",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Exit with a failure status when any curve cannot be projected",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def parse_cli_overrides(
    args: Optional[Iterable[str]] = None,
) -> Tuple[Dict[str, Any], Any]:
    """Parse CLI-style overrides using argparse conventions."""

    parser = build_arg_parser()
    parsed, unknown = parser.parse_known_args(args=None if args is None else list(args))
    if unknown:
        logging.info("Ignoring unknown CLI args: %s", " ".join(unknown))
    overrides: Dict[str, Any] = {}
    if parsed.tolerance is not None:
        overrides["tolerance"] = parsed.tolerance
    if parsed.workers is not None:
        overrides["workers"] = parsed.workers
    if parsed.manifest_name is not None:
        overrides["manifest_name"] = parsed.manifest_name
    if parsed.in_plane is not None:
        overrides["in_plane"] = parsed.in_plane
    if parsed.strict is not None:
        overrides["strict"] = parsed.strict
    return overrides, parsed


def load_parameters(
    config_path: Path | str | None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ProjectionParameters:
    """Load parameters using the JSON → CLI precedence chain."""

    data = load_json_config(config_path)
    params = ProjectionParameters.from_dict(data)
    if cli_overrides:
        params = apply_overrides(params, cli_overrides)
    return params

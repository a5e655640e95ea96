"""Headless entry point: project the curves of a JSON job and write a manifest."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import export, parameters
from .errors import InvalidGeometry
from .pipeline import ProjectionPipeline

EXIT_OK = 0
EXIT_CURVE_FAILURES = 1
EXIT_INVALID_INPUT = 2


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    overrides, cli = parameters.parse_cli_overrides(argv)
    configure_logging(cli.verbose)

    try:
        params = parameters.load_parameters(cli.config, overrides)
        job = export.load_job(cli.job)
        plane = job.build_plane()
    except InvalidGeometry as exc:
        logging.error("Invalid projection plane: %s", exc)
        return EXIT_INVALID_INPUT
    except (OSError, ValueError, KeyError) as exc:
        logging.error("Could not load job: %s", exc)
        return EXIT_INVALID_INPUT

    logging.info(
        "Parameters: tolerance=%g in_plane=%s workers=%d",
        params.tolerance,
        params.in_plane,
        params.workers,
    )

    pipeline = ProjectionPipeline(workers=params.workers, in_plane=params.in_plane)
    result = pipeline.run(plane, job.curves, params.tolerance)

    out_dir = Path(cli.out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    export.export_manifest(result, plane, out_dir / params.manifest_name)

    if result.failures and params.strict:
        logging.error("Strict mode: %d curves failed", len(result.failures))
        return EXIT_CURVE_FAILURES
    return EXIT_OK


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

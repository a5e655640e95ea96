#!/usr/bin/env python3
"""Headless entry point for curve projection (JSON job -> JSON manifest)."""

from __future__ import annotations

import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from curve_projection.cli import main  # noqa: E402


if __name__ == "__main__":
    sys.exit(main())

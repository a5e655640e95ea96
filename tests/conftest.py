from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure repo root is importable when running pytest from any CWD.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from curve_projection.plane import build_plane  # noqa: E402


@pytest.fixture
def xy_plane():
    """Horizontal plane through the world origin."""
    return build_plane((0.0, 0.0, 1.0), (0.0, 0.0, 0.0))


@pytest.fixture
def tilted_plane():
    return build_plane((0.0, 1.0, 1.0), (1.0, -2.0, 0.5))

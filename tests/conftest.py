from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the repo root importable when pytest runs from any CWD.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from grid_panels.parameters import GridSpec, SplitPlan  # noqa: E402


@pytest.fixture
def spec() -> GridSpec:
    """The default large (L) grid: 11x10 cells at 45mm pitch."""
    return GridSpec()


@pytest.fixture
def plan() -> SplitPlan:
    return SplitPlan(columns=(4, 4, 3), rows=(4, 3, 3))

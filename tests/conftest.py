"""Pytest configuration and fixtures."""
import os
import sys

# Qt must not need a display for the drawing tests.
os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

# Ensure project root is on PYTHONPATH when running without installing
_project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if _project_root not in sys.path:
    sys.path.insert(0, _project_root)

import pytest

from rayscene.scene import Scene


# A row of vertical blockers between two control points, n of them.
FENCE_MODULE = {
    "numPoints": 2,
    "params": ["n=1:1:5:3"],
    "vars": {"dx": "`10`"},
    "objs": [
        {
            "for": "i=0:1:n-1",
            "type": "Blocker",
            "p1": {"x": "`x_1 + i*dx`", "y": "`y_1`"},
            "p2": {"x": "`x_1 + i*dx`", "y": "`y_2`"},
        }
    ],
}


@pytest.fixture
def fence_module() -> dict:
    return {k: v for k, v in FENCE_MODULE.items()}


@pytest.fixture
def scene(fence_module) -> Scene:
    return Scene(modules={"fence": fence_module}, seed=0)

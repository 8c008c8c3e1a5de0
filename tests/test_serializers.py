"""Tests for rayscene.core.serializers — scene ↔ JSON-safe dict conversion.

Covers:
  - Scene round-trip (modules, objects, scene flags)
  - Expanded objects re-derived on load, never persisted
  - Unknown object types skipped on load
  - Generic value conversion (Enum, NumPy, dataclasses)
"""

import json
from enum import Enum

import numpy as np

from rayscene.constants import SCENE_SCHEMA_VERSION
from rayscene.core.serializers import dict_to_scene, scene_to_dict, serialize_value
from rayscene.models.geometry import Point2D
from rayscene.scene import Scene
from rayscene.scene_objs import Blocker, ModuleObj, TiltedMirror


# ── Helpers ──


def _populated_scene(fence_module: dict) -> Scene:
    scene = Scene(modules={"fence": fence_module}, seed=7)
    scene.simulate_colors = True
    scene.add_obj(TiltedMirror(scene, {
        "p1": {"x": 0, "y": 0}, "p2": {"x": 10, "y": 0}, "tiltAngle": 30,
    }))
    scene.add_obj(ModuleObj(scene, {
        "module": "fence",
        "points": [{"x": 0, "y": 0}, {"x": 0, "y": 40}],
        "params": {"n": 4},
    }))
    return scene


class TestSceneRoundTrip:
    def test_roundtrip_is_stable(self, fence_module):
        data = scene_to_dict(_populated_scene(fence_module))
        restored = dict_to_scene(json.loads(json.dumps(data)))
        assert scene_to_dict(restored) == data

    def test_header_and_flags(self, fence_module):
        data = scene_to_dict(_populated_scene(fence_module))
        assert data["schema_version"] == SCENE_SCHEMA_VERSION
        assert data["randomSeed"] == 7
        assert data["simulateColors"] is True
        assert "snapToGrid" not in data

    def test_expanded_objects_not_persisted(self, fence_module):
        data = scene_to_dict(_populated_scene(fence_module))
        module_record = data["objs"][1]
        assert set(module_record) == {"type", "module", "points", "params"}

    def test_modules_re_expanded_on_load(self, fence_module):
        data = scene_to_dict(_populated_scene(fence_module))
        restored = dict_to_scene(data)
        module = restored.objs[1]
        assert isinstance(module, ModuleObj)
        assert len(module.expanded_objects) == 4

    def test_defaults_omitted(self, fence_module):
        data = scene_to_dict(_populated_scene(fence_module))
        assert data["objs"][0] == {
            "type": "TiltedMirror",
            "p1": {"x": 0.0, "y": 0.0},
            "p2": {"x": 10.0, "y": 0.0},
            "tiltAngle": 30,
        }

    def test_grid_settings(self):
        scene = Scene()
        scene.snap_to_grid = True
        scene.grid_size = 5.0
        restored = dict_to_scene(scene_to_dict(scene))
        assert restored.snap_to_grid is True
        assert restored.grid_size == 5.0


class TestLoadLeniency:
    def test_unknown_type_skipped(self):
        scene = dict_to_scene({
            "objs": [
                {"type": "Laser"},
                {"type": "Blocker", "p1": {"x": 0, "y": 0}, "p2": {"x": 1, "y": 0}},
            ],
        })
        assert len(scene.objs) == 1
        assert isinstance(scene.objs[0], Blocker)

    def test_empty_scene(self):
        scene = dict_to_scene({})
        assert scene.objs == []
        assert scene.modules == {}
        assert scene.seed is None


class _Color(Enum):
    RED = "red"


class TestSerializeValue:
    def test_enum(self):
        assert serialize_value(_Color.RED) == "red"

    def test_numpy(self):
        assert serialize_value(np.array([1.0, 2.0])) == [1.0, 2.0]
        assert serialize_value(np.float64(0.5)) == 0.5
        assert type(serialize_value(np.int64(3))) is int

    def test_dataclass(self):
        assert serialize_value([Point2D(1, 2)]) == [{"x": 1, "y": 2}]

    def test_nested_dict_keys_stringified(self):
        assert serialize_value({1: (2, 3)}) == {"1": [2, 3]}

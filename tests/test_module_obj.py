"""Tests for module instances: construction, expansion, error handling,
placement, demodulization and canvas hooks."""

from unittest.mock import MagicMock

import pytest

from rayscene.core.serializers import dict_to_scene
from rayscene.models.geometry import Point2D
from rayscene.scene import Scene
from rayscene.scene_objs import Blocker, ConstructionState, ModuleObj, TiltedMirror


# ── Helpers ──


def _fence(scene: Scene, **record) -> ModuleObj:
    data = {
        "module": "fence",
        "points": [{"x": 0, "y": 0}, {"x": 0, "y": 50}],
    }
    data.update(record)
    obj = ModuleObj(scene, data)
    scene.add_obj(obj)
    return obj


def _xs(obj: ModuleObj) -> list[float]:
    return [child.p1.x for child in obj.expanded_objects]


def _single_module_scene(objs: list, **definition) -> Scene:
    definition.setdefault("numPoints", 0)
    definition["objs"] = objs
    return Scene(modules={"m": definition}, seed=0)


# ── Construction ──


class TestConstruction:
    def test_expands_with_default_params(self, scene):
        obj = _fence(scene)
        assert obj.params == {"n": 3}
        assert len(obj.expanded_objects) == 3
        assert all(isinstance(c, Blocker) for c in obj.expanded_objects)
        assert _xs(obj) == [0.0, 10.0, 20.0]
        assert [c.p2.y for c in obj.expanded_objects] == [50.0, 50.0, 50.0]
        assert obj.get_error() is None

    def test_persisted_params_win(self, scene):
        obj = _fence(scene, params={"n": 5})
        assert len(obj.expanded_objects) == 5

    def test_undeclared_param_dropped(self, scene):
        obj = _fence(scene, params={"n": 2, "bogus": 7})
        assert obj.params == {"n": 2}
        assert len(obj.expanded_objects) == 2

    def test_missing_points_default_to_origin(self, scene):
        obj = ModuleObj(scene, {"module": "fence"})
        assert [(p.x, p.y) for p in obj.points] == [(0.0, 0.0), (0.0, 0.0)]
        assert len(obj.expanded_objects) == 3

    def test_unknown_module(self, scene):
        obj = ModuleObj(scene, {"module": "nope"})
        assert obj.get_error() == "Unknown module: 'nope'"
        assert obj.expanded_objects == []

    def test_not_done_does_not_expand(self, scene):
        obj = ModuleObj(scene, {"module": "fence", "notDone": True})
        assert obj.state is ConstructionState.COLLECTING_POINTS
        assert obj.points == []
        assert obj.expanded_objects == []

    def test_serialize(self, scene):
        record = _fence(scene).serialize()
        assert record == {
            "type": "ModuleObj",
            "module": "fence",
            "points": [{"x": 0.0, "y": 0.0}, {"x": 0.0, "y": 50.0}],
            "params": {"n": 3},
        }


# ── Expansion ──


class TestExpansion:
    def test_idempotent(self, scene):
        obj = _fence(scene)
        first = [c.serialize() for c in obj.expanded_objects]
        obj.expand_objs()
        assert [c.serialize() for c in obj.expanded_objects] == first

    def test_vars_visible_to_objs(self):
        scene = _single_module_scene(
            [{"type": "Blocker", "p1": {"x": "`a`", "y": 0}, "p2": {"x": "`a + b`", "y": 0}}],
            vars={"a": "`2*3`", "b": "`1`"},
        )
        obj = ModuleObj(scene, {"module": "m"})
        child = obj.expanded_objects[0]
        assert (child.p1.x, child.p2.x) == (6.0, 7.0)

    def test_conditional_items(self):
        scene = _single_module_scene([
            {
                "for": "i=1:1:4",
                "if": "i % 2 == 0",
                "type": "Blocker",
                "p1": {"x": "`i`", "y": 0},
                "p2": {"x": "`i`", "y": 1},
            },
        ])
        obj = ModuleObj(scene, {"module": "m"})
        assert _xs(obj) == [2.0, 4.0]

    def test_nested_loops_outer_first(self):
        scene = _single_module_scene([
            {
                "for": ["i=0:1:1", "j=0:1:1"],
                "type": "Blocker",
                "p1": {"x": "`i`", "y": "`j`"},
                "p2": {"x": "`i`", "y": "`j + 1`"},
            },
        ])
        obj = ModuleObj(scene, {"module": "m"})
        assert [(c.p1.x, c.p1.y) for c in obj.expanded_objects] == [
            (0.0, 0.0), (0.0, 1.0), (1.0, 0.0), (1.0, 1.0),
        ]

    def test_seeded_random_reproducible(self):
        definition = {
            "numPoints": 0,
            "vars": {"r": "`random()`"},
            "objs": [{"type": "Blocker", "p1": {"x": "`r`", "y": 0}, "p2": {"x": "`r`", "y": 1}}],
        }
        xs = []
        for _ in range(2):
            scene = Scene(modules={"m": definition}, seed=42)
            xs.append(_xs(ModuleObj(scene, {"module": "m"})))
        assert xs[0] == xs[1]
        assert 0.0 <= xs[0][0] < 1.0

    def test_unknown_type_clears_expansion(self):
        scene = _single_module_scene([{"type": "Laser"}])
        obj = ModuleObj(scene, {"module": "m"})
        assert obj.expanded_objects == []
        assert "Unknown scene object type: 'Laser'" in obj.get_error()

    def test_expression_error_reported(self):
        scene = _single_module_scene(
            [{"type": "Blocker", "p1": {"x": "`1 +`", "y": 0}, "p2": {"x": 0, "y": 0}}],
        )
        obj = ModuleObj(scene, {"module": "m"})
        error = obj.get_error()
        assert obj.expanded_objects == []
        assert error.startswith("error expanding object ")
        assert 'error expanding string "`1 +`"' in error

    def test_loop_too_large(self, scene):
        scene.modules["fence"].max_loop_length = 2
        obj = _fence(scene)
        assert obj.expanded_objects == []
        assert 'The length of the loop variable "i" is too large' in obj.get_error()

    def test_failed_pass_replaces_previous_result(self, scene):
        obj = _fence(scene)
        assert len(obj.expanded_objects) == 3
        scene.modules["fence"].max_loop_length = 2
        obj.expand_objs()
        assert obj.expanded_objects == []
        assert obj.get_error() is not None

    def test_child_errors_aggregated(self):
        scene = _single_module_scene([{"type": "TiltedMirror", "p1": {"x": 0, "y": 0}}])
        obj = ModuleObj(scene, {"module": "m"})
        assert len(obj.expanded_objects) == 1
        assert obj.get_error() == (
            "In expanded objects:\n"
            "objs[0] TiltedMirror: Both endpoints p1 and p2 must be defined."
        )

    def test_nested_module_instances(self):
        scene = Scene(
            modules={
                "inner": {"numPoints": 0, "objs": [
                    {"type": "Blocker", "p1": {"x": 1, "y": 1}, "p2": {"x": 2, "y": 2}},
                ]},
                "outer": {"numPoints": 0, "objs": [
                    {"for": "k=1:1:2", "type": "ModuleObj", "module": "inner"},
                ]},
            },
        )
        obj = ModuleObj(scene, {"module": "outer"})
        scene.add_obj(obj)
        assert [type(c) for c in obj.expanded_objects] == [ModuleObj, ModuleObj]
        assert len(scene.optical_objs) == 2
        assert all(isinstance(o, Blocker) for o in scene.optical_objs)


# ── Editing ──


class TestEditing:
    def test_set_param(self, scene):
        obj = _fence(scene)
        obj.set_param("n", 4)
        assert _xs(obj) == [0.0, 10.0, 20.0, 30.0]

    def test_set_param_undeclared(self, scene):
        obj = _fence(scene)
        with pytest.raises(KeyError):
            obj.set_param("m", 1)

    def test_set_point(self, scene):
        obj = _fence(scene)
        obj.set_point(0, Point2D(5, 0))
        assert _xs(obj) == [5.0, 15.0, 25.0]

    def test_move_re_expands(self, scene):
        obj = _fence(scene)
        obj.move(100, 1)
        assert _xs(obj) == [100.0, 110.0, 120.0]
        assert [c.p1.y for c in obj.expanded_objects] == [1.0, 1.0, 1.0]


# ── Control point count ──


class TestControlPointCount:
    def test_too_few_points(self, scene):
        obj = _fence(scene, points=[{"x": 1, "y": 2}])
        assert len(obj.points) == 1
        assert obj.expanded_objects == []
        assert obj.get_error() == "Module 'fence' needs 2 control points, got 1"

    def test_too_many_points(self, scene):
        obj = _fence(scene, points=[{"x": 0, "y": 0}] * 3)
        assert obj.expanded_objects == []
        assert "needs 2 control points, got 3" in obj.get_error()

    def test_no_points_allowed(self, scene):
        # Without points the template sees no x_i/y_i, so the fence fails
        # on the unknown name rather than on the point count.
        obj = _fence(scene, points=[])
        assert "needs 2 control points" not in obj.get_error()


# ── Self-referencing modules ──


class TestRecursionGuard:
    def test_module_containing_itself(self):
        scene = dict_to_scene({
            "modules": {"m": {"numPoints": 0, "objs": [{"type": "ModuleObj", "module": "m"}]}},
            "objs": [{"type": "ModuleObj", "module": "m"}],
        })
        obj = scene.objs[0]
        assert obj.expanded_objects == []
        assert obj.get_error() == "Module 'm' expands into itself: m -> m"

    def test_cycle_through_other_module(self):
        scene = Scene(modules={
            "a": {"numPoints": 0, "objs": [{"type": "ModuleObj", "module": "b"}]},
            "b": {"numPoints": 0, "objs": [{"type": "ModuleObj", "module": "a"}]},
        })
        obj = ModuleObj(scene, {"module": "a"})
        inner = obj.expanded_objects[0]
        assert inner.ancestors == ("a",)
        assert inner.expanded_objects == []
        assert obj.get_error() == (
            "In expanded objects:\n"
            "objs[0] ModuleObj: Module 'a' expands into itself: a -> b -> a"
        )


# ── Placement ──


class TestPlacement:
    def test_snapped_points_then_expand(self, scene):
        scene.snap_to_grid = True
        scene.grid_size = 20
        obj = ModuleObj.for_placement(scene, "fence")
        assert obj.state is ConstructionState.COLLECTING_POINTS

        first = obj.on_construct_mouse_down(Point2D(3, 4))
        assert first.requires_obj_bar_update is False
        assert obj.on_construct_mouse_up().is_done is False

        second = obj.on_construct_mouse_down(Point2D(21, 98))
        assert second.requires_obj_bar_update is True
        assert obj.on_construct_mouse_up().is_done is True

        assert [(p.x, p.y) for p in obj.points] == [(0, 0), (20, 100)]
        assert obj.state is ConstructionState.COMPLETE
        assert obj.params == {"n": 3}
        assert _xs(obj) == [0, 10, 20]

    def test_click_after_completion_restarts(self, scene):
        obj = _fence(scene)
        obj.on_construct_mouse_down(Point2D(7, 7))
        assert obj.state is ConstructionState.COLLECTING_POINTS
        assert len(obj.points) == 1
        assert obj.expanded_objects == []

    def test_unknown_module_finishes_immediately(self, scene):
        obj = ModuleObj.for_placement(scene, "nope")
        assert obj.on_construct_mouse_down(Point2D(0, 0)).is_done is True


# ── Demodulization ──


class TestDemodulize:
    def test_replaces_instance_in_place(self, scene):
        before = Blocker(scene, {"p1": {"x": -1, "y": 0}, "p2": {"x": -1, "y": 1}})
        after = TiltedMirror(scene, {"p1": {"x": 99, "y": 0}, "p2": {"x": 99, "y": 1}})
        scene.add_obj(before)
        obj = _fence(scene)
        scene.add_obj(after)

        moved = obj.demodulize()
        assert len(moved) == 3
        assert scene.objs == [before, *moved, after]
        assert obj not in scene.objs
        assert scene.get_error_report() is None


# ── Canvas ──


class TestCanvas:
    def test_draw_children_and_control_points(self, scene):
        obj = _fence(scene)
        renderer = MagicMock()
        obj.draw(renderer, is_above_light=False, is_hovered=False)
        assert renderer.draw_segment.call_count == 3
        assert renderer.draw_ring.call_count == 4

    def test_hit_control_point(self, scene):
        obj = _fence(scene)
        ctx = obj.hit_test(Point2D(1, 49), tolerance=5)
        assert ctx.part == 1
        assert ctx.index == 1

    def test_hit_child_body(self, scene):
        obj = _fence(scene)
        ctx = obj.hit_test(Point2D(10, 25), tolerance=2)
        assert ctx.part == 0

    def test_pointless_module_not_draggable(self):
        scene = _single_module_scene(
            [{"type": "Blocker", "p1": {"x": 0, "y": 0}, "p2": {"x": 10, "y": 0}}],
        )
        obj = ModuleObj(scene, {"module": "m"})
        ctx = obj.hit_test(Point2D(5, 1), tolerance=2)
        assert ctx.part == -1
        assert ctx.cursor == "pointer"

    def test_miss(self, scene):
        assert _fence(scene).hit_test(Point2D(500, 500), tolerance=2) is None

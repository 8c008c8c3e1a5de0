"""Module instance — a placed, parameterized occurrence of a module.

A module instance owns its control points, its parameter values and the
objects produced by the last expansion of its module definition. Any
change of points or parameters re-runs the whole expansion; the expanded
objects are never edited directly.

Persisted fields: ``module``, ``points``, ``params``, ``notDone``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar

from rayscene.constants import (
    CLICK_TOLERANCE,
    CONTROL_POINT_INNER_RADIUS,
    CONTROL_POINT_OUTER_RADIUS,
)
from rayscene.core.context import ExpansionContext
from rayscene.core.errors import (
    ControlPointCountError,
    ModuleError,
    ModuleRecursionError,
    TemplateExpansionError,
    UnknownModuleError,
)
from rayscene.models.geometry import Point2D, distance_squared
from rayscene.scene_objs.base import BaseSceneObj, DragContext
from rayscene.ui.styles.colors import CONTROL_POINT, HOVER

if TYPE_CHECKING:
    from rayscene.models.module_def import ModuleDefinition
    from rayscene.scene import Scene
    from rayscene.ui.canvas.renderer import CanvasRenderer

logger = logging.getLogger(__name__)


class ConstructionState(Enum):
    """Interactive placement progress."""
    COLLECTING_POINTS = "collecting_points"
    COMPLETE = "complete"


@dataclass
class ConstructResult:
    """Feedback of a placement event to the canvas.

    Attributes:
        is_done: Placement finished; the canvas can leave construct mode.
        requires_obj_bar_update: Parameters became available for editing.
    """
    is_done: bool = False
    requires_obj_bar_update: bool = False


class ModuleObj(BaseSceneObj):
    """Scene object expanding a module definition.

    Attributes:
        module: Name of the module in ``scene.modules``.
        points: Control points; ``x_i``/``y_i`` (1-based) in templates.
        params: Parameter name → value.
        not_done: Interactive placement is still collecting points.
        module_def: Shared definition, None if the module is unknown.
        expanded_objects: Objects from the last successful expansion.
        ancestors: Names of the enclosing modules this instance was
            expanded from, outermost first; empty for a top-level instance.
    """

    type: ClassVar[str] = "ModuleObj"
    is_optical: ClassVar[bool] = True
    serializable_defaults: ClassVar[dict[str, Any]] = {
        "module": None,
        "points": None,
        "params": None,
        "not_done": False,
    }

    def __init__(
        self,
        scene: Scene,
        record: dict | None = None,
        ancestors: tuple[str, ...] = (),
    ) -> None:
        super().__init__(scene, record)
        self.ancestors = ancestors
        self.module_def: ModuleDefinition | None = None
        self.expanded_objects: list[BaseSceneObj] = []
        if self.points is not None:
            self.points = [Point2D.coerce(p) for p in self.points]

        if not self.module:
            return
        self.module_def = scene.modules.get(self.module)
        if self.module_def is None:
            self.error = str(UnknownModuleError(self.module))
            logger.warning("Module instance refers to undefined module %r", self.module)
            return

        if self.not_done:
            if self.points is None:
                self.points = []
            return

        if self.points is None:
            self.points = [Point2D() for _ in range(self.module_def.num_points)]
        if self._init_params():
            self.expand_objs()

    @classmethod
    def for_placement(cls, scene: Scene, module_name: str) -> ModuleObj:
        """Empty instance waiting for its control points to be clicked."""
        return cls(scene, {"module": module_name, "notDone": True})

    @property
    def state(self) -> ConstructionState:
        if self.not_done:
            return ConstructionState.COLLECTING_POINTS
        return ConstructionState.COMPLETE

    # ── Parameters ──

    def _init_params(self) -> bool:
        """Fill missing parameters with their defaults, drop undeclared ones."""
        try:
            defaults = self.module_def.default_params()
        except ModuleError as err:
            self.error = str(err)
            logger.warning("Module %r has invalid params: %s", self.module, err)
            return False

        params = dict(self.params or {})
        for name in list(params):
            if name not in defaults:
                logger.warning("Dropping undeclared parameter %r of module %r", name, self.module)
                del params[name]
        for name, value in defaults.items():
            params.setdefault(name, value)
        self.params = params
        return True

    def set_param(self, name: str, value: float) -> None:
        """Change one parameter and re-expand.

        Raises:
            KeyError: If the module does not declare ``name``.
        """
        if self.params is None or name not in self.params:
            raise KeyError(f"Module {self.module!r} has no parameter {name!r}")
        self.params[name] = value
        self.expand_objs()

    # ── Control points ──

    def set_point(self, index: int, pos: Point2D) -> None:
        """Move one control point and re-expand."""
        self.points[index] = Point2D.coerce(pos)
        self.expand_objs()

    def move(self, dx: float, dy: float) -> None:
        # Templates may place objects at absolute positions, so the
        # expanded objects are re-derived from the moved points instead
        # of being translated themselves.
        if not self.points:
            return
        for point in self.points:
            point.x += dx
            point.y += dy
        self.expand_objs()

    # ── Interactive placement ──

    def on_construct_mouse_down(self, pos: Point2D) -> ConstructResult:
        """Add one grid-snapped control point; expand once all are placed."""
        if self.module_def is None:
            return ConstructResult(is_done=True)

        if not self.not_done:
            # Restart placement of an already placed instance.
            self.not_done = True
            self.points = []
            self.expanded_objects = []

        if len(self.points) < self.module_def.num_points:
            self.points.append(self.scene.snap(pos))

        if len(self.points) == self.module_def.num_points:
            self.not_done = False
            if self._init_params():
                self.expand_objs()
            return ConstructResult(requires_obj_bar_update=True)
        return ConstructResult()

    def on_construct_mouse_up(self) -> ConstructResult:
        return ConstructResult(is_done=self.state is ConstructionState.COMPLETE)

    # ── Expansion ──

    def build_context(self) -> ExpansionContext:
        """Bindings = parameters plus ``x_i``/``y_i`` for each control point.

        Raises:
            ControlPointCountError: If the instance has control points but
                not exactly as many as the module declares.
        """
        count = len(self.points or [])
        if count not in (0, self.module_def.num_points):
            raise ControlPointCountError(self.module, self.module_def.num_points, count)
        bindings: dict[str, Any] = dict(self.params or {})
        for i, point in enumerate(self.points or [], start=1):
            bindings[f"x_{i}"] = point.x
            bindings[f"y_{i}"] = point.y
        return ExpansionContext.root(
            bindings,
            max_loop_length=self.module_def.max_loop_length,
            rng=self.scene.rng,
        )

    def expand_objs(self) -> None:
        """Re-derive ``expanded_objects`` from the module definition.

        Failures are recorded in ``error``, never raised. Only a fully
        successful pass is committed; a failed pass leaves no expanded
        objects, so the instance shows its control points only.
        """
        self.error = None
        if self.module_def is None:
            self.error = str(UnknownModuleError(self.module))
            self.expanded_objects = []
            return

        try:
            ctx = self.build_context()
            ctx = ctx.child(self.module_def.vars_template.expand(ctx))
            records = self.module_def.objs_template.expand(ctx)
            objs = [self._instantiate(record) for record in records]
        except (ModuleError, TypeError, ValueError) as err:
            self.error = str(err)
            self.expanded_objects = []
            logger.warning("Expansion of module %r failed: %s", self.module, err)
            return

        self.expanded_objects = objs
        logger.debug("Module %r expanded to %d objects", self.module, len(objs))

    def _instantiate(self, record: Any) -> BaseSceneObj:
        if not isinstance(record, dict):
            raise TemplateExpansionError(record, None, f"expanded object {record!r} is not a mapping")
        type_tag = record.get("type")
        if type_tag != self.type:
            return self.scene.registry.create(type_tag, self.scene, record)

        chain = (*self.ancestors, self.module)
        if record.get("module") in chain:
            raise ModuleRecursionError([*chain, record.get("module")])
        return self.scene.registry.create(type_tag, self.scene, record, ancestors=chain)

    # ── Reports ──

    def get_error(self) -> str | None:
        if self.error:
            return self.error
        return self._aggregate("get_error")

    def get_warning(self) -> str | None:
        return self._aggregate("get_warning")

    def _aggregate(self, getter: str) -> str | None:
        lines = []
        for i, obj in enumerate(self.expanded_objects):
            message = getattr(obj, getter)()
            if message:
                lines.append(f"objs[{i}] {obj.type}: {message}")
        if lines:
            return "In expanded objects:\n" + "\n".join(lines)
        return None

    # ── Demodulization ──

    def demodulize(self) -> list[BaseSceneObj]:
        """Replace this instance in its scene by its expanded objects.

        Returns:
            The objects moved into the scene, in their scene order.
        """
        index = self.scene.objs.index(self)
        self.scene.remove_obj(index)
        objs = self.expanded_objects
        for offset, obj in enumerate(objs):
            self.scene.insert_obj(index + offset, obj)
        self.expanded_objects = []
        logger.debug("Demodulized module %r into %d objects", self.module, len(objs))
        return objs

    # ── Canvas ──

    def draw(self, renderer: CanvasRenderer, is_above_light: bool, is_hovered: bool) -> None:
        for obj in sorted(self.expanded_objects, key=lambda o: o.z_index()):
            obj.draw(renderer, is_above_light, is_hovered)

        color = HOVER if is_hovered else CONTROL_POINT
        for point in self.points or []:
            renderer.draw_ring(point, CONTROL_POINT_INNER_RADIUS, color)
            renderer.draw_ring(point, CONTROL_POINT_OUTER_RADIUS, color)

    def hit_test(self, pos: Point2D, tolerance: float = CLICK_TOLERANCE) -> DragContext | None:
        tol_sq = tolerance * tolerance
        best_index = -1
        best_dist = float("inf")
        for i, point in enumerate(self.points or []):
            d = distance_squared(pos, point)
            if d <= tol_sq and d <= best_dist:
                best_dist = d
                best_index = i
        if best_index != -1:
            target = self.points[best_index]
            return DragContext(part=1, index=best_index, target_point=Point2D(target.x, target.y))

        for obj in self.expanded_objects:
            child = obj.hit_test(pos, tolerance)
            if child is None:
                continue
            if not self.points:
                # Absolute-position module: hoverable but not draggable.
                cursor = "not-allowed" if child.target_point else "pointer"
                return DragContext(part=-1, cursor=cursor)
            return DragContext(part=0)
        return None

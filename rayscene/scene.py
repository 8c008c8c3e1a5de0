"""Scene — the objects on the canvas plus the module definitions they use.

The scene owns the random-number stream shared by every module
expansion (``random()`` in templates). Draws are consumed in
template-evaluation order, so a fixed seed reproduces every expansion.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import numpy as np

from rayscene.constants import DEFAULT_GRID_SIZE
from rayscene.core.registry import SceneObjectRegistry, default_registry
from rayscene.models.geometry import Point2D
from rayscene.models.module_def import ModuleDefinition

if TYPE_CHECKING:
    from rayscene.scene_objs.base import BaseSceneObj

logger = logging.getLogger(__name__)


class Scene:
    """Container of scene objects and module definitions.

    Args:
        modules: Module name → definition (or its authoring dict).
        seed: Seed of the random stream; None for an unseeded stream.
        rng: Explicit random stream; overrides ``seed``.
        registry: Object factories; the built-in registry if None.
    """

    def __init__(
        self,
        modules: dict[str, ModuleDefinition | dict] | None = None,
        seed: int | None = None,
        rng: np.random.Generator | None = None,
        registry: SceneObjectRegistry | None = None,
    ) -> None:
        self.objs: list[BaseSceneObj] = []
        self.modules: dict[str, ModuleDefinition] = {}
        self.seed = seed
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self.registry = registry if registry is not None else default_registry()
        self.simulate_colors: bool = False
        self.snap_to_grid: bool = False
        self.grid_size: float = DEFAULT_GRID_SIZE
        for name, definition in (modules or {}).items():
            self.add_module(name, definition)

    # ── Modules ──

    def add_module(self, name: str, definition: ModuleDefinition | dict) -> ModuleDefinition:
        if isinstance(definition, dict):
            definition = ModuleDefinition.from_dict(definition)
        self.modules[name] = definition
        return definition

    # ── Objects ──

    def create_obj(self, record: dict) -> BaseSceneObj:
        """Build an object from a record via the registry.

        Raises:
            UnknownTypeError: If the record's ``type`` is not registered.
        """
        return self.registry.create(record.get("type"), self, record)

    def add_obj(self, obj: BaseSceneObj) -> None:
        self.objs.append(obj)

    def insert_obj(self, index: int, obj: BaseSceneObj) -> None:
        self.objs.insert(index, obj)

    def remove_obj(self, index: int) -> BaseSceneObj:
        obj = self.objs.pop(index)
        logger.debug("Removed %s at index %d", obj.type, index)
        return obj

    @property
    def optical_objs(self) -> list[BaseSceneObj]:
        """Optical objects with every module replaced by its expansion."""
        result: list[BaseSceneObj] = []
        self._collect_optical(self.objs, result)
        return result

    def _collect_optical(self, objs: list[BaseSceneObj], out: list[BaseSceneObj]) -> None:
        for obj in objs:
            expanded = getattr(obj, "expanded_objects", None)
            if expanded is not None:
                self._collect_optical(expanded, out)
            elif obj.is_optical:
                out.append(obj)

    # ── Canvas ──

    def snap(self, pos: Point2D) -> Point2D:
        """Position snapped to the grid when grid snapping is on."""
        if not self.snap_to_grid:
            return Point2D(pos.x, pos.y)
        g = self.grid_size
        return Point2D(round(pos.x / g) * g, round(pos.y / g) * g)

    # ── Reports ──

    def get_error_report(self) -> str | None:
        """Errors of all top-level objects, one block per failing object."""
        lines = []
        for i, obj in enumerate(self.objs):
            error = obj.get_error()
            if error:
                lines.append(f"objs[{i}] {obj.type}: {error}")
        return "\n".join(lines) if lines else None

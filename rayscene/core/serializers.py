"""Serialization utilities — scene ↔ JSON-safe dict conversion.

Only the plain serializable field set of each object is persisted; the
expanded objects of module instances are not, they are re-derived on
load. Used by the command line entry point and for scene files.
"""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

import numpy as np

from rayscene.constants import SCENE_SCHEMA_VERSION
from rayscene.core.errors import UnknownTypeError
from rayscene.models.module_def import ModuleDefinition

if TYPE_CHECKING:
    from rayscene.core.registry import SceneObjectRegistry
    from rayscene.scene import Scene

logger = logging.getLogger(__name__)


# =====================================================================
# Generic helpers
# =====================================================================


def serialize_value(val: Any) -> Any:
    """Convert a value to a JSON-safe type."""
    if val is None:
        return None
    if isinstance(val, Enum):
        return val.value
    if isinstance(val, np.ndarray):
        return val.tolist()
    if isinstance(val, np.generic):
        return val.item()
    if dataclasses.is_dataclass(val) and not isinstance(val, type):
        return {f.name: serialize_value(getattr(val, f.name)) for f in dataclasses.fields(val)}
    if isinstance(val, (list, tuple)):
        return [serialize_value(v) for v in val]
    if isinstance(val, dict):
        return {str(k): serialize_value(v) for k, v in val.items()}
    if isinstance(val, (int, float, str, bool)):
        return val
    return str(val)


# =====================================================================
# Module definitions
# =====================================================================


def module_def_to_dict(definition: ModuleDefinition) -> dict:
    return definition.to_dict()


def dict_to_module_def(data: dict) -> ModuleDefinition:
    return ModuleDefinition.from_dict(data or {})


# =====================================================================
# Scene
# =====================================================================


def scene_to_dict(scene: Scene) -> dict:
    """Serialize a scene to a JSON-safe dict with ``schema_version`` embedded."""
    d: dict[str, Any] = {
        "schema_version": SCENE_SCHEMA_VERSION,
        "modules": {name: module_def_to_dict(m) for name, m in scene.modules.items()},
        "objs": [obj.serialize() for obj in scene.objs],
    }
    if scene.seed is not None:
        d["randomSeed"] = scene.seed
    if scene.simulate_colors:
        d["simulateColors"] = True
    if scene.snap_to_grid:
        d["snapToGrid"] = True
        d["gridSize"] = scene.grid_size
    return d


def dict_to_scene(data: dict, registry: SceneObjectRegistry | None = None) -> Scene:
    """Deserialize a scene.

    Modules are loaded before objects so module instances find their
    definitions. A record with an unregistered type is skipped with a
    warning; the rest of the scene still loads.

    Args:
        data: JSON-parsed dict.
        registry: Object factories; the built-in registry if None.

    Returns:
        Reconstructed Scene with every module instance expanded.
    """
    from rayscene.scene import Scene

    data = dict(data)
    data.pop("schema_version", None)

    scene = Scene(
        modules={name: dict_to_module_def(m) for name, m in data.get("modules", {}).items()},
        seed=data.get("randomSeed"),
        registry=registry,
    )
    scene.simulate_colors = bool(data.get("simulateColors", False))
    scene.snap_to_grid = bool(data.get("snapToGrid", False))
    scene.grid_size = data.get("gridSize", scene.grid_size)

    for i, record in enumerate(data.get("objs", [])):
        try:
            scene.add_obj(scene.create_obj(record))
        except UnknownTypeError as err:
            logger.warning("Skipping objs[%d]: %s", i, err)
    return scene

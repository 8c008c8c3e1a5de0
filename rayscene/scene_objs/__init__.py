"""Concrete scene object types."""

from rayscene.scene_objs.base import BaseFilter, BaseSceneObj, DragContext, RayResponse
from rayscene.scene_objs.blocker import Blocker
from rayscene.scene_objs.module_obj import ConstructionState, ConstructResult, ModuleObj
from rayscene.scene_objs.tilted_mirror import TiltedMirror

SCENE_OBJ_CLASSES: tuple[type[BaseSceneObj], ...] = (
    TiltedMirror,
    Blocker,
    ModuleObj,
)

__all__ = [
    "BaseFilter",
    "BaseSceneObj",
    "Blocker",
    "ConstructResult",
    "ConstructionState",
    "DragContext",
    "ModuleObj",
    "RayResponse",
    "SCENE_OBJ_CLASSES",
    "TiltedMirror",
]

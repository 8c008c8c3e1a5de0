"""Scene object registry — type tag → factory.

Every scene object is built through a registry, both when a scene file is
loaded and when a module instance turns expanded records into live
objects. The set of tags is closed (:class:`SceneObjectKind`) and
:meth:`SceneObjectRegistry.validate` checks at startup that each one has
exactly one factory.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any

from rayscene.core.errors import DuplicateTypeError, UnknownTypeError

if TYPE_CHECKING:
    from rayscene.scene import Scene
    from rayscene.scene_objs.base import BaseSceneObj

logger = logging.getLogger(__name__)

SceneObjFactory = Callable[..., "BaseSceneObj"]


class SceneObjectKind(Enum):
    """Every concrete scene object type, by its serialized tag."""
    TILTED_MIRROR = "TiltedMirror"
    BLOCKER = "Blocker"
    MODULE_OBJ = "ModuleObj"


class SceneObjectRegistry:
    """Mapping from type tag to the factory building that object type."""

    def __init__(self) -> None:
        self._factories: dict[str, SceneObjFactory] = {}

    def register(self, type_tag: str | SceneObjectKind, factory: SceneObjFactory) -> None:
        """Register ``factory`` for ``type_tag``.

        Raises:
            DuplicateTypeError: If the tag already has a factory.
        """
        if isinstance(type_tag, SceneObjectKind):
            type_tag = type_tag.value
        if type_tag in self._factories:
            raise DuplicateTypeError(type_tag)
        self._factories[type_tag] = factory
        logger.debug("Registered scene object type %s", type_tag)

    def create(self, type_tag: Any, scene: Scene, record: dict, **kwargs: Any) -> BaseSceneObj:
        """Build a live object from a plain record.

        Extra keyword arguments are passed on to the factory.

        Raises:
            UnknownTypeError: If no factory is registered for ``type_tag``.
        """
        try:
            factory = self._factories[type_tag]
        except (KeyError, TypeError):
            raise UnknownTypeError(type_tag) from None
        return factory(scene, record, **kwargs)

    def validate(self) -> None:
        """Fail fast unless every :class:`SceneObjectKind` has a factory.

        Raises:
            ValueError: Listing the kinds without a factory.
        """
        missing = [k.value for k in SceneObjectKind if k.value not in self._factories]
        if missing:
            raise ValueError(f"No factory registered for: {', '.join(missing)}")

    def types(self) -> list[str]:
        return list(self._factories)

    def __contains__(self, type_tag: object) -> bool:
        return type_tag in self._factories


def default_registry() -> SceneObjectRegistry:
    """Registry of all built-in scene object classes, validated."""
    from rayscene.scene_objs import SCENE_OBJ_CLASSES

    registry = SceneObjectRegistry()
    for cls in SCENE_OBJ_CLASSES:
        registry.register(cls.type, cls)
    registry.validate()
    return registry

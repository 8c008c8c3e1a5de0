"""Base classes shared by every scene object.

A scene object is built from a plain record (one entry of the scene
file's ``objs`` list, or one record produced by module expansion).
``serializable_defaults`` lists the persisted fields by attribute name;
records use the camelCase form of the same names (``tilt_angle`` ↔
``tiltAngle``).

Optical objects implement the ray-interaction contract used by the
ray-tracing driver: :meth:`BaseSceneObj.intersect` and
:meth:`BaseSceneObj.respond`.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from rayscene.constants import CLICK_TOLERANCE, DEFAULT_BANDWIDTH, GREEN_WAVELENGTH
from rayscene.core.serializers import serialize_value
from rayscene.models.geometry import Point2D, Ray

if TYPE_CHECKING:
    from rayscene.scene import Scene
    from rayscene.ui.canvas.renderer import CanvasRenderer


def json_key(name: str) -> str:
    """Attribute name → record key (``tilt_angle`` → ``tiltAngle``)."""
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


@dataclass
class DragContext:
    """What part of an object the mouse is over.

    Attributes:
        part: 0 = whole object, 1..n = control point / endpoint,
              -1 = hovered but not draggable.
        index: Control point index when ``part`` selects a point.
        target_point: Position of the hovered point, if any.
        cursor: Cursor hint for the canvas.
    """
    part: int
    index: int = -1
    target_point: Point2D | None = None
    cursor: str | None = None


@dataclass
class RayResponse:
    """Outcome of a ray hitting an optical object.

    Attributes:
        is_absorbed: The incident ray ends here.
        new_rays: Additional rays spawned by the interaction.
    """
    is_absorbed: bool = False
    new_rays: list[Ray] = field(default_factory=list)


class BaseSceneObj:
    """Base class of every scene object."""

    type: ClassVar[str] = ""
    is_optical: ClassVar[bool] = False
    serializable_defaults: ClassVar[dict[str, Any]] = {}
    point_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, scene: Scene, record: dict | None = None) -> None:
        self.scene = scene
        self.error: str | None = None
        self.warning: str | None = None
        record = record or {}
        for name, default in self.serializable_defaults.items():
            value = record.get(json_key(name))
            if value is None:
                value = copy.deepcopy(default)
            elif name in self.point_fields:
                value = Point2D.coerce(value)
            else:
                value = copy.deepcopy(value)
            setattr(self, name, value)

    def serialize(self) -> dict:
        """Record of the type tag plus every field differing from its default."""
        record: dict[str, Any] = {"type": self.type}
        for name, default in self.serializable_defaults.items():
            value = getattr(self, name)
            if value != default:
                record[json_key(name)] = serialize_value(value)
        return record

    def get_error(self) -> str | None:
        return self.error

    def get_warning(self) -> str | None:
        return self.warning

    def z_index(self) -> int:
        return 0

    def move(self, dx: float, dy: float) -> None:
        for name in self.point_fields:
            point = getattr(self, name)
            if point is not None:
                point.x += dx
                point.y += dy

    def draw(self, renderer: CanvasRenderer, is_above_light: bool, is_hovered: bool) -> None:
        pass

    def hit_test(self, pos: Point2D, tolerance: float = CLICK_TOLERANCE) -> DragContext | None:
        return None

    # ── Ray-interaction contract ──

    def intersect(self, ray: Ray) -> Point2D | None:
        """Nearest point where ``ray`` meets this object, or None."""
        raise NotImplementedError(f"{self.type} is not an optical object")

    def respond(self, ray: Ray, ray_index: int, incident_point: Point2D) -> RayResponse | None:
        """Update ``ray`` in place for an incidence at ``incident_point``.

        Returns:
            None when the ray simply continues as updated.
        """
        raise NotImplementedError(f"{self.type} is not an optical object")


class BaseFilter(BaseSceneObj):
    """Optical object with optional dichroic (wavelength band) gating.

    When colour simulation is on and ``filter`` is set, only rays within
    ``bandwidth`` of ``wavelength`` interact (or only rays outside the
    band, with ``invert``).
    """

    serializable_defaults: ClassVar[dict[str, Any]] = {
        "filter": False,
        "invert": False,
        "wavelength": GREEN_WAVELENGTH,
        "bandwidth": DEFAULT_BANDWIDTH,
    }

    def check_ray_intersect_filter(self, ray: Ray) -> bool:
        dichroic_enabled = self.scene.simulate_colors and self.filter and self.wavelength
        if not dichroic_enabled:
            return True
        in_band = abs(ray.wavelength - self.wavelength) <= self.bandwidth
        return in_band != self.invert

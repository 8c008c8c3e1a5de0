"""Line blocker — absorbs every ray it intersects (optionally dichroic)."""

from __future__ import annotations

from typing import Any, ClassVar

from rayscene.models.geometry import Point2D, Ray
from rayscene.scene_objs.base import BaseFilter, RayResponse
from rayscene.scene_objs.line_obj import LineObjMixin
from rayscene.ui.styles.colors import BLOCKER, HOVER


class Blocker(LineObjMixin, BaseFilter):
    type: ClassVar[str] = "Blocker"
    is_optical: ClassVar[bool] = True
    serializable_defaults: ClassVar[dict[str, Any]] = {
        "p1": None,
        "p2": None,
        **BaseFilter.serializable_defaults,
    }

    def draw(self, renderer, is_above_light: bool, is_hovered: bool) -> None:
        if self.p1 is None or self.p2 is None:
            return
        renderer.draw_segment(self.p1, self.p2, HOVER if is_hovered else BLOCKER, width=3.0)

    def intersect(self, ray: Ray) -> Point2D | None:
        if self.check_ray_intersect_filter(ray):
            return self.intersect_shape(ray)
        return None

    def respond(self, ray: Ray, ray_index: int, incident_point: Point2D) -> RayResponse | None:
        return RayResponse(is_absorbed=True)

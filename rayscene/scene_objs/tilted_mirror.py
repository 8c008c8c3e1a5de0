"""Tilted mirror — a segment whose optical reflecting plane is rotated.

The physical segment ``p1``-``p2`` decides where rays hit; reflection is
computed about the segment direction rotated by ``tilt_angle`` [degree].
With ``tilt_angle = 0`` it is an ordinary plane mirror. Optionally
dichroic (see :class:`BaseFilter`).
"""

from __future__ import annotations

import math
from typing import Any, ClassVar

from rayscene.core.units import deg_to_rad
from rayscene.models.geometry import Point2D, Ray
from rayscene.scene_objs.base import BaseFilter, RayResponse
from rayscene.scene_objs.line_obj import LineObjMixin
from rayscene.ui.styles.colors import HOVER, MIRROR, MIRROR_POINT


class TiltedMirror(LineObjMixin, BaseFilter):
    """Line-segment mirror with a tilted reflecting plane.

    Attributes:
        p1: First endpoint.
        p2: Second endpoint.
        tilt_angle: Rotation of the reflecting plane from the segment [degree].
        filter: Dichroic mode.
        invert: Reflect rays outside (instead of inside) the band.
        wavelength: Dichroic target wavelength [nm].
        bandwidth: Dichroic half-width [nm].
    """

    type: ClassVar[str] = "TiltedMirror"
    is_optical: ClassVar[bool] = True
    serializable_defaults: ClassVar[dict[str, Any]] = {
        "p1": None,
        "p2": None,
        "tilt_angle": 0.0,
        **BaseFilter.serializable_defaults,
    }

    def draw(self, renderer, is_above_light: bool, is_hovered: bool) -> None:
        if self.p1 is None or self.p2 is None:
            return
        if self.is_degenerate:
            renderer.draw_point(self.p1, MIRROR_POINT)
            return
        renderer.draw_segment(self.p1, self.p2, HOVER if is_hovered else MIRROR)

    def intersect(self, ray: Ray) -> Point2D | None:
        if self.check_ray_intersect_filter(ray):
            return self.intersect_shape(ray)
        return None

    def respond(self, ray: Ray, ray_index: int, incident_point: Point2D) -> RayResponse | None:
        if self.p1 is None or self.p2 is None or self.is_degenerate:
            return None

        # Vector back along the incoming ray.
        rx = ray.p1.x - incident_point.x
        ry = ray.p1.y - incident_point.y

        mx = self.p2.x - self.p1.x
        my = self.p2.y - self.p1.y
        length = math.sqrt(mx * mx + my * my)
        mx /= length
        my /= length

        tilt = deg_to_rad(self.tilt_angle)
        tx = mx * math.cos(tilt) - my * math.sin(tilt)
        ty = mx * math.sin(tilt) + my * math.cos(tilt)

        ray.p1 = Point2D(incident_point.x, incident_point.y)
        ray.p2 = Point2D(
            incident_point.x + rx * (ty * ty - tx * tx) - 2 * ry * tx * ty,
            incident_point.y + ry * (tx * tx - ty * ty) - 2 * rx * tx * ty,
        )
        return None

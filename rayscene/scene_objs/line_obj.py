"""Shared behaviour of objects shaped as a line segment ``p1``-``p2``."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from rayscene.constants import CLICK_TOLERANCE
from rayscene.models.geometry import (
    Point2D,
    Ray,
    distance_squared,
    distance_to_segment_squared,
    intersection_is_on_ray,
    intersection_is_on_segment,
    lines_intersection,
)
from rayscene.scene_objs.base import DragContext

if TYPE_CHECKING:
    from rayscene.scene import Scene


class LineObjMixin:
    """Segment geometry: endpoint dragging and ray/segment intersection.

    Mix in before a :class:`BaseSceneObj` subclass.
    """

    point_fields: ClassVar[tuple[str, ...]] = ("p1", "p2")
    p1: Point2D | None
    p2: Point2D | None

    def __init__(self, scene: Scene, record: dict | None = None) -> None:
        super().__init__(scene, record)
        if self.p1 is None or self.p2 is None:
            self.error = "Both endpoints p1 and p2 must be defined."

    @property
    def is_degenerate(self) -> bool:
        """True when the segment has zero length."""
        return self.p1.x == self.p2.x and self.p1.y == self.p2.y

    def hit_test(self, pos: Point2D, tolerance: float = CLICK_TOLERANCE) -> DragContext | None:
        if self.p1 is None or self.p2 is None:
            return None
        tol_sq = tolerance * tolerance
        d1 = distance_squared(pos, self.p1)
        d2 = distance_squared(pos, self.p2)
        if d1 <= tol_sq and d1 <= d2:
            return DragContext(part=1, target_point=Point2D(self.p1.x, self.p1.y))
        if d2 <= tol_sq:
            return DragContext(part=2, target_point=Point2D(self.p2.x, self.p2.y))
        if distance_to_segment_squared(pos, self.p1, self.p2) <= tol_sq:
            return DragContext(part=0)
        return None

    def intersect_shape(self, ray: Ray) -> Point2D | None:
        """Point where the ray's half-line crosses the segment, or None."""
        if self.p1 is None or self.p2 is None:
            return None
        point = lines_intersection(ray.p1, ray.p2, self.p1, self.p2)
        if point is None:
            return None
        if intersection_is_on_segment(point, self.p1, self.p2) and intersection_is_on_ray(point, ray):
            return point
        return None

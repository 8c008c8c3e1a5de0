"""Geometry data models for the 2D optics scene.

Points and rays live in scene coordinates (canvas units, Y down).
A ray is a half-line: it starts at ``p1`` and passes through ``p2``;
only the direction ``p2 - p1`` is meaningful, not its length.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from rayscene.constants import GREEN_WAVELENGTH, MIN_SHOT_LENGTH_SQUARED


@dataclass
class Point2D:
    """2D point in scene coordinates."""
    x: float = 0.0
    y: float = 0.0

    @classmethod
    def coerce(cls, value: Any) -> Point2D:
        """Build a point from a ``Point2D`` or an ``{x, y}`` mapping."""
        if isinstance(value, Point2D):
            return cls(value.x, value.y)
        if isinstance(value, Mapping):
            return cls(float(value.get("x", 0.0)), float(value.get("y", 0.0)))
        raise TypeError(f"Expected a point, got {value!r}")


@dataclass
class Ray:
    """A single light ray.

    Attributes:
        p1: Origin of the ray.
        p2: Any second point on the ray, fixing its direction.
        brightness_s: S-polarized brightness.
        brightness_p: P-polarized brightness.
        wavelength: Wavelength [nm].
    """
    p1: Point2D = field(default_factory=Point2D)
    p2: Point2D = field(default_factory=lambda: Point2D(1.0, 0.0))
    brightness_s: float = 0.5
    brightness_p: float = 0.5
    wavelength: float = GREEN_WAVELENGTH

    @property
    def direction(self) -> tuple[float, float]:
        """Unnormalized direction vector ``p2 - p1``."""
        return (self.p2.x - self.p1.x, self.p2.y - self.p1.y)


def distance_squared(a: Point2D, b: Point2D) -> float:
    dx = a.x - b.x
    dy = a.y - b.y
    return dx * dx + dy * dy


def lines_intersection(
    a1: Point2D, a2: Point2D, b1: Point2D, b2: Point2D,
) -> Point2D | None:
    """Intersection of the infinite lines a1-a2 and b1-b2.

    Returns:
        The intersection point, or None for parallel lines.
    """
    xa = a2.x - a1.x
    ya = a2.y - a1.y
    xb = b2.x - b1.x
    yb = b2.y - b1.y
    denom = xa * yb - xb * ya
    if denom == 0:
        return None
    a = a2.x * a1.y - a1.x * a2.y
    b = b2.x * b1.y - b1.x * b2.y
    return Point2D((a * xb - b * xa) / denom, (a * yb - b * ya) / denom)


def intersection_is_on_segment(p: Point2D, s1: Point2D, s2: Point2D) -> bool:
    """True if a point known to lie on line s1-s2 is within the segment."""
    return (
        (p.x - s1.x) * (p.x - s2.x) < MIN_SHOT_LENGTH_SQUARED
        and (p.y - s1.y) * (p.y - s2.y) < MIN_SHOT_LENGTH_SQUARED
    )


def intersection_is_on_ray(p: Point2D, ray: Ray) -> bool:
    """True if a point known to lie on the ray's line is ahead of its origin."""
    return (
        (p.x - ray.p1.x) * (ray.p2.x - ray.p1.x) >= 0
        and (p.y - ray.p1.y) * (ray.p2.y - ray.p1.y) >= 0
    )


def distance_to_segment_squared(p: Point2D, s1: Point2D, s2: Point2D) -> float:
    """Squared distance from a point to the closed segment s1-s2."""
    dx = s2.x - s1.x
    dy = s2.y - s1.y
    length_sq = dx * dx + dy * dy
    if length_sq == 0:
        return distance_squared(p, s1)
    t = ((p.x - s1.x) * dx + (p.y - s1.y) * dy) / length_sq
    t = max(0.0, min(1.0, t))
    return distance_squared(p, Point2D(s1.x + t * dx, s1.y + t * dy))

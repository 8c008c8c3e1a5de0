"""Angle conversions — single conversion point between authored and core values.

Scene files and templates author angles in degree; geometry code works
in radian.
"""

import math
from typing import NewType

# Angle known to be in radian
Radian = NewType('Radian', float)


def deg_to_rad(deg: float) -> Radian:
    """Degree → Radian."""
    return Radian(deg / 180.0 * math.pi)


def rad_to_deg(rad: float) -> float:
    """Radian → Degree."""
    return rad * (180.0 / math.pi)

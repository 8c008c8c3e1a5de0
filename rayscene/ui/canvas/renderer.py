"""Canvas renderer — the painter handed to every object's ``draw``.

Wraps a ``QPainter`` already targeting the canvas (widget, pixmap or
image) together with the length scale, so line widths and marker sizes
stay constant on screen at any zoom.
"""

from __future__ import annotations

from PyQt6.QtCore import QPointF, QRectF, Qt
from PyQt6.QtGui import QColor, QPainter, QPen

from rayscene.models.geometry import Point2D


class CanvasRenderer:
    """Drawing helpers over a QPainter in scene coordinates.

    Args:
        painter: Active painter.
        length_scale: Scene units per screen pixel.
    """

    def __init__(self, painter: QPainter, length_scale: float = 1.0) -> None:
        self.painter = painter
        self.length_scale = length_scale

    def draw_segment(self, p1: Point2D, p2: Point2D, color: str, width: float = 1.0) -> None:
        pen = QPen(QColor(color), width * self.length_scale)
        self.painter.setPen(pen)
        self.painter.drawLine(QPointF(p1.x, p1.y), QPointF(p2.x, p2.y))

    def draw_point(self, p: Point2D, color: str, size: float = 3.0) -> None:
        s = size * self.length_scale
        self.painter.fillRect(QRectF(p.x - s / 2, p.y - s / 2, s, s), QColor(color))

    def draw_ring(self, p: Point2D, radius: float, color: str, width: float = 1.0) -> None:
        pen = QPen(QColor(color), width * self.length_scale)
        self.painter.setPen(pen)
        self.painter.setBrush(Qt.BrushStyle.NoBrush)
        r = radius * self.length_scale
        self.painter.drawEllipse(QPointF(p.x, p.y), r, r)

"""
Geometry primitives.

The anchor-to-rectangle engine lives in ``annot8.core.geometry.engine``.
"""
from .models import CanvasOffset, Highlight, Rect, SelectionBounds, union_bounds

__all__ = [
    'CanvasOffset',
    'Highlight',
    'Rect',
    'SelectionBounds',
    'union_bounds',
]

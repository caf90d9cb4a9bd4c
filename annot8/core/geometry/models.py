from dataclasses import dataclass
from typing import Iterable, Optional


@dataclass
class Rect:
    """Axis-aligned rectangle (x, y is the top-left corner)."""

    x: float
    y: float
    width: float = 0.0
    height: float = 0.0

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y + self.height

    def translated(self, dx: float, dy: float) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.width, self.height)

    def adjusted(self, padding: float) -> "Rect":
        """Return a copy grown by ``padding`` on every side."""
        return Rect(
            self.x - padding,
            self.y - padding,
            self.width + 2 * padding,
            self.height + 2 * padding,
        )

    def contains_strict(self, x: float, y: float) -> bool:
        """Check if a point lies strictly inside (edges excluded)."""
        return self.x < x < self.right and self.y < y < self.bottom


@dataclass
class Highlight:
    """One painted rectangle of a resolved annotation."""

    x: float
    y: float
    width: float
    height: float
    id: int
    uid: str
    tag: str = ""

    @property
    def rect(self) -> Rect:
        return Rect(self.x, self.y, self.width, self.height)


@dataclass
class SelectionBounds:
    """Page-coordinate box used to position popups."""

    x: float = 0.0
    y: float = 0.0
    width: float = 0.0
    height: float = 0.0
    ready: bool = False

    @classmethod
    def from_rect(cls, rect: Rect, ready: bool = True) -> "SelectionBounds":
        return cls(rect.x, rect.y, rect.width, rect.height, ready)


@dataclass
class CanvasOffset:
    """Correction between the overlay surface origin and the root origin."""

    x: float
    y: float


def union_bounds(rects: Iterable[Rect]) -> Rect:
    """
    Compute the minimal bounding box covering every rectangle.

    Args:
        rects: Non-empty iterable of rectangles

    Returns:
        The union rectangle

    Raises:
        ValueError: If ``rects`` is empty
    """
    min_x: Optional[float] = None
    min_y: Optional[float] = None
    max_x: Optional[float] = None
    max_y: Optional[float] = None

    for rect in rects:
        if min_x is None:
            min_x, min_y, max_x, max_y = rect.x, rect.y, rect.right, rect.bottom
            continue
        min_x = min(min_x, rect.x)
        min_y = min(min_y, rect.y)
        max_x = max(max_x, rect.right)
        max_y = max(max_y, rect.bottom)

    if min_x is None:
        raise ValueError("union_bounds() requires at least one rectangle")

    return Rect(min_x, min_y, max_x - min_x, max_y - min_y)

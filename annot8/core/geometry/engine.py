"""
Resolves annotation anchors into rectangles and reconciles coordinate spaces.

Three coordinate spaces are involved:

- viewport: what the document environment reports for live layout;
- root: relative to the root element's top-left corner, used for highlights
  so they stay put when the page scrolls;
- page: viewport plus scroll, used for popup positioning.
"""
from typing import Iterable, List, Optional, Sequence, Tuple

from PyQt5.QtCore import QObject, pyqtSignal

from .models import CanvasOffset, Highlight, Rect, SelectionBounds, union_bounds
from ..anchoring.anchor_service import AnchorService
from ..annotations.models import Annotation
from ..document.environment import DocumentEnvironment, Element, TextRange
from ..errors import AnchorResolutionError
from ...utils.debounce import Debouncer
from ...utils.logging_service import get_logger

logger = get_logger(__name__)


def hit_test(highlights: Iterable[Highlight], x: float, y: float,
             padding: float = 2.0) -> Optional[Highlight]:
    """
    Find the highlight under a root-relative point.

    Boxes are grown by ``padding`` and the point must lie strictly inside.
    Overlaps resolve to the first highlight in document order.
    """
    for highlight in highlights:
        if highlight.rect.adjusted(padding).contains_strict(x, y):
            return highlight
    return None


class GeometryEngine(QObject):
    """Turns anchors into current geometry for one root element."""

    # Signals
    offset_changed = pyqtSignal(object)  # CanvasOffset or None

    def __init__(self, environment: DocumentEnvironment, anchor_service: AnchorService,
                 root: Element, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.environment = environment
        self.anchor_service = anchor_service
        self.root = root

        self.canvas: Optional[Rect] = None
        self._offset: Optional[CanvasOffset] = None

        # Offset is recomputed on the next idle tick, never inside a draw
        self._offset_debouncer = Debouncer(self.compute_canvas_offset, 0, self)

    # ------------------------------------------------------------------
    # Anchors
    # ------------------------------------------------------------------

    def resolve_range(self, annotation: Annotation) -> Optional[TextRange]:
        try:
            return self.anchor_service.deserialize(annotation.anchor, self.root)
        except AnchorResolutionError as e:
            # Document changed underneath the annotation; keep it, skip drawing
            logger.debug("Annotation %s not resolvable: %s", annotation.uid, e)
            return None

    def resolve_rects(self, annotation: Annotation) -> List[Rect]:
        """
        Current root-relative rectangles of an annotation.

        Returns an empty list when the anchor no longer matches the document.
        """
        text_range = self.resolve_range(annotation)
        if text_range is None:
            return []

        bound = self.root.bounding_rect()
        return [
            rect.translated(-bound.x, -bound.y)
            for rect in self.root.client_rects(text_range)
        ]

    # ------------------------------------------------------------------
    # Coordinate spaces
    # ------------------------------------------------------------------

    def to_root_coordinates(self, page_x: float, page_y: float) -> Tuple[float, float]:
        """Convert a page position to root-relative coordinates."""
        sx, sy = self.environment.scroll_offset()
        bound = self.root.bounding_rect()
        return page_x - sx - bound.x, page_y - sy - bound.y

    def to_page(self, viewport_rect: Rect) -> Rect:
        sx, sy = self.environment.scroll_offset()
        return viewport_rect.translated(sx, sy)

    def selection_bounds(self, viewport_rects: Sequence[Rect]) -> SelectionBounds:
        """
        Page-coordinate bounds of viewport rectangles.

        Raises:
            ValueError: If ``viewport_rects`` is empty
        """
        return SelectionBounds.from_rect(self.to_page(union_bounds(viewport_rects)))

    def range_bounds(self, text_range: TextRange) -> Optional[SelectionBounds]:
        """Page-coordinate bounds of a live range, None if it has no geometry."""
        rects = self.root.client_rects(text_range)
        if not rects:
            return None
        return self.selection_bounds(rects)

    def pointer_bounds(self, highlight: Highlight, page_x: float) -> SelectionBounds:
        """Thin box at the pointer column spanning the hit highlight's line."""
        bound = self.root.bounding_rect()
        sx, sy = self.environment.scroll_offset()
        rect = Rect(page_x - sx, highlight.y + bound.y, 2.0, highlight.height)
        return self.selection_bounds([rect])

    # ------------------------------------------------------------------
    # Canvas alignment
    # ------------------------------------------------------------------

    @property
    def canvas_offset(self) -> Optional[CanvasOffset]:
        return self._offset

    def invalidate_offset(self) -> None:
        self._offset_debouncer.cancel()
        self._offset = None

    def schedule_offset(self) -> None:
        self._offset_debouncer.trigger()

    def flush_offset(self) -> bool:
        return self._offset_debouncer.flush()

    def compute_canvas_offset(self) -> Optional[CanvasOffset]:
        """Measure root origin minus canvas origin and cache it."""
        canvas_rect = self.environment.canvas_rect()
        if canvas_rect is None:
            logger.debug("No canvas mounted, offset left unset")
            return None

        root_rect = self.root.bounding_rect()
        self._offset = CanvasOffset(root_rect.x - canvas_rect.x, root_rect.y - canvas_rect.y)
        self.offset_changed.emit(self._offset)
        return self._offset

    def measure_canvas(self) -> Rect:
        """Overlay surface box: root position with root size."""
        x, y = self.root.offset_position()
        bound = self.root.bounding_rect()
        return Rect(x, y, bound.width, bound.height)

    # ------------------------------------------------------------------
    # Draw pass
    # ------------------------------------------------------------------

    def draw(self, annotations: Iterable[Annotation]) -> List[Highlight]:
        """
        Resolve every annotation and rebuild the highlight list.

        Runs in one pass; each annotation's ``rects`` holds the result until
        the next draw.
        """
        highlights = []
        for annotation in annotations:
            annotation.rects = self.resolve_rects(annotation)
            for rect in annotation.rects:
                highlights.append(Highlight(
                    x=rect.x,
                    y=rect.y,
                    width=rect.width,
                    height=rect.height,
                    id=annotation.id,
                    uid=annotation.uid,
                    tag=annotation.tag,
                ))

        self.canvas = self.measure_canvas()

        if self._offset is None:
            self.schedule_offset()

        return highlights

    def shutdown(self) -> None:
        self._offset_debouncer.cancel()

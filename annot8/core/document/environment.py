"""
Document capabilities the engine depends on.

The geometry engine and the interaction controller never touch a live
document directly: they query elements, read geometry and clear the
selection through a ``DocumentEnvironment``.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Tuple

import fitz

from ..geometry.models import Rect
from .text_layer import TextLayer
from ...utils.logging_service import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class TextRange:
    """A live text range, as text offsets into an element's text."""

    start: int
    end: int

    @property
    def collapsed(self) -> bool:
        return self.end <= self.start


class Element:
    """
    An annotatable block of laid-out text.

    The element sits at (x, y) in page coordinates; geometry reads are
    viewport-relative, so they depend on the owning document's scroll.
    """

    def __init__(self, name: str, layer: TextLayer, x: float = 0.0, y: float = 0.0,
                 width: Optional[float] = None, height: Optional[float] = None):
        self.name = name
        self.layer = layer
        self.x = x
        self.y = y
        self._width = width
        self._height = height
        self._scroll: Callable[[], Tuple[float, float]] = lambda: (0.0, 0.0)

    def bind_scroll(self, scroll: Callable[[], Tuple[float, float]]) -> None:
        self._scroll = scroll

    def move_to(self, x: float, y: float) -> None:
        """Shift the element, as a layout change would."""
        self.x = x
        self.y = y

    def set_layer(self, layer: TextLayer) -> None:
        """Replace the element's content."""
        self.layer = layer

    @property
    def text(self) -> str:
        return self.layer.text

    def text_in(self, text_range: TextRange) -> str:
        return self.layer.text[text_range.start:text_range.end]

    def bounding_rect(self) -> Rect:
        """Viewport-relative bounding box."""
        extent = self.layer.extent()
        sx, sy = self._scroll()
        width = self._width if self._width is not None else extent.width
        height = self._height if self._height is not None else extent.height
        return Rect(self.x - sx, self.y - sy, width, height)

    def offset_position(self) -> Tuple[float, float]:
        """Position of the element in page coordinates."""
        return self.x, self.y

    def client_rects(self, text_range: TextRange) -> List[Rect]:
        """Viewport-relative rectangles covered by a text range."""
        origin = self.bounding_rect()
        return [
            rect.translated(origin.x, origin.y)
            for rect in self.layer.selection_rects(text_range.start, text_range.end)
        ]

    def __repr__(self) -> str:
        return f"Element({self.name!r}, x={self.x}, y={self.y})"


class DocumentEnvironment(ABC):
    """Query, selection and geometry access to the annotated document."""

    @abstractmethod
    def query(self, selector: str) -> Optional[Element]:
        """Return the first element matching a selector, or None."""

    def fallback_root(self) -> Optional[Element]:
        """Best-guess root when no selector matches."""
        return None

    @abstractmethod
    def body(self) -> Element:
        """The whole document."""

    @abstractmethod
    def canvas_rect(self) -> Optional[Rect]:
        """Viewport-relative box of the overlay surface, if mounted."""

    @abstractmethod
    def scroll_offset(self) -> Tuple[float, float]:
        """Current page scroll (x, y)."""

    @abstractmethod
    def clear_selection(self) -> None:
        """Drop the live text selection."""


class StaticDocumentEnvironment(DocumentEnvironment):
    """In-memory document made of named elements."""

    def __init__(self, elements: Dict[str, Element], body: Optional[Element] = None,
                 canvas: Optional[Rect] = None, fallback: Optional[str] = None):
        self.elements = dict(elements)
        self._body = body if body is not None else Element("body", TextLayer([]))
        self._canvas = canvas
        self._fallback = fallback
        self._scroll = (0.0, 0.0)
        self.selection: Optional[TextRange] = None

        for element in self._all_elements():
            element.bind_scroll(self.scroll_offset)

    @classmethod
    def from_pdf(cls, path: str, page_index: int = 0, selector: str = "article",
                 canvas: Optional[Rect] = None) -> "StaticDocumentEnvironment":
        """
        Build an environment from one page of a PDF file.

        Args:
            path: Path to the PDF file
            page_index: 0-based page index
            selector: Selector the page is registered under
            canvas: Page-coordinate box of the overlay surface

        Returns:
            Environment whose only element is the page's text
        """
        with fitz.open(path) as doc:
            page = doc.load_page(page_index)
            layer = TextLayer.from_pdf_page(page)
            width, height = page.rect.width, page.rect.height

        element = Element(selector, layer, width=width, height=height)
        return cls({selector: element}, canvas=canvas)

    def _all_elements(self) -> Iterable[Element]:
        yield self._body
        yield from self.elements.values()

    def query(self, selector: str) -> Optional[Element]:
        return self.elements.get(selector)

    def fallback_root(self) -> Optional[Element]:
        if self._fallback is None:
            return None
        return self.elements.get(self._fallback)

    def body(self) -> Element:
        return self._body

    def canvas_rect(self) -> Optional[Rect]:
        if self._canvas is None:
            return None
        sx, sy = self._scroll
        return self._canvas.translated(-sx, -sy)

    def set_canvas(self, canvas: Optional[Rect]) -> None:
        self._canvas = canvas

    def scroll_offset(self) -> Tuple[float, float]:
        return self._scroll

    def scroll_to(self, x: float, y: float) -> None:
        self._scroll = (x, y)

    def select(self, start: int, end: int) -> TextRange:
        self.selection = TextRange(start, end)
        return self.selection

    def clear_selection(self) -> None:
        self.selection = None


def find_root(environment: DocumentEnvironment, selectors: Iterable[str]) -> Element:
    """
    Pick the element annotations are anchored against.

    Configured selectors are tried in order and the first match wins; then
    the environment's own heuristic; then the whole document body.
    """
    selectors = list(selectors)
    for selector in selectors:
        element = environment.query(selector)
        if element is not None:
            logger.debug("Root found with selector %r", selector)
            return element

    element = environment.fallback_root()
    if element is not None:
        logger.debug("Root found by fallback heuristic: %r", element)
        return element

    logger.debug("No root matched %s, falling back to document body", selectors)
    return environment.body()

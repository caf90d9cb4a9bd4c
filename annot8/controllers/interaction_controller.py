"""
Controller turning raw input events into overlay state.

Selection, pointer and resize events arrive in bursts; each source is
debounced (trailing edge) before it touches state. Commands coming from the
menus (annotate, comment, erase) run immediately.
"""
from dataclasses import dataclass, field, replace
from typing import List, Optional

from PyQt5.QtCore import QObject, QPointF, Qt, pyqtSignal

from annot8.config import Annot8Config
from annot8.core.annotations import Annotation, AnnotationStore, Selection
from annot8.core.document import DocumentEnvironment, TextRange
from annot8.core.errors import Annot8Error, IdentityMismatchError
from annot8.core.geometry import CanvasOffset, Highlight, Rect, SelectionBounds
from annot8.core.geometry.engine import GeometryEngine, hit_test
from annot8.utils.debounce import Debouncer
from annot8.utils.logging_service import get_logger

logger = get_logger(__name__)

MENU_CREATE = "create"
MENU_EDIT = "edit"
SUB_MENU_COMMENTS = "comments"


@dataclass
class UiState:
    """Menu and focus state owned by the controller."""

    focus: Optional[int] = None
    menu: Optional[str] = None
    sub_menu: Optional[str] = None
    tag: str = ""


@dataclass
class OverlayState:
    """Read-only projection handed to the rendering layer."""

    annotations: List[Annotation] = field(default_factory=list)
    highlights: List[Highlight] = field(default_factory=list)
    ui: UiState = field(default_factory=UiState)
    selection: Optional[Selection] = None
    selection_bounds: SelectionBounds = field(default_factory=SelectionBounds)
    canvas: Optional[Rect] = None
    canvas_offset: Optional[CanvasOffset] = None

    @property
    def show_create_ui(self) -> bool:
        return self.ui.menu == MENU_CREATE and self.selection is not None

    @property
    def show_edit_ui(self) -> bool:
        return self.ui.menu == MENU_EDIT and self.ui.focus is not None


class InteractionController(QObject):
    """Debounced state machine for selection, focus and menus."""

    # Signals
    state_changed = pyqtSignal(object)  # OverlayState

    def __init__(self, store: AnnotationStore, geometry: GeometryEngine,
                 environment: DocumentEnvironment, config: Optional[Annot8Config] = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.store = store
        self.geometry = geometry
        self.environment = environment
        self.config = config or Annot8Config()

        self.ui = UiState()
        self.selection: Optional[Selection] = None
        self.bounds = SelectionBounds()
        self.highlights: List[Highlight] = []

        self.selection_debouncer = Debouncer(
            self._apply_selection, self.config.selection_debounce_ms, self)
        self.pointer_debouncer = Debouncer(
            self._apply_pointer_up, self.config.pointer_debounce_ms, self)
        self.resize_debouncer = Debouncer(
            self._apply_resize, self.config.resize_debounce_ms, self)
        self.bounds_debouncer = Debouncer(
            self._measure_selection_bounds, self.config.bounds_debounce_ms, self)

        self.geometry.offset_changed.connect(self._on_offset_changed)

    # ------------------------------------------------------------------
    # Projection
    # ------------------------------------------------------------------

    def snapshot(self) -> OverlayState:
        return OverlayState(
            annotations=list(self.store.annotations),
            highlights=list(self.highlights),
            ui=replace(self.ui),
            selection=self.selection,
            selection_bounds=replace(self.bounds),
            canvas=self.geometry.canvas,
            canvas_offset=self.geometry.canvas_offset,
        )

    def _emit(self):
        self.state_changed.emit(self.snapshot())

    def _on_offset_changed(self, offset):
        self._emit()

    def draw(self) -> List[Highlight]:
        """Recompute every highlight and publish the new state."""
        self.highlights = self.geometry.draw(self.store.annotations)
        self._emit()
        return self.highlights

    # ------------------------------------------------------------------
    # Raw events
    # ------------------------------------------------------------------

    def on_selection_changed(self, text_range: Optional[TextRange]) -> None:
        if self.ui.sub_menu == SUB_MENU_COMMENTS:
            self.ui.sub_menu = None
        self.bounds = SelectionBounds(ready=False)
        self.selection_debouncer.trigger(text_range)
        self._emit()

    def on_pointer_up(self, pos: QPointF) -> None:
        """Pointer released at a page-coordinate position."""
        self.ui.menu = None
        self.bounds = SelectionBounds(ready=False)
        self.pointer_debouncer.trigger(QPointF(pos))
        self._emit()

    def on_resize(self) -> None:
        self.ui.menu = None
        self.ui.sub_menu = None
        self.resize_debouncer.trigger()
        self._emit()

    def on_key_pressed(self, key: int) -> bool:
        """
        Handle a key press.

        Returns:
            True if the key was consumed
        """
        if key in (Qt.Key_Backspace, Qt.Key_Delete):
            if self.ui.focus is None or self.ui.sub_menu == SUB_MENU_COMMENTS:
                return False
            self.erase(self.ui.focus)
            return True

        if key == Qt.Key_Escape:
            self.ui.tag = ""
            self.ui.menu = None
            self.ui.sub_menu = None
            self.clear_selection()
            self._emit()
            return True

        return False

    # ------------------------------------------------------------------
    # Debounced handlers
    # ------------------------------------------------------------------

    def _apply_selection(self, text_range: Optional[TextRange]):
        root = self.geometry.root
        text = root.text_in(text_range) if text_range is not None else ""

        if text_range is None or text_range.collapsed or not text:
            self.selection = None
            self.bounds = SelectionBounds()
            self.bounds_debouncer.cancel()
            self.ui.menu = None
            self._emit()
            return

        try:
            anchor = self.geometry.anchor_service.serialize(text_range, root)
        except Annot8Error as e:
            logger.warning("Selection could not be anchored: %s", e)
            self.selection = None
            self._emit()
            return

        self.selection = Selection(text=text, range=text_range, anchor=anchor)
        self.ui.focus = None
        self.ui.menu = MENU_CREATE

        if self.config.mobile:
            # Touch devices position the popup natively
            self.bounds = SelectionBounds(ready=True)
        else:
            self.bounds = SelectionBounds(ready=False)
            self.bounds_debouncer.trigger(text_range)

        logger.debug("Selection captured: %r", text)
        self._emit()

    def _measure_selection_bounds(self, text_range: TextRange):
        if self.selection is None or self.selection.range != text_range:
            return
        bounds = self.geometry.range_bounds(text_range)
        if bounds is None:
            return
        self.bounds = bounds
        self._emit()

    def _apply_pointer_up(self, pos: QPointF):
        self.ui.focus = None

        x, y = self.geometry.to_root_coordinates(pos.x(), pos.y())
        hit = hit_test(self.highlights, x, y, self.config.hit_padding)

        if hit is None:
            self.ui.menu = None
            self._emit()
            return

        self.ui.focus = hit.id
        self.bounds = self.geometry.pointer_bounds(hit, pos.x())
        self.ui.menu = MENU_EDIT
        logger.debug("Focus on annotation %d", hit.id)
        self._emit()

    def _apply_resize(self):
        self.geometry.invalidate_offset()
        self.bounds = SelectionBounds()
        self.draw()

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    @property
    def tag(self) -> str:
        return self.ui.tag

    def set_tag(self, tag: str) -> None:
        """Update the tag draft."""
        self.ui.tag = tag or ""
        self._emit()

    @property
    def selection_bounds(self) -> SelectionBounds:
        return replace(self.bounds)

    def current_annotation(self) -> Optional[Annotation]:
        """The focused annotation, if any."""
        if self.ui.focus is None:
            return None
        try:
            return self.store.get(self.ui.focus)
        except IdentityMismatchError:
            return None

    def annotate(self, tag: Optional[str] = None,
                 id: Optional[int] = None) -> Optional[Annotation]:
        """
        Create an annotation over the selection, or retag annotation ``id``.

        Returns:
            The created or updated annotation, None if nothing changed
        """
        logger.debug("annotate(tag=%r, id=%r)", tag, id)

        tag_value = tag or self.ui.tag
        self.ui.tag = tag or ""

        result = None
        if self.selection is not None:
            result = self.store.create(self.selection, tag_value)
        elif id is not None:
            result = self.store.update(id, tag=tag)
        else:
            logger.info("annotate() with neither a selection nor an id")

        self._finish_command()
        return result

    def comment(self, id: int, comment: str) -> Optional[Annotation]:
        result = self.store.update(id, comment=comment)
        self._finish_command()
        return result

    def erase(self, id: int) -> Optional[Annotation]:
        result = self.store.delete(id)
        self._finish_command()
        return result

    def request_menu(self, menu: Optional[str]) -> None:
        """Open a sub menu, or close it if it is already open."""
        if self.ui.sub_menu == menu:
            menu = None
        self.ui.sub_menu = menu
        self._emit()

    def clear(self) -> None:
        self.ui.focus = None
        self.ui.menu = None
        self.clear_selection()
        self._emit()

    def clear_selection(self) -> None:
        self.environment.clear_selection()
        self.selection_debouncer.cancel()
        self.bounds_debouncer.cancel()
        self.selection = None
        self.ui.focus = None
        self.bounds = SelectionBounds()

    def _finish_command(self):
        self.clear_selection()
        self.ui.menu = None
        self.ui.sub_menu = None
        self.draw()

    def shutdown(self) -> None:
        for debouncer in (self.selection_debouncer, self.pointer_debouncer,
                          self.resize_debouncer, self.bounds_debouncer):
            debouncer.cancel()

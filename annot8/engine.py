"""
Engine context: wires store, geometry and controller for one document.
"""
import functools
from typing import Any, List, Optional

from PyQt5.QtCore import QObject, QPointF, pyqtSignal, pyqtSlot

from annot8.config import Annot8Config
from annot8.controllers.interaction_controller import InteractionController, OverlayState
from annot8.core.anchoring import AnchorService, TextQuoteAnchorService
from annot8.core.annotations import (
    Annotation,
    AnnotationStore,
    PersistenceAdapter,
    PersistenceDispatcher,
)
from annot8.core.document import DocumentEnvironment, Element, TextRange, find_root
from annot8.core.geometry import SelectionBounds
from annot8.core.geometry.engine import GeometryEngine
from annot8.utils.logging_service import get_logger, setup_logging

logger = get_logger(__name__)


def requires_start(default=None):
    """Make an API method a logged no-op while the engine is not running."""
    def decorator(method):
        @functools.wraps(method)
        def wrapper(self, *args, **kwargs):
            if not self._running:
                logger.warning("%s() called while the engine is not running", method.__name__)
                return default
            return method(self, *args, **kwargs)
        return wrapper
    return decorator


class Annot8Engine(QObject):
    """
    Owns every engine component for one annotated document.

    Nothing is global: create an engine per document, ``start()`` it once the
    document is ready and ``stop()`` it on teardown.
    """

    # Signals
    state_changed = pyqtSignal(object)  # OverlayState
    started = pyqtSignal()

    def __init__(self, environment: DocumentEnvironment,
                 adapter: Optional[PersistenceAdapter] = None,
                 anchor_service: Optional[AnchorService] = None,
                 config: Optional[Annot8Config] = None,
                 client: Any = None,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self.environment = environment
        self.anchor_service = anchor_service or TextQuoteAnchorService()
        self.config = config or Annot8Config()

        if self.config.debug:
            setup_logging(debug=True)

        self.persistence = PersistenceDispatcher(adapter, client, self)
        self.store = AnnotationStore(
            self.persistence, move_updated_to_end=self.config.move_updated_to_end, parent=self)

        self.root: Optional[Element] = None
        self.geometry: Optional[GeometryEngine] = None
        self.controller: Optional[InteractionController] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self) -> None:
        """Find the root, build the pipeline and read stored annotations."""
        if self._running:
            return

        self.root = find_root(self.environment, self.config.selectors)
        self.geometry = GeometryEngine(self.environment, self.anchor_service, self.root, self)
        self.controller = InteractionController(
            self.store, self.geometry, self.environment, self.config, self)
        self.controller.state_changed.connect(self.state_changed)

        self.persistence.read_finished.connect(self._on_read_finished)
        self._running = True

        logger.info("Engine started on %r", self.root)
        self.started.emit()
        self.persistence.read()

    def stop(self, timeout_ms: int = 5000) -> None:
        """Cancel pending work and wait for in-flight persistence calls."""
        if not self._running:
            return
        self._running = False

        self.controller.shutdown()
        self.geometry.shutdown()
        self.controller.state_changed.disconnect(self.state_changed)
        self.persistence.read_finished.disconnect(self._on_read_finished)

        # A later start() builds fresh ones
        self.controller.deleteLater()
        self.geometry.deleteLater()
        self.controller = None
        self.geometry = None

        if not self.persistence.wait_for_idle(timeout_ms):
            logger.warning("Persistence calls still running after %d ms", timeout_ms)
        logger.info("Engine stopped")

    @pyqtSlot(object)
    def _on_read_finished(self, data):
        if not self._running:
            return
        self.load(data)

    @requires_start()
    def load(self, data) -> None:
        """Replace all annotations, then redraw."""
        self.store.load(data)
        self.controller.clear_selection()
        self.controller.draw()

    # ------------------------------------------------------------------
    # Raw events from the host document
    # ------------------------------------------------------------------

    @requires_start()
    def selection_changed(self, text_range: Optional[TextRange]) -> None:
        self.controller.on_selection_changed(text_range)

    @requires_start()
    def pointer_up(self, x: float, y: float) -> None:
        self.controller.on_pointer_up(QPointF(x, y))

    @requires_start()
    def resized(self) -> None:
        self.controller.on_resize()

    @requires_start(default=False)
    def key_pressed(self, key: int) -> bool:
        return self.controller.on_key_pressed(key)

    # ------------------------------------------------------------------
    # API used by the menus
    # ------------------------------------------------------------------

    @requires_start()
    def annotate(self, tag: Optional[str] = None, id: Optional[int] = None) -> Optional[Annotation]:
        return self.controller.annotate(tag=tag, id=id)

    @requires_start()
    def erase(self, id: int) -> Optional[Annotation]:
        return self.controller.erase(id)

    @requires_start()
    def comment(self, id: int, comment: str) -> Optional[Annotation]:
        return self.controller.comment(id, comment)

    @requires_start()
    def menu(self, name: Optional[str]) -> None:
        self.controller.request_menu(name)

    @requires_start()
    def annotation(self) -> Optional[Annotation]:
        return self.controller.current_annotation()

    @requires_start(default="")
    def tag(self) -> str:
        return self.controller.tag

    @requires_start()
    def selection_bounds(self) -> SelectionBounds:
        return self.controller.selection_bounds

    @requires_start()
    def clear(self) -> None:
        self.controller.clear()

    def annotations(self) -> List[Annotation]:
        return list(self.store.annotations)

    @requires_start()
    def state(self) -> OverlayState:
        return self.controller.snapshot()

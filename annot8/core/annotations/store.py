"""
Ordered annotation collection with positional reindexing.
"""
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

from PyQt5.QtCore import QObject, pyqtSignal

from .models import Annotation, Selection
from .persistence import PersistenceDispatcher
from ..errors import IdentityMismatchError
from ...utils.logging_service import get_logger

logger = get_logger(__name__)


class AnnotationStore(QObject):
    """
    Owns the annotation list.

    After every mutation ``annotations[i].id == i`` holds. Positional ids
    change whenever the list changes, so callers re-resolve them after each
    operation; ``uid`` is the stable key.
    """

    # Signals
    annotations_changed = pyqtSignal()

    def __init__(self, persistence: Optional[PersistenceDispatcher] = None,
                 move_updated_to_end: bool = False, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.annotations: List[Annotation] = []
        self.persistence = persistence
        self.move_updated_to_end = move_updated_to_end
        self._by_uid: Dict[str, Annotation] = {}

    def __len__(self) -> int:
        return len(self.annotations)

    def __iter__(self) -> Iterator[Annotation]:
        return iter(self.annotations)

    def reindex(self) -> None:
        """Assign ``id = position`` and rebuild the uid mapping."""
        self._by_uid = {}
        for idx, annotation in enumerate(self.annotations):
            annotation.id = idx
            self._by_uid[annotation.uid] = annotation

    def load(self, data: Optional[Iterable[Union[Annotation, Dict[str, Any]]]]) -> None:
        """
        Replace the whole collection.

        Args:
            data: Annotations or their dict form; malformed entries are skipped
        """
        annotations = []
        for item in data or []:
            if isinstance(item, Annotation):
                annotation = item
            else:
                try:
                    annotation = Annotation.from_dict(item)
                except (ValueError, TypeError, AttributeError) as e:
                    logger.warning("Skipping malformed annotation: %s", e)
                    continue
            annotation.rects = []
            annotations.append(annotation)

        self.annotations = annotations
        self.reindex()
        logger.debug("Loaded %d annotations", len(annotations))
        self.annotations_changed.emit()

    def get(self, index: int) -> Annotation:
        """
        Resolve a positional id.

        Raises:
            IdentityMismatchError: If ``index`` is not a current position
        """
        if not isinstance(index, int) or isinstance(index, bool) \
                or not 0 <= index < len(self.annotations):
            raise IdentityMismatchError(index, len(self.annotations))
        return self.annotations[index]

    def get_by_uid(self, uid: str) -> Optional[Annotation]:
        return self._by_uid.get(uid)

    def index_of(self, uid: str) -> Optional[int]:
        annotation = self._by_uid.get(uid)
        return annotation.id if annotation is not None else None

    def to_list(self) -> List[Dict[str, Any]]:
        """Serializable snapshot, without transient geometry."""
        return [annotation.to_dict() for annotation in self.annotations]

    def create(self, selection: Optional[Selection], tag: str = "") -> Optional[Annotation]:
        """
        Create an annotation over the current selection.

        Args:
            selection: Active selection with its derived anchor
            tag: Tag for the new annotation

        Returns:
            The new annotation, or None when there is no usable selection
        """
        if selection is None or selection.is_empty or selection.anchor is None:
            logger.info("Cannot create an annotation without a selection")
            return None

        annotation = Annotation(
            quote=selection.text,
            anchor=selection.anchor,
            tag=tag or "",
        )

        self.annotations.append(annotation)
        self.reindex()
        self.annotations_changed.emit()

        if self.persistence is not None:
            self.persistence.create(self.to_list(), annotation.to_dict())
        return annotation

    def update(self, index: int, tag: Optional[str] = None,
               comment: Optional[str] = None) -> Optional[Annotation]:
        """
        Patch the tag and/or comment of an annotation.

        Fields left as None are untouched.

        Returns:
            The updated annotation, or None if ``index`` is invalid
        """
        try:
            annotation = self.get(index)
        except IdentityMismatchError as e:
            logger.error("Update aborted: %s", e)
            return None

        if tag is not None:
            annotation.tag = tag
        if comment is not None:
            annotation.comment = comment

        if self.move_updated_to_end:
            self.annotations.pop(index)
            self.annotations.append(annotation)
        self.reindex()
        self.annotations_changed.emit()

        if self.persistence is not None:
            self.persistence.update(self.to_list(), annotation.to_dict())
        return annotation

    def delete(self, index: int) -> Optional[Annotation]:
        """
        Remove an annotation by position.

        Returns:
            The removed annotation, or None if ``index`` is invalid
        """
        try:
            annotation = self.get(index)
        except IdentityMismatchError as e:
            logger.error("Delete aborted: %s", e)
            return None

        self.annotations.pop(index)
        self.reindex()
        self.annotations_changed.emit()

        if self.persistence is not None:
            self.persistence.delete(self.to_list(), annotation.to_dict())
        return annotation

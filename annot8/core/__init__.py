"""
Core logic of the overlay engine.
"""
from .errors import (
    AnchorResolutionError,
    Annot8Error,
    IdentityMismatchError,
    PersistenceError,
)
from .geometry import CanvasOffset, Highlight, Rect, SelectionBounds, union_bounds
from .document import (
    DocumentEnvironment,
    Element,
    StaticDocumentEnvironment,
    TextLayer,
    TextRange,
    find_root,
)
from .anchoring import AnchorService, TextQuoteAnchorService
from .annotations import (
    Annotation,
    AnnotationStore,
    JsonFilePersistence,
    PersistenceAdapter,
    PersistenceDispatcher,
    Selection,
)
from .geometry.engine import GeometryEngine, hit_test

__all__ = [
    'AnchorResolutionError',
    'AnchorService',
    'Annot8Error',
    'Annotation',
    'AnnotationStore',
    'CanvasOffset',
    'DocumentEnvironment',
    'Element',
    'GeometryEngine',
    'Highlight',
    'IdentityMismatchError',
    'JsonFilePersistence',
    'PersistenceAdapter',
    'PersistenceDispatcher',
    'PersistenceError',
    'Rect',
    'Selection',
    'SelectionBounds',
    'StaticDocumentEnvironment',
    'TextLayer',
    'TextQuoteAnchorService',
    'TextRange',
    'find_root',
    'hit_test',
    'union_bounds',
]

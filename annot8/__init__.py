"""
Annot8: annotation overlay engine.
"""
from .core import (
    Annotation,
    AnnotationStore,
    JsonFilePersistence,
    PersistenceAdapter,
    StaticDocumentEnvironment,
    TextQuoteAnchorService,
)
from .config import Annot8Config, is_mobile_user_agent
from .controllers import InteractionController, OverlayState
from .engine import Annot8Engine

__version__ = "0.1.0"

__all__ = [
    'Annot8Config',
    'Annot8Engine',
    'Annotation',
    'AnnotationStore',
    'InteractionController',
    'JsonFilePersistence',
    'OverlayState',
    'PersistenceAdapter',
    'StaticDocumentEnvironment',
    'TextQuoteAnchorService',
    'is_mobile_user_agent',
]

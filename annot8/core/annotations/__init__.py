"""
Annotation model, store and persistence hand-off.
"""
from .models import Annotation, Selection
from .persistence import (
    JsonFilePersistence,
    PersistenceAdapter,
    PersistenceDispatcher,
    PersistenceWorker,
)
from .store import AnnotationStore

__all__ = [
    'Annotation',
    'AnnotationStore',
    'JsonFilePersistence',
    'PersistenceAdapter',
    'PersistenceDispatcher',
    'PersistenceWorker',
    'Selection',
]

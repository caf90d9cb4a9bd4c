"""
Utility functions and helpers.
"""
from .debounce import Debouncer
from .logging_service import get_logger, setup_logging

__all__ = [
    'Debouncer',
    'get_logger',
    'setup_logging',
]

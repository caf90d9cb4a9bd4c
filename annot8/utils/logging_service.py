"""
Logging setup for the overlay engine.

Every module logs through ``get_logger(__name__)``; ``setup_logging`` is
called once by the host application (the engine calls it when the debug
flag is set).
"""

import logging
from typing import Optional

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Module-level flag to track if logging has been set up
_logging_initialized = False


def setup_logging(debug: bool = False, log_level: Optional[int] = None) -> None:
    """
    Configure the ``annot8`` logger hierarchy.

    Args:
        debug: Log at DEBUG level instead of INFO.
        log_level: Explicit level, overrides ``debug``.
    """
    global _logging_initialized

    if log_level is None:
        log_level = logging.DEBUG if debug else logging.INFO

    package_logger = logging.getLogger("annot8")
    package_logger.setLevel(log_level)

    if _logging_initialized:
        return

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    package_logger.addHandler(console_handler)

    _logging_initialized = True


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance with the specified name.

    Usage:
        from annot8.utils.logging_service import get_logger
        logger = get_logger(__name__)
    """
    return logging.getLogger(name)

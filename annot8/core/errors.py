"""
Exception types raised inside the overlay engine.

None of these escape the engine's public operations: they are caught at the
operation boundary and logged.
"""


class Annot8Error(Exception):
    """Base class for all engine errors."""


class AnchorResolutionError(Annot8Error):
    """An anchor no longer maps onto the live document content."""

    def __init__(self, message: str, anchor=None):
        super().__init__(message)
        self.anchor = anchor


class PersistenceError(Annot8Error):
    """A persistence adapter call failed."""

    def __init__(self, operation: str, cause: Exception):
        super().__init__(f"{operation} failed: {cause}")
        self.operation = operation
        self.cause = cause


class IdentityMismatchError(Annot8Error):
    """An operation referenced an annotation id outside the current bounds."""

    def __init__(self, index, size: int):
        super().__init__(f"annotation id {index!r} out of range (size={size})")
        self.index = index
        self.size = size

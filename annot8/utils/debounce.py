"""
Trailing-edge debouncing on the Qt event loop.
"""
from typing import Callable, Optional

from PyQt5.QtCore import QObject, QTimer


class Debouncer(QObject):
    """
    Coalesces bursts of calls into one trailing call.

    Each ``trigger`` restarts a single-shot timer and replaces the pending
    arguments, so at most one call is ever pending and it runs with the data
    of the last trigger. ``flush`` and ``cancel`` settle the pending call
    without waiting for the timer.
    """

    def __init__(self, callback: Callable, interval_ms: int,
                 parent: Optional[QObject] = None):
        super().__init__(parent)
        self._callback = callback
        self._pending = None

        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.setInterval(interval_ms)
        self._timer.timeout.connect(self._fire)

    @property
    def interval(self) -> int:
        return self._timer.interval()

    @property
    def is_pending(self) -> bool:
        return self._pending is not None

    def trigger(self, *args, **kwargs) -> None:
        self._pending = (args, kwargs)
        self._timer.start()  # restarts when already active

    def cancel(self) -> None:
        self._timer.stop()
        self._pending = None

    def flush(self) -> bool:
        """
        Run the pending call now.

        Returns:
            True if a call was pending
        """
        if self._pending is None:
            return False
        self._timer.stop()
        self._fire()
        return True

    def _fire(self):
        if self._pending is None:
            return
        args, kwargs = self._pending
        self._pending = None
        self._callback(*args, **kwargs)

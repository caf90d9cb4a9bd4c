"""
Hand-off of annotation changes to a pluggable persistence adapter.

Adapter calls run one at a time, in issue order, on short-lived worker
threads against plain-dict snapshots, so slow storage never blocks the event
loop and never sees live engine state. Results come back through queued signals.
"""
import asyncio
import hashlib
import inspect
import json
import os
import tempfile
import time
from collections import deque
from typing import Any, Deque, Dict, List, Optional

from PyQt5.QtCore import QObject, QThread, pyqtSignal, pyqtSlot

from ..errors import PersistenceError
from ...utils.logging_service import get_logger

logger = get_logger(__name__)

OPERATIONS = ('read', 'create', 'update', 'delete')


class PersistenceAdapter:
    """
    Base class for storage backends.

    Every method is optional; a missing one makes that operation a no-op.
    Methods may return a plain value or an awaitable::

        read(client) -> list of annotation dicts
        create(client, current_list, annotation)
        update(client, current_list, annotation)
        delete(client, current_list, annotation)
    """


class JsonFilePersistence(PersistenceAdapter):
    """Stores the whole annotation list of a document in one JSON file."""

    def __init__(self, document_key: str, directory: Optional[str] = None):
        self.document_key = document_key
        self._directory = directory

    def get_app_data_dir(self) -> str:
        """
        Get or create the directory annotation files live in.

        Returns:
            Path to the annotations directory
        """
        if self._directory:
            os.makedirs(self._directory, exist_ok=True)
            return self._directory

        if os.name == 'nt':  # Windows
            base_dir = os.environ.get('APPDATA', os.path.expanduser('~'))
        else:  # macOS, Linux
            base_dir = os.path.expanduser('~/.local/share')

        app_dir = os.path.join(base_dir, 'Annot8', 'annotations')
        os.makedirs(app_dir, exist_ok=True)
        self._directory = app_dir
        return app_dir

    def get_json_path(self) -> str:
        """JSON file path for the current document."""
        # Hash the key so any document identifier makes a valid filename
        key_hash = hashlib.md5(self.document_key.encode()).hexdigest()
        return os.path.join(self.get_app_data_dir(), f"{key_hash}.json")

    def read(self, client) -> List[Dict[str, Any]]:
        file_path = self.get_json_path()
        if not os.path.exists(file_path):
            return []

        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)

        stored_key = data.get('document')
        if stored_key != self.document_key:
            logger.warning("Annotation file %s belongs to %r", file_path, stored_key)

        return data.get('annotations', [])

    def _save(self, current_list: List[Dict[str, Any]]) -> None:
        data = {
            'document': self.document_key,
            'annotations': current_list,
        }
        file_path = self.get_json_path()

        # Replaced atomically; the file is never left half written
        fd, tmp_path = tempfile.mkstemp(
            prefix='.annot8-', suffix='.tmp', dir=os.path.dirname(file_path))
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, file_path)
        except Exception:
            os.unlink(tmp_path)
            raise

    def create(self, client, current_list, annotation) -> None:
        self._save(current_list)

    def update(self, client, current_list, annotation) -> None:
        self._save(current_list)

    def delete(self, client, current_list, annotation) -> None:
        self._save(current_list)


async def _resolve(awaitable):
    return await awaitable


class PersistenceWorker(QThread):
    """Worker thread running one adapter call."""

    # Signals
    succeeded = pyqtSignal(str, object)  # operation, result
    failed = pyqtSignal(str, object)  # operation, PersistenceError

    def __init__(self, operation: str, method, args: tuple, parent=None):
        super().__init__(parent)
        self.operation = operation
        self._method = method
        self._args = args

    def run(self):
        """Execute the adapter call in a background thread."""
        try:
            result = self._method(*self._args)
            if inspect.isawaitable(result):
                result = asyncio.run(_resolve(result))
        except Exception as e:
            self.failed.emit(self.operation, PersistenceError(self.operation, e))
            return
        self.succeeded.emit(self.operation, result)


class PersistenceDispatcher(QObject):
    """
    Fire-and-forget front for a persistence adapter.

    Calls run one at a time in the order they were issued, so a later
    snapshot can never be overwritten by an earlier one.
    """

    # Signals
    read_finished = pyqtSignal(object)  # list of annotation dicts
    operation_finished = pyqtSignal(str, object)  # operation, result
    operation_failed = pyqtSignal(str, object)  # operation, PersistenceError

    def __init__(self, adapter: Optional[PersistenceAdapter] = None,
                 client: Any = None, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.adapter = adapter
        self.client = client
        self._queue: Deque[PersistenceWorker] = deque()
        self._active: Optional[PersistenceWorker] = None

    def supports(self, operation: str) -> bool:
        return self.adapter is not None and callable(getattr(self.adapter, operation, None))

    @property
    def pending_count(self) -> int:
        return len(self._queue) + (self._active is not None)

    def read(self) -> Optional[PersistenceWorker]:
        return self._dispatch('read', self.client)

    def create(self, current_list, annotation) -> Optional[PersistenceWorker]:
        return self._dispatch('create', self.client, current_list, annotation)

    def update(self, current_list, annotation) -> Optional[PersistenceWorker]:
        return self._dispatch('update', self.client, current_list, annotation)

    def delete(self, current_list, annotation) -> Optional[PersistenceWorker]:
        return self._dispatch('delete', self.client, current_list, annotation)

    def _dispatch(self, operation: str, *args) -> Optional[PersistenceWorker]:
        if not self.supports(operation):
            logger.debug("Adapter has no %s(), skipping", operation)
            return None

        worker = PersistenceWorker(operation, getattr(self.adapter, operation), args)
        worker.succeeded.connect(self._on_succeeded)
        worker.failed.connect(self._on_failed)
        worker.finished.connect(self._on_worker_finished)
        self._queue.append(worker)
        self._start_next()
        return worker

    def _start_next(self):
        if self._active is not None or not self._queue:
            return
        self._active = self._queue.popleft()
        self._active.start()

    def _retire(self, worker: PersistenceWorker):
        # finished is emitted just before the thread returns
        worker.wait()
        self._active = None
        worker.deleteLater()
        self._start_next()

    @pyqtSlot(str, object)
    def _on_succeeded(self, operation: str, result):
        logger.debug("Persistence %s finished", operation)
        if operation == 'read':
            self.read_finished.emit(result)
        self.operation_finished.emit(operation, result)

    @pyqtSlot(str, object)
    def _on_failed(self, operation: str, error):
        # Local state stays as it is; no retry
        logger.error("Persistence %s failed: %s", operation, error)
        self.operation_failed.emit(operation, error)

    @pyqtSlot()
    def _on_worker_finished(self):
        worker = self.sender()
        if worker is not None and worker is self._active:
            self._retire(worker)

    def wait_for_idle(self, timeout_ms: int = 5000) -> bool:
        """
        Block until every queued call has run.

        Returns:
            True if the queue drained within the timeout
        """
        deadline = time.monotonic() + timeout_ms / 1000.0
        while self._active is not None:
            remaining = max(0, int((deadline - time.monotonic()) * 1000))
            if not self._active.wait(remaining):
                return False
            self._retire(self._active)
        return True

"""
Network Worker - runs blocking remote-authority calls in background threads.

Fetches and outbound pushes go through here so the Qt event loop never
blocks. Completion is reported through Qt signals; receivers living in the
main thread get them queued onto the event loop, so every state change still
happens on the main thread.
"""

from concurrent.futures import ThreadPoolExecutor, Future
from datetime import datetime
from typing import Callable, Optional
import itertools
import sys

from PySide6.QtCore import QObject, Signal


def _debug_print(msg: str) -> None:
    timestamp = datetime.now().strftime("%H:%M:%S")
    print(f"[{timestamp}] WORKER: {msg}", file=sys.stderr)


class NetworkWorker(QObject):
    """
    Runs remote operations in a thread pool.

    Signals:
        operation_finished(operation_id, result)
        operation_failed(operation_id, exception)
    """

    operation_finished = Signal(str, object)
    operation_failed = Signal(str, object)

    def __init__(self, max_workers: int = 3, parent=None):
        super().__init__(parent)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="remote")
        self._pending: dict[str, Future] = {}
        self._counter = itertools.count(1)

    def next_operation_id(self, prefix: str) -> str:
        """Unique operation id such as "fetch:7"."""
        return f"{prefix}:{next(self._counter)}"

    def submit(self, operation_id: str, func: Callable, *args, **kwargs) -> str:
        """
        Run func(*args, **kwargs) in the background.

        Exactly one of operation_finished / operation_failed is emitted with
        the same operation_id when it completes.
        """
        future = self._executor.submit(func, *args, **kwargs)
        self._pending[operation_id] = future
        future.add_done_callback(lambda f: self._on_done(operation_id, f))
        return operation_id

    def _on_done(self, operation_id: str, future: Future) -> None:
        self._pending.pop(operation_id, None)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            _debug_print(f"Operation '{operation_id}' failed: {type(error).__name__}: {error}")
            self.operation_failed.emit(operation_id, error)
        else:
            self.operation_finished.emit(operation_id, future.result())

    def pending_count(self) -> int:
        return len(self._pending)

    def shutdown(self, wait: bool = True) -> None:
        """Shutdown the executor, optionally waiting for pending operations."""
        self._executor.shutdown(wait=wait)


# Global worker instance (created lazily)
_global_worker: Optional[NetworkWorker] = None


def get_network_worker() -> NetworkWorker:
    """Get the global NetworkWorker instance."""
    global _global_worker
    if _global_worker is None:
        _global_worker = NetworkWorker()
    return _global_worker


def shutdown_network_worker() -> None:
    """Shutdown the global NetworkWorker."""
    global _global_worker
    if _global_worker is not None:
        _global_worker.shutdown(wait=False)
        _global_worker = None

"""Fire-and-forget background tasks on daemon threads."""

import logging
import threading
import time

logger = logging.getLogger(__name__)


class BackgroundTasks:
    """Runs callables on daemon threads; failures are logged, never raised.

    Callers never observe a task's result. join() exists for shutdown and
    tests, which need to wait for outstanding rotation or maintenance work.
    """

    def __init__(self, name: str = "request-audit"):
        self._name = name
        self._lock = threading.Lock()
        self._threads: set[threading.Thread] = set()

    def submit(self, fn, *args) -> threading.Thread:
        thread = threading.Thread(
            target=self._run, args=(fn, args), name=self._name, daemon=True
        )
        with self._lock:
            self._threads.add(thread)
        try:
            thread.start()
        except RuntimeError:
            with self._lock:
                self._threads.discard(thread)
            raise
        return thread

    @property
    def active_count(self) -> int:
        with self._lock:
            return len(self._threads)

    def join(self, timeout: float | None = None) -> bool:
        """Wait for outstanding tasks, including ones they spawn. Returns False on timeout."""
        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            with self._lock:
                pending = list(self._threads)
            if not pending:
                return True
            for thread in pending:
                remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
                thread.join(remaining)
                if thread.is_alive():
                    return False

    def _run(self, fn, args):
        try:
            fn(*args)
        except Exception:
            logger.exception("Background task %s failed", getattr(fn, "__name__", fn))
        finally:
            with self._lock:
                self._threads.discard(threading.current_thread())

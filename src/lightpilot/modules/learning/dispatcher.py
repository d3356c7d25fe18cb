"""
Asynchronous feedback dispatch.

Scheduling code records feedback through a FeedbackDispatcher so that a
slow or failing learning update never blocks (or breaks) firing items.
"""

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor, wait
from typing import Any, Callable, Set

logger = logging.getLogger(__name__)


class FeedbackDispatcher:
    """
    Single-worker task queue for feedback writes.

    Tasks run in submission order. Failures are logged, never raised to the
    submitter.
    """

    def __init__(self, name: str = "lightpilot-feedback") -> None:
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix=name)
        self._pending: Set[Future] = set()
        self._lock = threading.Lock()
        self._closed = False

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> bool:
        """
        Queue a task.

        Returns:
            True if queued, False if the dispatcher is shut down
        """
        with self._lock:
            if self._closed:
                logger.warning(f"Dispatcher closed, dropping task {getattr(fn, '__name__', fn)}")
                return False
            future = self._executor.submit(fn, *args, **kwargs)
            self._pending.add(future)
        future.add_done_callback(self._on_done)
        return True

    def _on_done(self, future: Future) -> None:
        with self._lock:
            self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Feedback task failed: {error}", exc_info=error)

    def drain(self, timeout: float = 5.0) -> bool:
        """
        Wait for queued tasks to finish.

        Returns:
            True if everything finished within the timeout
        """
        with self._lock:
            pending = set(self._pending)
        if not pending:
            return True
        _, not_done = wait(pending, timeout=timeout)
        return not not_done

    def shutdown(self, wait_for_tasks: bool = True) -> None:
        """Stop accepting tasks and release the worker."""
        with self._lock:
            self._closed = True
        self._executor.shutdown(wait=wait_for_tasks)

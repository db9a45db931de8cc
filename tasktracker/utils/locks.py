"""Per-project mutation locks.

Structural task writes (create, reparent, delete, reorder, status changes)
read the parent/child state, validate it and commit. Two such writes on the
same project must not interleave, otherwise an ancestor check can pass
against state that a concurrent reparent is about to change.

Usage::

    with project_locks.hold(project_id):
        ...validate and commit...
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterator

logger = logging.getLogger(__name__)


class ProjectLockRegistry:
    """Hands out one re-entrant lock per project id, created on demand."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}

    def get(self, project_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(project_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[project_id] = lock
            return lock

    def discard(self, project_id: int) -> None:
        """Forget the lock of a deleted project."""
        with self._guard:
            self._locks.pop(project_id, None)

    @contextmanager
    def hold(self, project_id: int) -> Iterator[None]:
        lock = self.get(project_id)
        lock.acquire()
        try:
            yield
        finally:
            lock.release()


project_locks = ProjectLockRegistry()

import threading
from contextlib import contextmanager
from typing import Dict


class AttemptLockRegistry:
    """One re-entrant lock per attempt id, shared by every request in this process."""

    def __init__(self):
        self._guard = threading.Lock()
        self._locks: Dict[int, threading.RLock] = {}

    def _lock_for(self, attempt_id: int) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(attempt_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[attempt_id] = lock
            return lock

    @contextmanager
    def hold(self, attempt_id: int):
        lock = self._lock_for(attempt_id)
        with lock:
            yield

    def release(self, attempt_id: int):
        """Forget the lock of an attempt that can no longer change."""
        with self._guard:
            self._locks.pop(attempt_id, None)


attempt_locks = AttemptLockRegistry()

"""
Per-resource locks serialising approvals inside one process.
Cross-process exclusion comes from the write transaction taken while the lock is held.
"""

import threading
from contextlib import contextmanager


class ResourceLockRegistry:
    """One lock per resource key, created on first use."""

    def __init__(self):
        self._guard = threading.Lock()
        # Never evicted; bounded by the number of resources
        self._locks = {}

    def lock_for(self, key) -> threading.Lock:
        """Get (or create) the lock of a resource key."""
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = self._locks[key] = threading.Lock()
            return lock

    @contextmanager
    def hold(self, key):
        """Hold the resource's lock for the duration of the block."""
        lock = self.lock_for(key)
        with lock:
            yield

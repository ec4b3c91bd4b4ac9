"""
FieldSync Ledger Store — Per-Key Serialization
================================================
One writer per ledger path at a time.

Every operation that reads a record, decides, and writes it back
(approve, stock audit, manual dispatch, restock) holds the lock of
each path it touches. Locks are re-entrant and always acquired in
sorted path order, so two operations over overlapping paths cannot
deadlock.
"""

from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Dict, Iterator


class KeyedLockManager:
    """Lazily created re-entrant lock per key."""

    def __init__(self):
        self._locks: Dict[str, threading.RLock] = {}
        self._guard = threading.Lock()
        self._local = threading.local()

    def _lock_for(self, key: str) -> threading.RLock:
        with self._guard:
            lock = self._locks.get(key)
            if lock is None:
                lock = threading.RLock()
                self._locks[key] = lock
            return lock

    @contextmanager
    def hold(self, *keys: str) -> Iterator[None]:
        ordered = sorted({k for k in keys if k})
        acquired = []
        self._local.depth = getattr(self._local, "depth", 0) + 1
        try:
            for key in ordered:
                lock = self._lock_for(key)
                lock.acquire()
                acquired.append(lock)
            yield
        finally:
            for lock in reversed(acquired):
                lock.release()
            self._local.depth -= 1

    def held_by_current_thread(self) -> bool:
        return getattr(self._local, "depth", 0) > 0

    def key_count(self) -> int:
        with self._guard:
            return len(self._locks)

"""
FieldSync Ledger Store — Store Contract and Notification Loop
===============================================================
The shared observable key-value store every component reads and
writes through.

Contract:
    subscribe(path, handler)  → Subscription (current snapshot delivered at once)
    read_once(path)           → Snapshot
    write(path, value)        → full replace
    partial_update(path, f)   → merge fields
    delete(path)
    commit(writes)            → atomic batch, optional compare-and-swap
    locked(*paths)            → per-path single-writer section

Notification rules:
- Deliveries are full snapshots, at least once
- Subscribers of a record path and of its collection are both notified
- Per path, snapshots are delivered in write order through one drain loop
- Deliveries are deferred while the writing thread still holds
  path locks, so subscribers never run inside another operation's
  critical section
- A failing subscriber never stops delivery (core.events.dispatch)
"""

from __future__ import annotations

import logging
from collections import deque
from contextlib import contextmanager
from threading import Lock
from typing import Callable, Deque, Dict, Iterable, Iterator, List, Optional, Protocol, Tuple

from core.events.dispatcher import dispatch
from core.events.registry import SubscriberRegistry
from core.ledger_store.locks import KeyedLockManager
from core.ledger_store.paths import normalize_path, split_path
from core.ledger_store.snapshot import Snapshot, Write

logger = logging.getLogger("fieldsync.ledger")

SnapshotHandler = Callable[[Snapshot], None]


# ══════════════════════════════════════════════════════════════
# PROTOCOL
# ══════════════════════════════════════════════════════════════

class LedgerStore(Protocol):
    def subscribe(
        self, path: str, handler: SnapshotHandler, subscriber_name: str = ...,
    ) -> "Subscription":
        ...  # pragma: no cover

    def read_once(self, path: str) -> Snapshot:
        ...  # pragma: no cover

    def write(self, path: str, value: dict) -> int:
        ...  # pragma: no cover

    def partial_update(self, path: str, fields: dict) -> int:
        ...  # pragma: no cover

    def delete(self, path: str) -> None:
        ...  # pragma: no cover

    def commit(self, writes: Iterable[Write]) -> Dict[str, int]:
        ...  # pragma: no cover

    def locked(self, *paths: str):
        ...  # pragma: no cover


# ══════════════════════════════════════════════════════════════
# SUBSCRIPTION HANDLE
# ══════════════════════════════════════════════════════════════

class Subscription:
    """Handle returned by subscribe(); cancel() stops deliveries."""

    def __init__(self, store: "BaseLedgerStore", path: str, handler: SnapshotHandler):
        self._store = store
        self.path = path
        self.handler = handler
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        if self._active:
            self._store._subscribers.unregister_subscriber(self.path, self.handler)
            self._active = False


# ══════════════════════════════════════════════════════════════
# BASE STORE
# ══════════════════════════════════════════════════════════════

class BaseLedgerStore:
    """
    Shared subscription, locking and delivery machinery.

    Subclasses implement:
        _read(path)     → Snapshot
        _apply(writes)  → {path: new_version}; atomic, raises
                          VersionConflict / StoreIOError with nothing applied;
                          must call _enqueue() with the committed snapshots.
    """

    def __init__(self):
        self._subscribers = SubscriberRegistry()
        self._locks = KeyedLockManager()
        self._queue: Deque[Tuple[Snapshot, Optional[SnapshotHandler]]] = deque()
        self._queue_lock = Lock()
        self._draining = False

    # ── Reads ─────────────────────────────────────────────────

    def read_once(self, path: str) -> Snapshot:
        return self._read(normalize_path(path))

    def _read(self, path: str) -> Snapshot:
        raise NotImplementedError

    # ── Writes ────────────────────────────────────────────────

    def commit(self, writes: Iterable[Write]) -> Dict[str, int]:
        """
        Apply a batch atomically: every write or none of them.

        Returns the new version of every written path (0 for deletes).
        """
        batch = list(writes)
        if not batch:
            raise ValueError("commit() needs at least one write.")

        paths = [w.path for w in batch]
        if len(set(paths)) != len(paths):
            raise ValueError(f"Duplicate paths in one commit: {sorted(paths)}")

        versions = self._apply(batch)
        logger.debug(f"Committed {len(batch)} write(s): {', '.join(paths)}")
        self._drain_unless_locked()
        return versions

    def _apply(self, writes: List[Write]) -> Dict[str, int]:
        raise NotImplementedError

    def write(self, path: str, value: dict) -> int:
        path = normalize_path(path)
        return self.commit([Write.set(path, value)])[path]

    def partial_update(self, path: str, fields: dict) -> int:
        path = normalize_path(path)
        return self.commit([Write.update(path, fields)])[path]

    def delete(self, path: str) -> None:
        path = normalize_path(path)
        self.commit([Write.delete(path)])

    # ── Serialization ─────────────────────────────────────────

    @contextmanager
    def locked(self, *paths: str) -> Iterator[None]:
        """Hold the single-writer lock of every given path."""
        normalized = [normalize_path(p) for p in paths]
        try:
            with self._locks.hold(*normalized):
                yield
        finally:
            self._drain_unless_locked()

    # ── Subscriptions ─────────────────────────────────────────

    def subscribe(
        self,
        path: str,
        handler: SnapshotHandler,
        subscriber_name: str = "anonymous",
    ) -> Subscription:
        path = normalize_path(path)
        self._subscribers.register_subscriber(path, handler, subscriber_name)
        subscription = Subscription(self, path, handler)

        with self._queue_lock:
            self._queue.append((self._read(path), handler))
        self._drain_unless_locked()
        return subscription

    def _snapshots_for(self, paths: Iterable[str]) -> List[Snapshot]:
        """Record snapshots for each path, then one snapshot per touched collection."""
        record_snapshots = []
        collections = []
        for path in paths:
            record_snapshots.append(self._read(path))
            collection, _ = split_path(path)
            if collection not in collections:
                collections.append(collection)
        return record_snapshots + [self._read(c) for c in collections]

    def _enqueue(self, snapshots: Iterable[Snapshot]) -> None:
        with self._queue_lock:
            self._queue.extend((snapshot, None) for snapshot in snapshots)

    def _drain_unless_locked(self) -> None:
        if not self._locks.held_by_current_thread():
            self._drain()

    def _drain(self) -> None:
        with self._queue_lock:
            if self._draining:
                return
            self._draining = True

        while True:
            with self._queue_lock:
                if not self._queue:
                    self._draining = False
                    return
                snapshot, target = self._queue.popleft()

            if target is None:
                dispatch(snapshot, self._subscribers)
            else:
                self._deliver_initial(snapshot, target)

    def _deliver_initial(self, snapshot: Snapshot, handler: SnapshotHandler) -> None:
        handler_name = getattr(handler, "__qualname__", str(handler))
        try:
            handler(snapshot)
        except Exception as exc:
            logger.error(
                f"Subscriber failed on initial snapshot: {handler_name} "
                f"for {snapshot.path}: {exc}",
                exc_info=True,
            )

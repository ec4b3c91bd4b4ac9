"""
FieldSync Notification Bus — Subscriber Registry
==================================================
Controls which handlers receive snapshots of which ledger paths.

Rules:
- Paths are normalized by the store before registration
- A collection subscriber receives the full collection snapshot
  whenever any record in it changes
- Multiple subscribers per path allowed
- Duplicate handler for the same path forbidden
- In-memory only, thread-safe
"""

import logging
from threading import Lock
from typing import Callable

from core.events.errors import DuplicateSubscriberError, EventBusError

logger = logging.getLogger("fieldsync.events")


class SubscriberRegistry:
    """
    In-memory registry of snapshot subscribers.

    Each entry maps a path to a list of (handler, subscriber_name) tuples.
    """

    def __init__(self):
        self._subscribers: dict[str, list[tuple[Callable, str]]] = {}
        self._lock = Lock()

    def register_subscriber(
        self,
        path: str,
        handler: Callable,
        subscriber_name: str,
    ) -> None:
        """
        Register a handler for a ledger path.

        Raises:
            EventBusError:            Handler not callable
            DuplicateSubscriberError: Handler already registered
        """
        if not callable(handler):
            raise EventBusError(
                f"Handler must be callable, got {type(handler)}."
            )

        handler_name = getattr(handler, "__qualname__", str(handler))

        with self._lock:
            entries = self._subscribers.setdefault(path, [])
            for existing_handler, _ in entries:
                if existing_handler == handler:
                    raise DuplicateSubscriberError(path, handler_name)
            entries.append((handler, subscriber_name))

        logger.info(
            f"Subscriber registered: {handler_name} → {path} "
            f"(subscriber: {subscriber_name})"
        )

    def unregister_subscriber(self, path: str, handler: Callable) -> bool:
        """Remove a handler. Returns False if it was not registered."""
        with self._lock:
            entries = self._subscribers.get(path, [])
            for index, (existing_handler, _) in enumerate(entries):
                if existing_handler == handler:
                    del entries[index]
                    if not entries:
                        del self._subscribers[path]
                    return True
        return False

    def get_subscribers(self, path: str) -> list[tuple[Callable, str]]:
        """
        Get all subscribers for a path.
        Returns empty list if no subscribers (not an error).
        """
        with self._lock:
            return list(self._subscribers.get(path, []))

    def has_subscribers(self, path: str) -> bool:
        with self._lock:
            return bool(self._subscribers.get(path))

    def subscriber_count(self, path: str) -> int:
        with self._lock:
            return len(self._subscribers.get(path, []))

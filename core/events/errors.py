"""
FieldSync Notification Bus — Errors
=====================================
Error types for the snapshot dispatch layer.
Separate from ledger store errors — the bus routes, it does not store.
"""


class EventBusError(Exception):
    """Base error for notification bus operations."""
    pass


class DuplicateSubscriberError(EventBusError):
    """Same handler already registered for this path."""

    def __init__(self, path: str, handler_name: str):
        self.path = path
        self.handler_name = handler_name
        super().__init__(
            f"Handler '{handler_name}' already registered "
            f"for path '{path}'."
        )

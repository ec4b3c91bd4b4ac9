"""
FieldSync Notification Bus — Public API
=========================================
The ledger store commits. The bus tells subscribers what changed.
"""

from core.events.dispatcher import dispatch
from core.events.errors import (
    DuplicateSubscriberError,
    EventBusError,
)
from core.events.registry import SubscriberRegistry

__all__ = [
    "dispatch",
    "SubscriberRegistry",
    "EventBusError",
    "DuplicateSubscriberError",
]

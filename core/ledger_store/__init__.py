"""
FieldSync Ledger Store — Public API
=====================================
Shared observable key-value store all components read and write through.

The Django-backed implementation lives in core.ledger_store.django_store
and is imported explicitly (it needs a configured Django app registry).
"""

from core.ledger_store.base import BaseLedgerStore, LedgerStore, Subscription
from core.ledger_store.errors import (
    InvalidPath,
    LedgerStoreError,
    StoreIOError,
    VersionConflict,
)
from core.ledger_store.locks import KeyedLockManager
from core.ledger_store.memory import InMemoryLedgerStore
from core.ledger_store.paths import (
    DISPATCHES,
    DRIVERS,
    INVENTORY_LOGS,
    MATERIAL_REQUESTS,
    MATERIALS,
    PROJECTS,
    STOCK_AUDITS,
    new_record_id,
    normalize_path,
    record_path,
    split_path,
)
from core.ledger_store.snapshot import Snapshot, Write, WriteMode

__all__ = [
    "LedgerStore",
    "BaseLedgerStore",
    "InMemoryLedgerStore",
    "Subscription",
    "KeyedLockManager",
    "Snapshot",
    "Write",
    "WriteMode",
    "LedgerStoreError",
    "InvalidPath",
    "StoreIOError",
    "VersionConflict",
    "MATERIALS",
    "PROJECTS",
    "MATERIAL_REQUESTS",
    "DISPATCHES",
    "STOCK_AUDITS",
    "DRIVERS",
    "INVENTORY_LOGS",
    "new_record_id",
    "normalize_path",
    "record_path",
    "split_path",
]

"""
FieldSync Inventory Engine — Inventory Log Entries
====================================================
Every stock change appends one InventoryLogEntry in the same
commit as the change itself.
"""

from __future__ import annotations

from datetime import datetime

from core.ledger_store import INVENTORY_LOGS, Write, new_record_id, record_path
from core.primitives import InventoryAction, InventoryLogEntry, Material


def build_log_entry(
    material: Material,
    action: InventoryAction,
    quantity_change: int,
    changed_by: str,
    logged_at: datetime,
    reference_id: str = "",
) -> InventoryLogEntry:
    return InventoryLogEntry(
        log_id=new_record_id("LOG"),
        material_id=material.material_id,
        material_name=material.name,
        action=action,
        quantity_change=quantity_change,
        changed_by=changed_by,
        logged_at=logged_at,
        reference_id=reference_id,
    )


def log_entry_write(entry: InventoryLogEntry) -> Write:
    """Create-only write: a log entry is never overwritten."""
    return Write.create(record_path(INVENTORY_LOGS, entry.log_id), entry.to_record())

"""
FieldSync Core Primitives — Entity Schemas
============================================
Explicit per-entity schemas for everything stored in the ledger.

Primitives are:
- Pure Python (no Django dependency)
- Immutable (frozen dataclasses)
- Converted from raw payloads exactly once (from_record),
  with defaults filled at that boundary
- Written back as JSON-safe payloads (to_record)

Primitives:
    material    — Material, InventoryLogEntry
    project     — Project (budget ceiling, running spend)
    request     — MaterialRequest and its status
    dispatch    — Dispatch, Driver and the dispatch status machine
    audit       — StockAudit
"""

from core.primitives.audit import AuditOutcome, StockAudit
from core.primitives.dispatch import (
    DISPATCH_TRANSITIONS,
    UNASSIGNED_DRIVER,
    Dispatch,
    DispatchStatus,
    Driver,
)
from core.primitives.material import InventoryAction, InventoryLogEntry, Material
from core.primitives.project import Project
from core.primitives.request import MaterialRequest, RequestStatus

__all__ = [
    "Material",
    "InventoryAction",
    "InventoryLogEntry",
    "Project",
    "MaterialRequest",
    "RequestStatus",
    "Dispatch",
    "DispatchStatus",
    "DISPATCH_TRANSITIONS",
    "Driver",
    "UNASSIGNED_DRIVER",
    "StockAudit",
    "AuditOutcome",
]

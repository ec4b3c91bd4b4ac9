"""
FieldSync Ledger Store — Paths
================================
Collection names and path helpers.

A path is either a collection ('materials') or a single
record inside it ('materials/m-1'). Nothing deeper.
"""

from __future__ import annotations

import uuid
from typing import Optional, Tuple

from core.ledger_store.errors import InvalidPath


MATERIALS = "materials"
PROJECTS = "projects"
MATERIAL_REQUESTS = "material_requests"
DISPATCHES = "dispatches"
STOCK_AUDITS = "stock_audits"
DRIVERS = "drivers"
INVENTORY_LOGS = "inventory_logs"

COLLECTIONS = frozenset({
    MATERIALS,
    PROJECTS,
    MATERIAL_REQUESTS,
    DISPATCHES,
    STOCK_AUDITS,
    DRIVERS,
    INVENTORY_LOGS,
})


def split_path(path: str) -> Tuple[str, Optional[str]]:
    """Return (collection, record_id); record_id is None for collections."""
    if not path or not isinstance(path, str):
        raise InvalidPath(str(path))

    parts = path.strip("/").split("/")
    if len(parts) == 1:
        collection, record_id = parts[0], None
    elif len(parts) == 2:
        collection, record_id = parts
        if not record_id:
            raise InvalidPath(path)
    else:
        raise InvalidPath(path)

    if collection not in COLLECTIONS:
        raise InvalidPath(path)
    return collection, record_id


def normalize_path(path: str) -> str:
    collection, record_id = split_path(path)
    if record_id is None:
        return collection
    return f"{collection}/{record_id}"


def record_path(collection: str, record_id: str) -> str:
    path = f"{collection}/{record_id}"
    split_path(path)
    return path


def is_record_path(path: str) -> bool:
    return split_path(path)[1] is not None


def new_record_id(prefix: str = "") -> str:
    """Fresh record id, e.g. 'DISP-3f2a9c...'."""
    suffix = uuid.uuid4().hex[:16].upper()
    return f"{prefix}-{suffix}" if prefix else suffix

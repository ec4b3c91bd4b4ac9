"""
FieldSync Ledger Store — Snapshots and Writes
===============================================
Snapshot: full value at a path at a point in time.
Write:    one entry of an atomic commit batch.

Record snapshots carry the record's version (0 = absent).
Collection snapshots carry {record_id: value} and the store
revision at which they were taken.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from core.ledger_store.paths import is_record_path


# ══════════════════════════════════════════════════════════════
# SNAPSHOT
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Snapshot:
    path: str
    value: Any
    version: int = 0

    @property
    def exists(self) -> bool:
        return self.value is not None

    def children(self) -> Dict[str, dict]:
        """Child records of a collection snapshot (empty if none)."""
        if self.value is None:
            return {}
        return dict(self.value)


# ══════════════════════════════════════════════════════════════
# WRITES
# ══════════════════════════════════════════════════════════════

class WriteMode(Enum):
    SET = "SET"          # full replace
    UPDATE = "UPDATE"    # merge fields into the record
    DELETE = "DELETE"


@dataclass(frozen=True)
class Write:
    """
    One record mutation inside a commit.

    expected_version:
        None → unconditional
        0    → record must not exist (create-only)
        n    → record must currently be at version n
    """

    path: str
    mode: WriteMode
    value: Optional[dict] = None
    expected_version: Optional[int] = None

    def __post_init__(self):
        if not is_record_path(self.path):
            raise ValueError(
                f"Writes target single records, got collection '{self.path}'."
            )
        if self.mode != WriteMode.DELETE and not isinstance(self.value, dict):
            raise TypeError(f"{self.mode.value} write to '{self.path}' needs a dict value.")
        if self.expected_version is not None and self.expected_version < 0:
            raise ValueError("expected_version must be >= 0.")

    @classmethod
    def set(cls, path: str, value: dict, expected_version: Optional[int] = None) -> "Write":
        return cls(path=path, mode=WriteMode.SET, value=value,
                   expected_version=expected_version)

    @classmethod
    def update(cls, path: str, fields: dict, expected_version: Optional[int] = None) -> "Write":
        return cls(path=path, mode=WriteMode.UPDATE, value=fields,
                   expected_version=expected_version)

    @classmethod
    def create(cls, path: str, value: dict) -> "Write":
        return cls(path=path, mode=WriteMode.SET, value=value, expected_version=0)

    @classmethod
    def delete(cls, path: str, expected_version: Optional[int] = None) -> "Write":
        return cls(path=path, mode=WriteMode.DELETE, expected_version=expected_version)

"""
FieldSync Stock Audit Primitive
=================================
Append-only record of a physical count against the recorded stock.

discrepancy = actual_quantity - recorded_quantity
(negative means stock went missing).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

from core.primitives.coercion import datetime_to_iso, to_datetime, to_int, to_text


class AuditOutcome(Enum):
    PASSED = "Passed"
    FAILED = "Failed"
    NEEDS_REVIEW = "Needs Review"


@dataclass(frozen=True)
class StockAudit:
    audit_id: str
    material_id: str
    material_name: str
    recorded_quantity: int
    actual_quantity: int
    audited_at: Optional[datetime]
    audited_by: str
    outcome: AuditOutcome = AuditOutcome.PASSED
    notes: str = ""
    location: str = ""

    def __post_init__(self):
        if not isinstance(self.actual_quantity, int) or self.actual_quantity < 0:
            raise ValueError(
                f"actual_quantity must be an integer >= 0, got {self.actual_quantity!r}."
            )
        if not self.audited_by or not isinstance(self.audited_by, str):
            raise ValueError("audited_by must be a non-empty string.")
        if not isinstance(self.outcome, AuditOutcome):
            raise ValueError("outcome must be AuditOutcome.")

    @property
    def discrepancy(self) -> int:
        return self.actual_quantity - self.recorded_quantity

    @staticmethod
    def default_outcome(discrepancy: int) -> AuditOutcome:
        return AuditOutcome.PASSED if discrepancy == 0 else AuditOutcome.NEEDS_REVIEW

    @classmethod
    def from_record(cls, audit_id: str, raw: dict) -> "StockAudit":
        outcome: Optional[str] = raw.get("outcome")
        return cls(
            audit_id=audit_id,
            material_id=to_text(raw.get("material_id")),
            material_name=to_text(raw.get("material_name"), "Unknown Material"),
            recorded_quantity=to_int(raw.get("recorded_quantity")),
            actual_quantity=to_int(raw.get("actual_quantity")),
            audited_at=to_datetime(raw.get("audited_at")),
            audited_by=to_text(raw.get("audited_by"), "Unknown User"),
            outcome=AuditOutcome(outcome) if outcome else AuditOutcome.PASSED,
            notes=to_text(raw.get("notes")),
            location=to_text(raw.get("location")),
        )

    def to_record(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "recorded_quantity": self.recorded_quantity,
            "actual_quantity": self.actual_quantity,
            "discrepancy": self.discrepancy,
            "audited_at": datetime_to_iso(self.audited_at),
            "audited_by": self.audited_by,
            "outcome": self.outcome.value,
            "notes": self.notes,
            "location": self.location,
        }

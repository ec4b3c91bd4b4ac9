"""
FieldSync Stock Audit Engine — Request Commands
=================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.commands.errors import ValidationError
from core.primitives import AuditOutcome


@dataclass(frozen=True)
class RecordAuditRequest:
    """
    Physical count of one material.

    outcome None → Passed when the count matches, Needs Review otherwise.
    """
    material_id: str
    actual_quantity: int
    audited_by: str
    notes: str = ""
    location: str = ""
    outcome: Optional[AuditOutcome] = None

    def __post_init__(self):
        if not self.material_id:
            raise ValidationError("material_id must be non-empty.")
        if not isinstance(self.actual_quantity, int) or isinstance(self.actual_quantity, bool):
            raise ValidationError(
                f"Actual quantity must be a whole number, got {self.actual_quantity!r}."
            )
        if self.actual_quantity < 0:
            raise ValidationError(
                f"Actual quantity cannot be negative, got {self.actual_quantity}."
            )
        if not self.audited_by or not self.audited_by.strip():
            raise ValidationError("audited_by must be non-empty.")
        if self.outcome is not None and not isinstance(self.outcome, AuditOutcome):
            raise ValidationError("outcome must be an AuditOutcome.")

    @staticmethod
    def parse_outcome(value) -> Optional[AuditOutcome]:
        if value is None or isinstance(value, AuditOutcome):
            return value
        try:
            return AuditOutcome(value)
        except ValueError:
            allowed = ", ".join(o.value for o in AuditOutcome)
            raise ValidationError(
                f"Unknown audit outcome {value!r}; expected one of: {allowed}."
            ) from None

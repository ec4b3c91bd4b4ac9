"""
FieldSync Fulfillment Engine — Request Commands
=================================================
Typed requests for submitting and resolving material requests.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from core.commands.errors import ValidationError


class Decision(Enum):
    APPROVE = "approve"
    REJECT = "reject"

    @classmethod
    def parse(cls, value) -> "Decision":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Decision must be 'approve' or 'reject', got {value!r}."
            ) from None


@dataclass(frozen=True)
class Requester:
    """Worker submitting a request. Free text; no authentication here."""
    user_id: str
    username: str = "Unknown User"

    def __post_init__(self):
        if not self.user_id or not str(self.user_id).strip():
            raise ValidationError("Requester user_id must be non-empty.")


@dataclass(frozen=True)
class SubmitMaterialRequest:
    material_id: str
    project_id: str
    quantity: int
    requester: Requester

    def __post_init__(self):
        if not self.material_id:
            raise ValidationError("material_id must be non-empty.")
        if not self.project_id:
            raise ValidationError("project_id must be non-empty.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValidationError(
                f"Quantity must be a whole number, got {self.quantity!r}."
            )
        if self.quantity <= 0:
            raise ValidationError(
                f"Quantity must be greater than 0, got {self.quantity}."
            )
        if not isinstance(self.requester, Requester):
            raise ValidationError("requester must be a Requester.")


@dataclass(frozen=True)
class RespondToRequest:
    request_id: str
    decision: Decision
    message: str = ""
    responder: str = "admin"

    def __post_init__(self):
        if not self.request_id:
            raise ValidationError("request_id must be non-empty.")
        if not isinstance(self.decision, Decision):
            raise ValidationError("decision must be a Decision.")

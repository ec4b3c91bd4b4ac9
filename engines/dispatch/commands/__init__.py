"""
FieldSync Dispatch Engine — Request Commands
==============================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from core.commands.errors import ValidationError
from core.primitives import DispatchStatus


@dataclass(frozen=True)
class CreateDispatchRequest:
    """Manual dispatch, not linked to any material request."""
    material_id: str
    quantity: int
    driver_id: str
    created_by: str
    vehicle_number: Optional[str] = None
    from_site: Optional[str] = None
    to_site: Optional[str] = None

    def __post_init__(self):
        if not self.material_id:
            raise ValidationError("material_id must be non-empty.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool) \
                or self.quantity <= 0:
            raise ValidationError(
                f"Dispatch quantity must be a positive integer, got {self.quantity!r}."
            )
        if not self.driver_id:
            raise ValidationError("driver_id must be non-empty.")
        if not self.created_by or not self.created_by.strip():
            raise ValidationError("created_by must be non-empty.")


@dataclass(frozen=True)
class UpdateDispatchStatusRequest:
    dispatch_id: str
    new_status: DispatchStatus

    def __post_init__(self):
        if not self.dispatch_id:
            raise ValidationError("dispatch_id must be non-empty.")
        if not isinstance(self.new_status, DispatchStatus):
            raise ValidationError("new_status must be a DispatchStatus.")

    @staticmethod
    def parse_status(value) -> DispatchStatus:
        if isinstance(value, DispatchStatus):
            return value
        try:
            return DispatchStatus(str(value).strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in DispatchStatus)
            raise ValidationError(
                f"Unknown dispatch status {value!r}; expected one of: {allowed}."
            ) from None


@dataclass(frozen=True)
class RegisterDriverRequest:
    name: str
    vehicle_number: str = "N/A"
    driver_id: Optional[str] = None
    active: bool = True

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Driver name must be non-empty.")

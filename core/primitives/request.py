"""
FieldSync Material Request Primitive
======================================
A worker's request for material against a project.

Lifecycle:
    pending ──approve──→ approved   (terminal)
    pending ──reject───→ rejected   (terminal)

Dispatch status is tracked on a separate entity, joined by
dispatch_id == request_id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.primitives.coercion import (
    datetime_to_iso,
    decimal_to_str,
    to_bool,
    to_datetime,
    to_decimal,
    to_int,
    to_text,
)


class RequestStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class MaterialRequest:
    request_id: str
    material_id: str
    material_name: str
    quantity_requested: int
    total_cost: Decimal
    user_id: str
    project_id: str
    requested_at: datetime
    username: str = "Unknown User"
    status: RequestStatus = RequestStatus.PENDING
    responded_at: Optional[datetime] = None
    response_message: str = ""
    delivery_assigned: bool = False

    def __post_init__(self):
        if not self.request_id or not isinstance(self.request_id, str):
            raise ValueError("request_id must be a non-empty string.")
        if not isinstance(self.quantity_requested, int) or self.quantity_requested <= 0:
            raise ValueError(
                f"quantity_requested must be a positive integer, "
                f"got {self.quantity_requested!r}."
            )
        if not isinstance(self.total_cost, Decimal) or self.total_cost < 0:
            raise ValueError("total_cost must be a Decimal >= 0.")
        if not isinstance(self.status, RequestStatus):
            raise ValueError("status must be RequestStatus.")

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING

    @property
    def is_approved(self) -> bool:
        return self.status == RequestStatus.APPROVED

    @classmethod
    def from_record(cls, request_id: str, raw: dict) -> "MaterialRequest":
        return cls(
            request_id=request_id,
            material_id=to_text(raw.get("material_id")),
            material_name=to_text(raw.get("material_name"), "Unknown Material"),
            quantity_requested=to_int(raw.get("quantity_requested")),
            total_cost=to_decimal(raw.get("total_cost")),
            user_id=to_text(raw.get("user_id")),
            project_id=to_text(raw.get("project_id")),
            requested_at=to_datetime(raw.get("requested_at")),
            username=to_text(raw.get("username"), "Unknown User"),
            status=RequestStatus(to_text(raw.get("status"), "pending").lower()),
            responded_at=to_datetime(raw.get("responded_at")),
            response_message=to_text(raw.get("response_message")),
            delivery_assigned=to_bool(raw.get("delivery_assigned")),
        )

    def to_record(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "quantity_requested": self.quantity_requested,
            "total_cost": decimal_to_str(self.total_cost),
            "user_id": self.user_id,
            "username": self.username,
            "project_id": self.project_id,
            "status": self.status.value,
            "requested_at": datetime_to_iso(self.requested_at),
            "responded_at": datetime_to_iso(self.responded_at),
            "response_message": self.response_message,
            "delivery_assigned": self.delivery_assigned,
        }

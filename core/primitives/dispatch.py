"""
FieldSync Dispatch Primitive — Deliveries and Drivers
=======================================================
Lifecycle:
    in-transit ──→ delivered   (terminal, sets delivery_time)
    in-transit ──→ delayed     (terminal)
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Mapping, Optional

from core.primitives.coercion import (
    datetime_to_iso,
    to_bool,
    to_datetime,
    to_int,
    to_text,
)


class DispatchStatus(Enum):
    IN_TRANSIT = "in-transit"
    DELIVERED = "delivered"
    DELAYED = "delayed"


DISPATCH_TRANSITIONS: Mapping[DispatchStatus, FrozenSet[DispatchStatus]] = {
    DispatchStatus.IN_TRANSIT: frozenset({DispatchStatus.DELIVERED, DispatchStatus.DELAYED}),
    DispatchStatus.DELIVERED: frozenset(),
    DispatchStatus.DELAYED: frozenset(),
}


# ══════════════════════════════════════════════════════════════
# DRIVER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Driver:
    driver_id: str
    name: str
    vehicle_number: str = "N/A"
    active: bool = True

    def __post_init__(self):
        if not self.driver_id or not isinstance(self.driver_id, str):
            raise ValueError("driver_id must be a non-empty string.")
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")

    @classmethod
    def from_record(cls, driver_id: str, raw: dict) -> "Driver":
        return cls(
            driver_id=driver_id,
            name=to_text(raw.get("name"), "Unknown Driver"),
            vehicle_number=to_text(raw.get("vehicle_number"), "N/A"),
            active=to_bool(raw.get("active"), default=True),
        )

    def to_record(self) -> dict:
        return {
            "name": self.name,
            "vehicle_number": self.vehicle_number,
            "active": self.active,
        }


UNASSIGNED_DRIVER = Driver(
    driver_id="UNASSIGNED",
    name="Unassigned",
    vehicle_number="N/A",
    active=False,
)


# ══════════════════════════════════════════════════════════════
# DISPATCH
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Dispatch:
    """
    Delivery of material from one site to another.

    request_id links an auto-created dispatch to its approved
    request (and equals dispatch_id); manual dispatches have none.
    """

    dispatch_id: str
    material_id: str
    material_name: str
    quantity: int
    from_site: str
    to_site: str
    driver_id: str
    driver_name: str
    vehicle_number: str
    dispatch_time: datetime
    eta: datetime
    status: DispatchStatus = DispatchStatus.IN_TRANSIT
    delivery_time: Optional[datetime] = None
    request_id: Optional[str] = None

    def __post_init__(self):
        if not self.dispatch_id or not isinstance(self.dispatch_id, str):
            raise ValueError("dispatch_id must be a non-empty string.")
        if not isinstance(self.quantity, int) or self.quantity <= 0:
            raise ValueError(f"quantity must be a positive integer, got {self.quantity!r}.")
        if not isinstance(self.status, DispatchStatus):
            raise ValueError("status must be DispatchStatus.")

    def can_transition_to(self, new_status: DispatchStatus) -> bool:
        return new_status in DISPATCH_TRANSITIONS[self.status]

    @classmethod
    def from_record(cls, dispatch_id: str, raw: dict) -> "Dispatch":
        return cls(
            dispatch_id=dispatch_id,
            material_id=to_text(raw.get("material_id")),
            material_name=to_text(raw.get("material_name"), "Unknown Material"),
            quantity=to_int(raw.get("quantity")),
            from_site=to_text(raw.get("from_site"), "N/A"),
            to_site=to_text(raw.get("to_site"), "N/A"),
            driver_id=to_text(raw.get("driver_id"), UNASSIGNED_DRIVER.driver_id),
            driver_name=to_text(raw.get("driver_name"), UNASSIGNED_DRIVER.name),
            vehicle_number=to_text(raw.get("vehicle_number"), "N/A"),
            dispatch_time=to_datetime(raw.get("dispatch_time")),
            eta=to_datetime(raw.get("eta")),
            status=DispatchStatus(to_text(raw.get("status"), "in-transit").lower()),
            delivery_time=to_datetime(raw.get("delivery_time")),
            request_id=to_text(raw.get("request_id")) or None,
        )

    def to_record(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "quantity": self.quantity,
            "from_site": self.from_site,
            "to_site": self.to_site,
            "driver_id": self.driver_id,
            "driver_name": self.driver_name,
            "vehicle_number": self.vehicle_number,
            "status": self.status.value,
            "dispatch_time": datetime_to_iso(self.dispatch_time),
            "eta": datetime_to_iso(self.eta),
            "delivery_time": datetime_to_iso(self.delivery_time),
            "request_id": self.request_id,
        }

"""
FieldSync Material Primitive — Stock Records and Inventory Log
================================================================
Material:          a stocked construction material (price, quantity).
InventoryLogEntry: append-only trail of every stock change.

RULES (NON-NEGOTIABLE):
- quantity is an integer >= 0 at all times
- price is a Decimal >= 0 (currency-agnostic)
- Every stock change is logged with its signed quantity change

This file contains NO persistence logic.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from core.primitives.coercion import (
    datetime_to_iso,
    decimal_to_str,
    to_datetime,
    to_decimal,
    to_int,
    to_text,
)


# ══════════════════════════════════════════════════════════════
# MATERIAL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class Material:
    """
    Stocked material.

    Optional fields are filled with their display defaults by
    from_record(); nothing downstream checks for missing keys.
    """

    material_id: str
    name: str
    price: Decimal
    quantity: int
    category: str = "Uncategorized"
    unit_type: str = "N/A"
    supplier: str = "N/A"
    description: str = "No description available"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.material_id or not isinstance(self.material_id, str):
            raise ValueError("material_id must be a non-empty string.")
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string.")
        if not isinstance(self.price, Decimal) or self.price < 0:
            raise ValueError(f"price must be a Decimal >= 0, got {self.price!r}.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool):
            raise ValueError("quantity must be an integer.")
        if self.quantity < 0:
            raise ValueError(
                f"Material '{self.material_id}' quantity cannot be negative "
                f"({self.quantity})."
            )

    def is_low_stock(self, threshold: int) -> bool:
        return self.quantity < threshold

    def with_quantity(self, quantity: int, at: datetime) -> "Material":
        return replace(self, quantity=quantity, updated_at=at)

    @classmethod
    def from_record(cls, material_id: str, raw: dict) -> "Material":
        return cls(
            material_id=material_id,
            name=to_text(raw.get("name"), "Unknown Material"),
            price=to_decimal(raw.get("price")),
            quantity=to_int(raw.get("quantity")),
            category=to_text(raw.get("category"), "Uncategorized"),
            unit_type=to_text(raw.get("unit_type"), "N/A"),
            supplier=to_text(raw.get("supplier"), "N/A"),
            description=to_text(raw.get("description"), "No description available"),
            created_at=to_datetime(raw.get("created_at")),
            updated_at=to_datetime(raw.get("updated_at")),
        )

    def to_record(self) -> dict:
        return {
            "name": self.name,
            "price": decimal_to_str(self.price),
            "quantity": self.quantity,
            "category": self.category,
            "unit_type": self.unit_type,
            "supplier": self.supplier,
            "description": self.description,
            "created_at": datetime_to_iso(self.created_at),
            "updated_at": datetime_to_iso(self.updated_at),
        }


# ══════════════════════════════════════════════════════════════
# INVENTORY LOG
# ══════════════════════════════════════════════════════════════

class InventoryAction(Enum):
    ADDED = "Added"
    RESTOCKED = "Restocked"
    DEDUCTED = "Deducted"
    DISPATCHED = "Dispatched"
    AUDITED = "Audited"
    EDITED = "Edited"


@dataclass(frozen=True)
class InventoryLogEntry:
    """
    One stock change.

    Fields:
        quantity_change: Signed delta (negative for deductions).
        reference_id:    Request, dispatch or audit that caused it.
    """

    log_id: str
    material_id: str
    material_name: str
    action: InventoryAction
    quantity_change: int
    changed_by: str
    logged_at: datetime
    reference_id: str = ""

    def __post_init__(self):
        if not isinstance(self.action, InventoryAction):
            raise ValueError("action must be InventoryAction.")
        if not isinstance(self.quantity_change, int):
            raise ValueError("quantity_change must be an integer.")

    @classmethod
    def from_record(cls, log_id: str, raw: dict) -> "InventoryLogEntry":
        return cls(
            log_id=log_id,
            material_id=to_text(raw.get("material_id")),
            material_name=to_text(raw.get("material_name"), "Unknown Material"),
            action=InventoryAction(raw.get("action")),
            quantity_change=to_int(raw.get("quantity_change")),
            changed_by=to_text(raw.get("changed_by"), "Unknown User"),
            logged_at=to_datetime(raw.get("logged_at")),
            reference_id=to_text(raw.get("reference_id")),
        )

    def to_record(self) -> dict:
        return {
            "material_id": self.material_id,
            "material_name": self.material_name,
            "action": self.action.value,
            "quantity_change": self.quantity_change,
            "changed_by": self.changed_by,
            "logged_at": datetime_to_iso(self.logged_at),
            "reference_id": self.reference_id,
        }

"""
FieldSync Inventory Engine — Request Commands
===============================================
Typed inventory requests, validated at construction.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.commands.errors import ValidationError


@dataclass(frozen=True)
class RegisterMaterialRequest:
    """Operator adds a new material to the catalogue."""
    name: str
    price: Decimal
    quantity: int
    category: str = "Uncategorized"
    unit_type: str = "N/A"
    supplier: str = "N/A"
    description: str = "No description available"
    material_id: Optional[str] = None
    registered_by: str = "admin"

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise ValidationError("Material name must be non-empty.")
        if not isinstance(self.price, Decimal) or self.price < 0:
            raise ValidationError(f"Price must be a Decimal >= 0, got {self.price!r}.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool) \
                or self.quantity < 0:
            raise ValidationError(
                f"Initial quantity must be an integer >= 0, got {self.quantity!r}."
            )


@dataclass(frozen=True)
class RestockRequest:
    """Stock received for an existing material."""
    material_id: str
    quantity: int
    restocked_by: str

    def __post_init__(self):
        if not self.material_id:
            raise ValidationError("material_id must be non-empty.")
        if not isinstance(self.quantity, int) or isinstance(self.quantity, bool) \
                or self.quantity <= 0:
            raise ValidationError(
                f"Restock quantity must be a positive integer, got {self.quantity!r}."
            )
        if not self.restocked_by or not self.restocked_by.strip():
            raise ValidationError("restocked_by must be non-empty.")


@dataclass(frozen=True)
class UpdateMaterialRequest:
    """
    Operator edits an existing material.

    Fields left as None keep their stored value. created_at is never
    changed; quantity, when given, overwrites the stock count.
    """
    material_id: str
    name: Optional[str] = None
    price: Optional[Decimal] = None
    quantity: Optional[int] = None
    category: Optional[str] = None
    unit_type: Optional[str] = None
    supplier: Optional[str] = None
    description: Optional[str] = None
    updated_by: str = "admin"

    EDITABLE = ("name", "price", "quantity", "category", "unit_type", "supplier", "description")

    def __post_init__(self):
        if not self.material_id:
            raise ValidationError("material_id must be non-empty.")
        if self.name is not None and not self.name.strip():
            raise ValidationError("Material name must be non-empty.")
        if self.price is not None and (not isinstance(self.price, Decimal) or self.price <= 0):
            raise ValidationError(f"Price must be greater than 0, got {self.price!r}.")
        if self.quantity is not None and (
            not isinstance(self.quantity, int) or isinstance(self.quantity, bool)
            or self.quantity < 0
        ):
            raise ValidationError(
                f"Quantity must be an integer >= 0, got {self.quantity!r}."
            )
        if not self.changes():
            raise ValidationError("Nothing to update.")
        if not self.updated_by or not self.updated_by.strip():
            raise ValidationError("updated_by must be non-empty.")

    def changes(self) -> dict:
        changes = {
            field_name: getattr(self, field_name)
            for field_name in self.EDITABLE
            if getattr(self, field_name) is not None
        }
        if "name" in changes:
            changes["name"] = changes["name"].strip()
        return changes

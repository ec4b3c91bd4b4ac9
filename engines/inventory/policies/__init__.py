"""
FieldSync Inventory Engine — Policies
=======================================
Stock checks shared by approval, manual dispatch and audit.

Policies return the violation (an error instance) or None;
the caller decides to raise.
"""

from __future__ import annotations

from typing import Optional

from core.commands.errors import InsufficientStock
from core.primitives import Material


def sufficient_stock_policy(
    material: Material,
    requested: int,
) -> Optional[InsufficientStock]:
    """Reject a deduction that would take stock below zero."""
    if requested > material.quantity:
        return InsufficientStock(
            material_id=material.material_id,
            available=material.quantity,
            requested=requested,
        )
    return None

"""
FieldSync Budget Engine — Request Commands
============================================
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from core.commands.errors import ValidationError


@dataclass(frozen=True)
class RegisterProjectRequest:
    budget: Decimal
    name: str = "Unknown Project"
    project_id: Optional[str] = None
    spent: Decimal = Decimal("0")

    def __post_init__(self):
        if not isinstance(self.budget, Decimal) or self.budget < 0:
            raise ValidationError(f"Budget must be a Decimal >= 0, got {self.budget!r}.")
        if not isinstance(self.spent, Decimal) or self.spent < 0:
            raise ValidationError(f"Spent must be a Decimal >= 0, got {self.spent!r}.")
        if self.spent > self.budget:
            raise ValidationError(
                f"Spent {self.spent} cannot exceed budget {self.budget}."
            )


@dataclass(frozen=True)
class TopUpBudgetRequest:
    """Raise a project's budget ceiling."""
    project_id: str
    amount: Decimal

    def __post_init__(self):
        if not self.project_id:
            raise ValidationError("project_id must be non-empty.")
        if not isinstance(self.amount, Decimal) or self.amount <= 0:
            raise ValidationError(
                f"Top-up amount must be a positive Decimal, got {self.amount!r}."
            )

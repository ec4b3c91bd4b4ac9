"""
FieldSync Project Primitive — Budget Ceiling and Running Spend
================================================================
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal

from core.primitives.coercion import decimal_to_str, to_decimal, to_text


@dataclass(frozen=True)
class Project:
    """
    Construction project.

    budget is the fixed ceiling; spent is the running total of
    approved material cost. Approvals keep spent <= budget.
    opening_spent is the spend carried in when the project was
    registered, before any request was approved here.
    """

    project_id: str
    budget: Decimal
    spent: Decimal = Decimal("0")
    name: str = "Unknown Project"
    opening_spent: Decimal = Decimal("0")

    def __post_init__(self):
        if not self.project_id or not isinstance(self.project_id, str):
            raise ValueError("project_id must be a non-empty string.")
        if not isinstance(self.budget, Decimal) or self.budget < 0:
            raise ValueError(f"budget must be a Decimal >= 0, got {self.budget!r}.")
        if not isinstance(self.spent, Decimal) or self.spent < 0:
            raise ValueError(f"spent must be a Decimal >= 0, got {self.spent!r}.")
        if not isinstance(self.opening_spent, Decimal) or self.opening_spent < 0:
            raise ValueError("opening_spent must be a Decimal >= 0.")

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent

    def charge(self, amount: Decimal) -> "Project":
        return replace(self, spent=self.spent + amount)

    @classmethod
    def from_record(cls, project_id: str, raw: dict) -> "Project":
        return cls(
            project_id=project_id,
            budget=to_decimal(raw.get("budget")),
            spent=to_decimal(raw.get("spent")),
            name=to_text(raw.get("name"), "Unknown Project"),
            opening_spent=to_decimal(raw.get("opening_spent")),
        )

    def to_record(self) -> dict:
        return {
            "name": self.name,
            "budget": decimal_to_str(self.budget),
            "spent": decimal_to_str(self.spent),
            "opening_spent": decimal_to_str(self.opening_spent),
        }

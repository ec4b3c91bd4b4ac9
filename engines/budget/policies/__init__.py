"""
FieldSync Budget Engine — Policies
====================================
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional

from core.commands.errors import BudgetExceeded
from core.primitives import Project


def budget_ceiling_policy(
    project: Project,
    cost: Decimal,
) -> Optional[BudgetExceeded]:
    """Reject a charge that would take spent above budget."""
    if cost > project.remaining:
        return BudgetExceeded(
            project_id=project.project_id,
            available=project.remaining,
            requested=cost,
        )
    return None

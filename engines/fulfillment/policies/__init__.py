"""
FieldSync Fulfillment Engine — Policies
=========================================
Approval rules, evaluated in order against freshly read records.
The first violation wins.
"""

from __future__ import annotations

from typing import Optional

from core.commands.errors import AlreadyResolved, FulfillmentError
from core.primitives import Material, MaterialRequest, Project
from engines.budget.policies import budget_ceiling_policy
from engines.inventory.policies import sufficient_stock_policy


def pending_request_policy(request: MaterialRequest) -> Optional[AlreadyResolved]:
    """Only pending requests can be resolved."""
    if not request.is_pending:
        return AlreadyResolved(request.request_id, request.status.value)
    return None


def approval_violation(
    request: MaterialRequest,
    material: Material,
    project: Project,
) -> Optional[FulfillmentError]:
    return (
        pending_request_policy(request)
        or sufficient_stock_policy(material, request.quantity_requested)
        or budget_ceiling_policy(project, request.total_cost)
    )

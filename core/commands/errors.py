"""
FieldSync Command Layer — Business Error Taxonomy
===================================================
Typed failures raised by the mutating components and converted
into OperationOutcome at the operation boundary.

None of these are retryable without changing inputs (reduce the
quantity, top up stock or budget, pick a pending request).
Infrastructure failures live in core.ledger_store.errors.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Union

from core.commands.rejection import ReasonCode

Number = Union[int, Decimal]


class FulfillmentError(Exception):
    """Base error for business-rule failures."""

    code = ReasonCode.VALIDATION_ERROR

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class ValidationError(FulfillmentError, ValueError):
    """Input rejected before any write (non-positive quantity, missing field)."""

    code = ReasonCode.VALIDATION_ERROR


class InvalidTransition(ValidationError):
    """Requested status change is not a legal transition."""

    code = ReasonCode.INVALID_TRANSITION

    def __init__(self, entity: str, entity_id: str, current: str, requested: str):
        self.entity = entity
        self.entity_id = entity_id
        self.current = current
        self.requested = requested
        super().__init__(
            f"{entity} '{entity_id}' cannot move from '{current}' to '{requested}'."
        )


class NotFound(FulfillmentError):
    code = ReasonCode.NOT_FOUND

    def __init__(self, entity: str, entity_id: str):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} '{entity_id}' not found.")


class AlreadyResolved(FulfillmentError):
    code = ReasonCode.ALREADY_RESOLVED

    def __init__(self, request_id: str, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f"Request '{request_id}' is already {status}. "
            f"Only pending requests can be approved or rejected."
        )


class InsufficientStock(FulfillmentError):
    code = ReasonCode.INSUFFICIENT_STOCK

    def __init__(self, material_id: str, available: int, requested: int):
        self.material_id = material_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Insufficient stock for material '{material_id}': "
            f"{available} available, {requested} requested."
        )


class BudgetExceeded(FulfillmentError):
    code = ReasonCode.BUDGET_EXCEEDED

    def __init__(self, project_id: str, available: Number, requested: Number):
        self.project_id = project_id
        self.available = available
        self.requested = requested
        super().__init__(
            f"Budget exceeded for project '{project_id}': cost {requested} "
            f"exceeds remaining budget {available}."
        )

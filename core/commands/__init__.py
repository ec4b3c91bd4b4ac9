"""
FieldSync Command Layer — Public API
======================================
Every mutating operation produces exactly one Outcome.
REJECTED operations are first-class results, not exceptions.
"""

from core.commands.boundary import run_operation
from core.commands.errors import (
    AlreadyResolved,
    BudgetExceeded,
    FulfillmentError,
    InsufficientStock,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from core.commands.outcomes import (
    OperationOutcome,
    OperationStatus,
    accepted,
    rejected,
)
from core.commands.rejection import (
    ReasonCode,
    RejectionReason,
)

__all__ = [
    # ── Boundary ──────────────────────────────────────────────
    "run_operation",
    # ── Errors ────────────────────────────────────────────────
    "FulfillmentError",
    "ValidationError",
    "InvalidTransition",
    "NotFound",
    "AlreadyResolved",
    "InsufficientStock",
    "BudgetExceeded",
    # ── Outcomes ──────────────────────────────────────────────
    "OperationOutcome",
    "OperationStatus",
    "accepted",
    "rejected",
    # ── Rejection ─────────────────────────────────────────────
    "RejectionReason",
    "ReasonCode",
]

"""
FieldSync Command Layer — Operation Outcome Contract
======================================================
Every mutating operation produces exactly one Outcome.

ACCEPTED → the change was committed; message states its magnitude.
REJECTED → nothing was written; reason is mandatory.

Rules:
- Outcome is immutable (frozen dataclass)
- REJECTED must contain reason (RejectionReason)
- ACCEPTED must NOT contain reason
- occurred_at is mandatory
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from core.commands.rejection import ReasonCode, RejectionReason


# ══════════════════════════════════════════════════════════════
# OPERATION STATUS
# ══════════════════════════════════════════════════════════════

class OperationStatus(Enum):
    """Binary operation decision. No middle ground."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"


# ══════════════════════════════════════════════════════════════
# OPERATION OUTCOME
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class OperationOutcome:
    """
    Typed result of a mutating operation.

    Fields:
        operation:   Name of the operation (e.g. 'fulfillment.respond').
        status:      ACCEPTED or REJECTED.
        occurred_at: When the decision was made.
        message:     Success message (ACCEPTED) or rejection message.
        record:      Resulting record on success (entity dataclass).
        reason:      RejectionReason (mandatory if REJECTED).
        error:       The typed exception behind a rejection.
    """

    operation: str
    status: OperationStatus
    occurred_at: datetime
    message: str = ""
    record: Any = None
    reason: Optional[RejectionReason] = None
    error: Optional[Exception] = None

    def __post_init__(self):
        if not isinstance(self.status, OperationStatus):
            raise ValueError(
                f"status must be OperationStatus, got {type(self.status).__name__}."
            )

        if self.status == OperationStatus.REJECTED and self.reason is None:
            raise ValueError(
                "REJECTED outcome must include a RejectionReason. "
                "No silent rejections allowed."
            )

        if self.status == OperationStatus.ACCEPTED and self.reason is not None:
            raise ValueError(
                "ACCEPTED outcome must NOT include a RejectionReason."
            )

        if not isinstance(self.occurred_at, datetime):
            raise ValueError("occurred_at must be a datetime.")

    @property
    def is_accepted(self) -> bool:
        return self.status == OperationStatus.ACCEPTED

    @property
    def is_rejected(self) -> bool:
        return self.status == OperationStatus.REJECTED

    @property
    def code(self) -> Optional[str]:
        return self.reason.code if self.reason else None

    @property
    def retryable(self) -> bool:
        """True only for infrastructure failures: same inputs may succeed later."""
        return self.reason is not None and self.reason.code in ReasonCode.RETRYABLE


def accepted(
    operation: str, occurred_at: datetime, message: str, record: Any = None,
) -> OperationOutcome:
    return OperationOutcome(
        operation=operation,
        status=OperationStatus.ACCEPTED,
        occurred_at=occurred_at,
        message=message,
        record=record,
    )


def rejected(
    operation: str, occurred_at: datetime, error: Exception, code: str,
) -> OperationOutcome:
    return OperationOutcome(
        operation=operation,
        status=OperationStatus.REJECTED,
        occurred_at=occurred_at,
        message=str(error),
        reason=RejectionReason(
            code=code,
            message=str(error) or type(error).__name__,
            policy_name=operation,
        ),
        error=error,
    )

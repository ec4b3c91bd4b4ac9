"""
FieldSync Command Layer — Operation Boundary
==============================================
The single place typed failures are turned into outcomes.

    outcome = run_operation("fulfillment.respond", lambda: ..., clock=clock)

The callable returns (message, record) on success. Business-rule
errors and store failures become a REJECTED outcome; anything else
is a bug and propagates.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Optional, Tuple

from core.commands.errors import FulfillmentError
from core.commands.outcomes import OperationOutcome, accepted, rejected
from core.ledger_store.errors import StoreIOError
from core.time import Clock, get_default_clock

logger = logging.getLogger("fieldsync.operations")

Operation = Callable[[], Tuple[str, Any]]


def run_operation(
    operation: str,
    fn: Operation,
    clock: Optional[Clock] = None,
) -> OperationOutcome:
    clock = clock or get_default_clock()

    try:
        message, record = fn()
    except FulfillmentError as exc:
        logger.warning(f"{operation} rejected [{exc.code}]: {exc}")
        return rejected(operation, clock.now_utc(), exc, exc.code)
    except StoreIOError as exc:
        logger.error(f"{operation} failed on the ledger store [{exc.code}]: {exc}")
        return rejected(operation, clock.now_utc(), exc, exc.code)

    logger.info(f"{operation} accepted: {message}")
    return accepted(operation, clock.now_utc(), message, record)

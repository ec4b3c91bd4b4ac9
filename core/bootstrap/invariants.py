"""
FieldSync Bootstrap — Ledger Invariant Checks
===============================================
Each check verifies one law of the fulfillment ledger.

    NON_NEGATIVE_STOCK   every material quantity >= 0
    SPENT_WITHIN_BUDGET  every project spent <= budget
    SPENT_MATCHES_LEDGER spent == opening_spent + Σ total_cost of the
                         project's approved requests (each counted once)
    ONE_DISPATCH         every approved request has exactly one dispatch,
                         keyed by its id
    NO_ORPHAN_DISPATCH   no auto-created dispatch for a request that is
                         not approved

These checks do NOT:
- Auto-fix anything
- Silence failures
"""

from __future__ import annotations

import logging
from collections import Counter, defaultdict
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List

from django.db import connection

from core.bootstrap.errors import SystemBootstrapError
from core.ledger_store import (
    DISPATCHES,
    MATERIAL_REQUESTS,
    MATERIALS,
    PROJECTS,
    LedgerStore,
    record_path,
)
from core.primitives.coercion import to_decimal, to_int, to_text

logger = logging.getLogger("fieldsync.bootstrap")


@dataclass(frozen=True)
class InvariantViolation:
    invariant: str
    path: str
    detail: str


# ══════════════════════════════════════════════════════════════
# CHECK 1: Ledger Table Exists
# ══════════════════════════════════════════════════════════════

def check_ledger_table():
    """
    Verify the ledger table exists in the database.
    If missing → refuse start. No auto-migration.
    """
    from core.ledger_store.models import LedgerNode

    table = LedgerNode._meta.db_table
    if table not in connection.introspection.table_names():
        raise SystemBootstrapError(
            invariant="LEDGER_TABLE",
            detail=(
                f"Table '{table}' does not exist. "
                f"Run migrations before starting FieldSync. "
                f"Bootstrap will not auto-create tables."
            ),
        )

    logger.info("✓ Ledger table exists.")


# ══════════════════════════════════════════════════════════════
# CHECK 2: Ledger Contents
# ══════════════════════════════════════════════════════════════

def check_ledger_invariants(store: LedgerStore) -> List[InvariantViolation]:
    """Every violation found in the current ledger state (empty if sound)."""
    materials = store.read_once(MATERIALS).children()
    projects = store.read_once(PROJECTS).children()
    requests = store.read_once(MATERIAL_REQUESTS).children()
    dispatches = store.read_once(DISPATCHES).children()

    violations: List[InvariantViolation] = []

    for material_id, raw in sorted(materials.items()):
        quantity = to_int(raw.get("quantity"))
        if quantity < 0:
            violations.append(InvariantViolation(
                "NON_NEGATIVE_STOCK",
                record_path(MATERIALS, material_id),
                f"quantity is {quantity}",
            ))

    approved = {
        request_id: raw for request_id, raw in requests.items()
        if to_text(raw.get("status")).lower() == "approved"
    }

    approved_cost: Dict[str, Decimal] = defaultdict(Decimal)
    for raw in approved.values():
        approved_cost[to_text(raw.get("project_id"))] += to_decimal(raw.get("total_cost"))

    for project_id, raw in sorted(projects.items()):
        path = record_path(PROJECTS, project_id)
        budget = to_decimal(raw.get("budget"))
        spent = to_decimal(raw.get("spent"))
        expected = to_decimal(raw.get("opening_spent")) + approved_cost[project_id]
        if spent > budget:
            violations.append(InvariantViolation(
                "SPENT_WITHIN_BUDGET", path, f"spent {spent} exceeds budget {budget}",
            ))
        if spent != expected:
            violations.append(InvariantViolation(
                "SPENT_MATCHES_LEDGER", path,
                f"spent {spent} but approved requests account for {expected}",
            ))

    links = Counter(
        to_text(raw.get("request_id")) for raw in dispatches.values()
        if raw.get("request_id")
    )
    for request_id in sorted(approved):
        path = record_path(MATERIAL_REQUESTS, request_id)
        if request_id not in dispatches:
            violations.append(InvariantViolation(
                "ONE_DISPATCH", path, "approved request has no dispatch",
            ))
        elif links[request_id] > 1:
            violations.append(InvariantViolation(
                "ONE_DISPATCH", path, f"{links[request_id]} dispatches reference it",
            ))

    for request_id in sorted(links):
        if request_id not in approved:
            violations.append(InvariantViolation(
                "NO_ORPHAN_DISPATCH",
                record_path(DISPATCHES, request_id),
                "dispatch references a request that is not approved",
            ))

    return violations


def assert_ledger_invariants(store: LedgerStore) -> None:
    violations = check_ledger_invariants(store)
    if violations:
        detail = "; ".join(f"{v.path}: {v.detail}" for v in violations)
        raise SystemBootstrapError(invariant=violations[0].invariant, detail=detail)

    logger.info("✓ Ledger invariants hold.")

"""
FieldSync Stock Audit Engine — Application Service
====================================================
StockAuditEngine owns stock_audits/{id}.

record_audit, under the material lock, in ONE commit:
    1. append StockAudit {recorded = material.quantity, actual}
    2. overwrite material.quantity = actual
    3. append an Audited inventory log entry (signed discrepancy)

The material lock is the same one approval holds, so an audit and
an approval on the same material never interleave.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import List, Optional

from core.commands import OperationOutcome, run_operation
from core.ledger_store import STOCK_AUDITS, LedgerStore, Write, new_record_id, record_path
from core.primitives import InventoryAction, StockAudit
from core.time import Clock, SystemClock, TimeWindow
from engines.inventory.events import build_log_entry, log_entry_write
from engines.inventory.services import InventoryStore
from engines.stock_audit.commands import RecordAuditRequest

logger = logging.getLogger("fieldsync.audit")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass(frozen=True)
class DiscrepancySummary:
    audit_count: int
    discrepancy_count: int
    net_discrepancy: int


class StockAuditEngine:

    def __init__(
        self,
        store: LedgerStore,
        inventory: InventoryStore,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._inventory = inventory
        self._clock = clock or SystemClock()

    # ── Operations ────────────────────────────────────────────

    def record_audit(
        self,
        material_id: str,
        actual_quantity: int,
        audited_by: str,
        notes: str = "",
        location: str = "",
        outcome=None,
    ) -> OperationOutcome:
        return run_operation(
            "stock_audit.record_audit",
            lambda: self._record(RecordAuditRequest(
                material_id=material_id,
                actual_quantity=actual_quantity,
                audited_by=audited_by,
                notes=notes,
                location=location,
                outcome=RecordAuditRequest.parse_outcome(outcome),
            )),
            clock=self._clock,
        )

    def _record(self, command: RecordAuditRequest):
        with self._store.locked(self._inventory.path(command.material_id)):
            material, version = self._inventory.read(command.material_id)
            now = self._clock.now_utc()
            discrepancy = command.actual_quantity - material.quantity

            audit = StockAudit(
                audit_id=new_record_id("AUD"),
                material_id=material.material_id,
                material_name=material.name,
                recorded_quantity=material.quantity,
                actual_quantity=command.actual_quantity,
                audited_at=now,
                audited_by=command.audited_by.strip(),
                outcome=command.outcome or StockAudit.default_outcome(discrepancy),
                notes=command.notes,
                location=command.location,
            )
            reconciled = material.with_quantity(command.actual_quantity, now)
            entry = build_log_entry(
                reconciled,
                InventoryAction.AUDITED,
                discrepancy,
                audit.audited_by,
                now,
                reference_id=audit.audit_id,
            )
            self._store.commit([
                Write.create(record_path(STOCK_AUDITS, audit.audit_id), audit.to_record()),
                self._inventory.quantity_write(reconciled, version),
                log_entry_write(entry),
            ])

        message = (
            f"Audited {material.name}: recorded {audit.recorded_quantity}, "
            f"counted {audit.actual_quantity} (discrepancy {discrepancy:+d}); "
            f"stock set to {reconciled.quantity}."
        )
        return message, audit

    # ── Reads ─────────────────────────────────────────────────

    def list_audits(self) -> List[StockAudit]:
        """Every audit, oldest first."""
        snapshot = self._store.read_once(STOCK_AUDITS)
        return audits_from_children(snapshot.children())

    def audit_history(self, material_id: str) -> List[StockAudit]:
        return [a for a in self.list_audits() if a.material_id == material_id]

    def latest_audit(self, material_id: str) -> Optional[StockAudit]:
        history = self.audit_history(material_id)
        return history[-1] if history else None

    def discrepancy_summary(self, window: Optional[TimeWindow] = None) -> DiscrepancySummary:
        audits = [
            a for a in self.list_audits()
            if window is None or window.contains(a.audited_at)
        ]
        return DiscrepancySummary(
            audit_count=len(audits),
            discrepancy_count=sum(1 for a in audits if a.discrepancy != 0),
            net_discrepancy=sum(a.discrepancy for a in audits),
        )


def audits_from_children(children: dict) -> List[StockAudit]:
    audits = [
        StockAudit.from_record(audit_id, raw)
        for audit_id, raw in children.items()
    ]
    return sorted(audits, key=audit_order)


def audit_order(audit: StockAudit):
    """Chronological sort key; audits without a timestamp sort first."""
    return (audit.audited_at or _EPOCH, audit.audit_id)

"""
FieldSync Dispatch Engine — Store Subscriptions
=================================================
The scheduler reacts to material request snapshots.

Subscriptions:
- material_requests → reconcile approved requests against dispatches

Snapshots arrive at least once and in full; reconciliation is
idempotent, so a redelivered snapshot is harmless. A failure while
handling one snapshot is logged and the subscription stays live
for the next one.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from core.ledger_store import MATERIAL_REQUESTS, LedgerStore, Snapshot, Subscription
from core.primitives import MaterialRequest
from engines.dispatch.services import DispatchScheduler, ReconcileResult

logger = logging.getLogger("fieldsync.dispatch")


DISPATCH_SUBSCRIPTIONS: Dict[str, str] = {
    MATERIAL_REQUESTS: "handle_requests_snapshot",
}


class DispatchSubscriptionHandler:

    def __init__(self, scheduler: DispatchScheduler):
        self._scheduler = scheduler
        self._subscriptions: List[Subscription] = []

    def subscribe(self, store: LedgerStore) -> List[Subscription]:
        for path, method_name in DISPATCH_SUBSCRIPTIONS.items():
            self._subscriptions.append(
                store.subscribe(
                    path,
                    getattr(self, method_name),
                    subscriber_name=f"dispatch.{method_name}",
                )
            )
        return list(self._subscriptions)

    def cancel(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()

    def handle_requests_snapshot(self, snapshot: Snapshot) -> Optional[ReconcileResult]:
        requests = []
        for request_id, raw in snapshot.children().items():
            try:
                requests.append(MaterialRequest.from_record(request_id, raw))
            except (TypeError, ValueError) as exc:
                logger.warning(f"Skipping malformed request {request_id}: {exc}")

        try:
            result = self._scheduler.reconcile(requests)
        except Exception as exc:
            logger.error(
                f"Dispatch reconciliation failed at version {snapshot.version}: {exc}",
                exc_info=True,
            )
            return None

        if result.created:
            logger.info(
                f"Reconciled {len(requests)} request(s): "
                f"created {result.created_count} dispatch(es)"
            )
        return result

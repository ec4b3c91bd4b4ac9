"""
FieldSync Fulfillment Engine — Application Service
====================================================
FulfillmentCoordinator: the business-rule engine that turns a
pending material request into a stock deduction and a budget charge.

Approval flow (NON-NEGOTIABLE):
    1. Hold the locks of the request, its material and its project
    2. Re-read all three (never trust an earlier snapshot)
    3. Evaluate policies: still pending, enough stock, enough budget
    4. One atomic commit, conditional on the versions read in step 2:
       quantity -= requested, spent += total_cost, status = approved,
       plus a Deducted inventory log entry

If any policy fails → nothing is written.
Dispatch creation is NOT done here; the dispatch scheduler observes
the approved request and creates it. Stock is deducted exactly once,
in this flow.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from core.commands import OperationOutcome, run_operation
from core.ledger_store import LedgerStore, new_record_id
from core.primitives import InventoryAction, MaterialRequest, RequestStatus
from core.time import Clock, SystemClock
from engines.budget.services import ProjectBudget
from engines.fulfillment.commands import (
    Decision,
    Requester,
    RespondToRequest,
    SubmitMaterialRequest,
)
from engines.fulfillment.policies import approval_violation, pending_request_policy
from engines.inventory.events import build_log_entry, log_entry_write
from engines.inventory.services import InventoryStore
from engines.requests.services import RequestLedger

logger = logging.getLogger("fieldsync.fulfillment")


class FulfillmentCoordinator:

    def __init__(
        self,
        store: LedgerStore,
        inventory: InventoryStore,
        budget: ProjectBudget,
        requests: RequestLedger,
        clock: Optional[Clock] = None,
    ):
        self._store = store
        self._inventory = inventory
        self._budget = budget
        self._requests = requests
        self._clock = clock or SystemClock()

    # ══════════════════════════════════════════════════════════
    # SUBMIT
    # ══════════════════════════════════════════════════════════

    def submit_request(
        self,
        material_id: str,
        project_id: str,
        quantity: int,
        requester: Requester,
    ) -> OperationOutcome:
        """Append a pending request priced at the material's current price."""
        return run_operation(
            "fulfillment.submit_request",
            lambda: self._submit(
                SubmitMaterialRequest(material_id, project_id, quantity, requester)
            ),
            clock=self._clock,
        )

    def _submit(self, command: SubmitMaterialRequest):
        material = self._inventory.get(command.material_id)
        project = self._budget.get(command.project_id)

        request = MaterialRequest(
            request_id=new_record_id("REQ"),
            material_id=material.material_id,
            material_name=material.name,
            quantity_requested=command.quantity,
            total_cost=material.price * command.quantity,
            user_id=command.requester.user_id,
            username=command.requester.username,
            project_id=project.project_id,
            requested_at=self._clock.now_utc(),
        )
        self._requests.append_pending(request)

        message = (
            f"Requested {request.quantity_requested} {material.unit_type} of "
            f"{material.name} for {project.name} (total cost {request.total_cost})."
        )
        return message, request

    # ══════════════════════════════════════════════════════════
    # RESPOND
    # ══════════════════════════════════════════════════════════

    def respond(
        self,
        request_id: str,
        decision,
        message: str = "",
        responder: str = "admin",
    ) -> OperationOutcome:
        """
        Approve or reject a pending request.

        Missing request → NOT_FOUND; already resolved → ALREADY_RESOLVED;
        approval failures → INSUFFICIENT_STOCK / BUDGET_EXCEEDED.
        No record changes on any rejection.
        """
        return run_operation(
            "fulfillment.respond",
            lambda: self._respond(
                RespondToRequest(request_id, Decision.parse(decision), message, responder)
            ),
            clock=self._clock,
        )

    def _respond(self, command: RespondToRequest):
        request, _ = self._requests.read(command.request_id)
        violation = pending_request_policy(request)
        if violation:
            raise violation

        if command.decision == Decision.REJECT:
            return self._reject(command)
        return self._approve(command, request)

    def _reject(self, command: RespondToRequest):
        with self._store.locked(self._requests.path(command.request_id)):
            request, version = self._requests.read(command.request_id)
            violation = pending_request_policy(request)
            if violation:
                raise violation

            resolved = replace(
                request,
                status=RequestStatus.REJECTED,
                responded_at=self._clock.now_utc(),
                response_message=command.message,
            )
            self._store.commit([self._requests.resolution_write(resolved, version)])

        message = (
            f"Rejected request {resolved.request_id} for "
            f"{resolved.quantity_requested} of {resolved.material_name}."
        )
        return message, resolved

    def _approve(self, command: RespondToRequest, seen: MaterialRequest):
        paths = (
            self._requests.path(seen.request_id),
            self._inventory.path(seen.material_id),
            self._budget.path(seen.project_id),
        )
        with self._store.locked(*paths):
            request, request_version = self._requests.read(seen.request_id)
            material, material_version = self._inventory.read(request.material_id)
            project, project_version = self._budget.read(request.project_id)

            violation = approval_violation(request, material, project)
            if violation:
                raise violation

            now = self._clock.now_utc()
            deducted = material.with_quantity(
                material.quantity - request.quantity_requested, now,
            )
            charged = project.charge(request.total_cost)
            resolved = replace(
                request,
                status=RequestStatus.APPROVED,
                responded_at=now,
                response_message=command.message,
            )
            entry = build_log_entry(
                deducted,
                InventoryAction.DEDUCTED,
                -request.quantity_requested,
                command.responder,
                now,
                reference_id=request.request_id,
            )

            self._store.commit([
                self._inventory.quantity_write(deducted, material_version),
                self._budget.spent_write(charged, project_version),
                self._requests.resolution_write(resolved, request_version),
                log_entry_write(entry),
            ])

        message = (
            f"Approved request {resolved.request_id}: deducted "
            f"{request.quantity_requested} {material.unit_type} of {material.name} "
            f"({material.quantity} → {deducted.quantity}); charged "
            f"{request.total_cost} to {project.name} "
            f"({charged.remaining} of {charged.budget} remaining)."
        )
        return message, resolved

"""FieldSync fulfillment engine tests: submit, approve, reject."""

import threading
from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.bootstrap import build_services
from core.bootstrap.invariants import check_ledger_invariants
from core.commands import ReasonCode
from core.config import FulfillmentSettings
from core.primitives import InventoryAction, RequestStatus
from core.time import FixedClock
from engines.budget.commands import RegisterProjectRequest
from engines.fulfillment.commands import Decision, Requester
from engines.inventory.commands import RegisterMaterialRequest

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)
WORKER = Requester("u1", "worker1")


def services(quantity=100, price="10", budget="1000", spent="0", **kwargs):
    svc = build_services(clock=FixedClock(NOW), settings=FulfillmentSettings(), **kwargs)
    svc.inventory.register_material(RegisterMaterialRequest(
        material_id="M", name="Cement", price=Decimal(price), quantity=quantity,
        category="Binders", unit_type="bags",
    ))
    svc.budget.register_project(RegisterProjectRequest(
        project_id="P", name="Tower A", budget=Decimal(budget), spent=Decimal(spent),
    ))
    return svc


def submit(svc, quantity):
    outcome = svc.fulfillment.submit_request("M", "P", quantity, WORKER)
    assert outcome.is_accepted, outcome.message
    return outcome.record.request_id


def ledger_state(svc, *paths):
    return {
        path: (svc.store.read_once(path).value, svc.store.read_once(path).version)
        for path in paths
    }


# ══════════════════════════════════════════════════════════════
# SUBMIT
# ══════════════════════════════════════════════════════════════

class TestSubmitRequest:
    def test_pending_request_priced_at_current_price(self):
        svc = services()
        outcome = svc.fulfillment.submit_request("M", "P", 30, WORKER)

        request = outcome.record
        assert outcome.is_accepted
        assert outcome.operation == "fulfillment.submit_request"
        assert request.request_id.startswith("REQ-")
        assert request.status == RequestStatus.PENDING
        assert request.total_cost == Decimal("300")
        assert request.material_name == "Cement"
        assert request.username == "worker1"
        assert request.requested_at == NOW
        assert svc.requests.get(request.request_id) == request

    def test_submit_does_not_touch_stock_or_budget(self):
        svc = services()
        submit(svc, 30)
        assert svc.inventory.get("M").quantity == 100
        assert svc.budget.get("P").spent == Decimal("0")

    @pytest.mark.parametrize("quantity", [0, -5])
    def test_non_positive_quantity_rejected(self, quantity):
        svc = services()
        outcome = svc.fulfillment.submit_request("M", "P", quantity, WORKER)
        assert outcome.code == ReasonCode.VALIDATION_ERROR
        assert svc.requests.list_requests() == []

    def test_fractional_quantity_rejected(self):
        svc = services()
        outcome = svc.fulfillment.submit_request("M", "P", 2.5, WORKER)
        assert outcome.code == ReasonCode.VALIDATION_ERROR

    def test_unknown_material(self):
        svc = services()
        outcome = svc.fulfillment.submit_request("NOPE", "P", 1, WORKER)
        assert outcome.code == ReasonCode.NOT_FOUND

    def test_unknown_project(self):
        svc = services()
        outcome = svc.fulfillment.submit_request("M", "NOPE", 1, WORKER)
        assert outcome.code == ReasonCode.NOT_FOUND

    def test_quantity_above_stock_is_accepted_as_pending(self):
        svc = services()
        outcome = svc.fulfillment.submit_request("M", "P", 500, WORKER)
        assert outcome.is_accepted


# ══════════════════════════════════════════════════════════════
# APPROVE
# ══════════════════════════════════════════════════════════════

class TestApprove:
    def test_approval_deducts_stock_and_charges_budget(self):
        svc = services()
        request_id = submit(svc, 30)

        outcome = svc.fulfillment.respond(request_id, "approve", "Go ahead")

        assert outcome.is_accepted
        assert outcome.operation == "fulfillment.respond"
        assert outcome.record.status == RequestStatus.APPROVED
        assert outcome.record.responded_at == NOW
        assert outcome.record.response_message == "Go ahead"
        assert svc.inventory.get("M").quantity == 70
        assert svc.budget.get("P").spent == Decimal("300")
        assert "100 → 70" in outcome.message

    def test_approval_logs_deduction(self):
        svc = services()
        request_id = submit(svc, 30)
        svc.fulfillment.respond(request_id, Decision.APPROVE)

        deducted = [
            e for e in svc.inventory.logs_for("M")
            if e.action == InventoryAction.DEDUCTED
        ]
        assert len(deducted) == 1
        assert deducted[0].quantity_change == -30
        assert deducted[0].reference_id == request_id

    def test_insufficient_stock_changes_nothing(self):
        svc = services(quantity=100)
        request_id = submit(svc, 150)
        paths = ("materials/M", "projects/P", f"material_requests/{request_id}")
        before = ledger_state(svc, *paths)

        outcome = svc.fulfillment.respond(request_id, "approve")

        assert outcome.code == ReasonCode.INSUFFICIENT_STOCK
        assert "100 available, 150 requested" in outcome.message
        assert not outcome.retryable
        assert ledger_state(svc, *paths) == before
        assert svc.requests.get(request_id).is_pending

    def test_budget_exceeded_changes_nothing(self):
        svc = services(budget="1000", spent="900")
        request_id = submit(svc, 15)
        paths = ("materials/M", "projects/P", f"material_requests/{request_id}")
        before = ledger_state(svc, *paths)

        outcome = svc.fulfillment.respond(request_id, "approve")

        assert outcome.code == ReasonCode.BUDGET_EXCEEDED
        assert "150" in outcome.message and "100" in outcome.message
        assert ledger_state(svc, *paths) == before
        assert svc.budget.get("P").spent == Decimal("900")

    def test_exact_remaining_budget_is_allowed(self):
        svc = services(budget="1000", spent="900")
        request_id = submit(svc, 10)
        outcome = svc.fulfillment.respond(request_id, "approve")
        assert outcome.is_accepted
        assert svc.budget.get("P").remaining == Decimal("0")

    def test_price_change_after_submit_keeps_submitted_cost(self):
        svc = services()
        request_id = submit(svc, 10)
        svc.store.partial_update("materials/M", {"price": "99"})

        svc.fulfillment.respond(request_id, "approve")
        assert svc.budget.get("P").spent == Decimal("100")

    def test_spent_equals_sum_of_approved(self):
        svc = services(quantity=1000, budget="100000")
        approved = [submit(svc, q) for q in (5, 10, 20)]
        rejected = submit(svc, 7)
        for request_id in approved:
            svc.fulfillment.respond(request_id, "approve")
        svc.fulfillment.respond(rejected, "reject")

        assert svc.budget.get("P").spent == Decimal("350")
        assert check_ledger_invariants(svc.store) == []


# ══════════════════════════════════════════════════════════════
# REJECT / LIFECYCLE
# ══════════════════════════════════════════════════════════════

class TestRejectAndLifecycle:
    def test_reject_only_changes_request(self):
        svc = services()
        request_id = submit(svc, 30)

        outcome = svc.fulfillment.respond(request_id, "reject", "Not needed")

        assert outcome.is_accepted
        assert outcome.record.status == RequestStatus.REJECTED
        assert outcome.record.response_message == "Not needed"
        assert svc.inventory.get("M").quantity == 100
        assert svc.budget.get("P").spent == Decimal("0")

    @pytest.mark.parametrize("first", ["approve", "reject"])
    def test_resolved_request_cannot_be_resolved_again(self, first):
        svc = services()
        request_id = submit(svc, 30)
        svc.fulfillment.respond(request_id, first)
        before = ledger_state(svc, "materials/M", "projects/P", f"material_requests/{request_id}")

        outcome = svc.fulfillment.respond(request_id, "approve")

        assert outcome.code == ReasonCode.ALREADY_RESOLVED
        assert ledger_state(
            svc, "materials/M", "projects/P", f"material_requests/{request_id}",
        ) == before

    def test_unknown_request(self):
        svc = services()
        outcome = svc.fulfillment.respond("REQ-404", "approve")
        assert outcome.code == ReasonCode.NOT_FOUND

    def test_unknown_decision(self):
        svc = services()
        request_id = submit(svc, 1)
        outcome = svc.fulfillment.respond(request_id, "maybe")
        assert outcome.code == ReasonCode.VALIDATION_ERROR
        assert svc.requests.get(request_id).is_pending


# ══════════════════════════════════════════════════════════════
# CONCURRENCY
# ══════════════════════════════════════════════════════════════

def run_concurrently(*calls):
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        results[index] = call()

    threads = [
        threading.Thread(target=worker, args=(i, call)) for i, call in enumerate(calls)
    ]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


class TestConcurrentApprovals:
    def test_competing_requests_never_oversell(self):
        svc = services(quantity=100)
        first = submit(svc, 60)
        second = submit(svc, 60)

        outcomes = run_concurrently(
            lambda: svc.fulfillment.respond(first, "approve"),
            lambda: svc.fulfillment.respond(second, "approve"),
        )

        codes = sorted(o.code or "ACCEPTED" for o in outcomes)
        assert codes == ["ACCEPTED", ReasonCode.INSUFFICIENT_STOCK]
        assert svc.inventory.get("M").quantity == 40
        assert svc.budget.get("P").spent == Decimal("600")
        assert check_ledger_invariants(svc.store) == []

    def test_same_request_approved_once(self):
        svc = services(quantity=100)
        request_id = submit(svc, 30)

        outcomes = run_concurrently(
            *[lambda: svc.fulfillment.respond(request_id, "approve")] * 4
        )

        assert sum(1 for o in outcomes if o.is_accepted) == 1
        assert all(
            o.code == ReasonCode.ALREADY_RESOLVED for o in outcomes if o.is_rejected
        )
        assert svc.inventory.get("M").quantity == 70
        assert len(svc.dispatch.list_dispatches()) == 1

"""
FieldSync — Spending Analytics Tests
======================================
Pure views (summary, per-project, wastage) and the read model
fed by store subscriptions.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

from core.bootstrap import build_services
from core.config import FulfillmentSettings
from core.ledger_store import MATERIAL_REQUESTS, STOCK_AUDITS
from core.primitives import Material, MaterialRequest, Project, RequestStatus, StockAudit
from core.time import FixedClock, TimeWindow
from engines.budget.commands import RegisterProjectRequest
from engines.fulfillment.commands import Requester
from engines.inventory.commands import RegisterMaterialRequest
from projections.spending import (
    HIGH_WASTAGE_THRESHOLD,
    SpendingFilter,
    SpendingReadModel,
    WastageRow,
    filter_requests,
    latest_audits,
    project_spending,
    spending_summary,
    wastage_report,
)

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)

MATERIALS = {
    "M": Material("M", "Cement", Decimal("10"), 100, category="Binders"),
    "S": Material("S", "Steel rod", Decimal("50"), 20, category="Metals"),
}
PROJECTS = {
    "P": Project("P", budget=Decimal("10000"), spent=Decimal("800"), name="Tower A"),
    "Q": Project("Q", budget=Decimal("500"), name="Bridge"),
}


def request(rid, material_id="M", quantity=10, status=RequestStatus.APPROVED,
            project_id="P", user_id="u1", username="worker1", at=NOW):
    price = MATERIALS[material_id].price if material_id in MATERIALS else Decimal("1")
    return MaterialRequest(
        request_id=rid,
        material_id=material_id,
        material_name=MATERIALS[material_id].name if material_id in MATERIALS else "Gone",
        quantity_requested=quantity,
        total_cost=price * quantity,
        user_id=user_id,
        username=username,
        project_id=project_id,
        requested_at=at,
        status=status,
    )


def audit(aid, material_id, actual, at=NOW):
    return StockAudit(aid, material_id, "x", 0, actual, at, "auditor")


REQUESTS = [
    request("R1", "M", 30),                                        # 300 approved
    request("R2", "S", 10, project_id="Q", username="worker2"),    # 500 approved
    request("R3", "M", 5, RequestStatus.PENDING),                  # 50 pending
    request("R4", "S", 2, RequestStatus.REJECTED),                 # 100 rejected
    request("R5", "GONE", 7),                                      # unknown material
]


# ══════════════════════════════════════════════════════════════
# SUMMARY
# ══════════════════════════════════════════════════════════════

class TestSpendingSummary:
    def test_totals_by_status(self):
        summary = spending_summary(REQUESTS, MATERIALS)
        assert summary.approved == Decimal("800")
        assert summary.pending == Decimal("50")
        assert summary.rejected == Decimal("100")
        assert summary.total == Decimal("800")

    def test_category_spending_counts_approved_only(self):
        summary = spending_summary(REQUESTS, MATERIALS)
        assert summary.category_spending == {
            "Binders": Decimal("300"),
            "Metals": Decimal("500"),
        }

    def test_unknown_material_left_out(self):
        summary = spending_summary([request("R5", "GONE", 7)], MATERIALS)
        assert summary.approved == Decimal("0")
        assert summary.category_spending == {}

    def test_empty(self):
        summary = spending_summary([], MATERIALS)
        assert summary.total == Decimal("0")


class TestSpendingFilter:
    def test_status(self):
        flt = SpendingFilter(status=RequestStatus.PENDING)
        assert [r.request_id for r in filter_requests(REQUESTS, PROJECTS, flt)] == ["R3"]

    def test_window(self):
        old = request("OLD", at=NOW - timedelta(days=40))
        flt = SpendingFilter(window=TimeWindow.last_days(30, NOW))
        assert filter_requests([old, REQUESTS[0]], PROJECTS, flt) == [REQUESTS[0]]

    def test_user_matches_id_or_name(self):
        by_name = filter_requests(REQUESTS, PROJECTS, SpendingFilter(user="WORKER2"))
        by_id = filter_requests(REQUESTS, PROJECTS, SpendingFilter(user="u1"))
        assert [r.request_id for r in by_name] == ["R2"]
        assert len(by_id) == len(REQUESTS)

    def test_search_covers_project_name(self):
        found = filter_requests(REQUESTS, PROJECTS, SpendingFilter(search="bridge"))
        assert [r.request_id for r in found] == ["R2"]

    def test_search_material_name(self):
        found = filter_requests(REQUESTS, PROJECTS, SpendingFilter(search="steel"))
        assert {r.request_id for r in found} == {"R2", "R4"}

    def test_filtered_summary(self):
        summary = spending_summary(
            REQUESTS, MATERIALS, PROJECTS, SpendingFilter(project_id="Q"),
        )
        assert summary.approved == Decimal("500")
        assert summary.category_spending == {"Metals": Decimal("500")}


class TestProjectSpending:
    def test_per_project_rows(self):
        rows = {row.project_id: row for row in project_spending(REQUESTS, PROJECTS)}

        assert rows["P"].approved_cost == Decimal("307")  # R1 + R5 (unknown material)
        assert rows["P"].spent == Decimal("800")
        assert rows["Q"].approved_cost == Decimal("500")
        assert rows["Q"].remaining == Decimal("500")

    def test_project_without_requests(self):
        rows = project_spending([], PROJECTS)
        assert [row.approved_cost for row in rows] == [Decimal("0"), Decimal("0")]


# ══════════════════════════════════════════════════════════════
# WASTAGE
# ══════════════════════════════════════════════════════════════

class TestWastage:
    def test_consumed_from_latest_audit(self):
        requests = [request("R1", "M", 30), request("R2", "M", 20)]
        audits = [
            audit("A1", "M", 10, NOW),
            audit("A2", "M", 35, NOW + timedelta(hours=1)),
        ]

        [row] = wastage_report(requests, MATERIALS, audits)

        assert row.requested == 50
        assert row.consumed == 35
        assert row.wasted == 15
        assert row.cost_of_wastage == Decimal("150")

    def test_never_audited_counts_zero_consumed(self):
        [row] = wastage_report([request("R1", "S", 4)], MATERIALS, [])
        assert row.consumed == 0
        assert row.wasted == 4
        assert row.cost_of_wastage == Decimal("200")

    def test_fully_consumed_material_omitted(self):
        rows = wastage_report(
            [request("R1", "M", 30)], MATERIALS, [audit("A1", "M", 40)],
        )
        assert rows == []

    def test_pending_and_unknown_ignored(self):
        rows = wastage_report(
            [request("R3", "M", 5, RequestStatus.PENDING), request("R5", "GONE", 7)],
            MATERIALS, [],
        )
        assert rows == []

    def test_filter_status_is_forced_to_approved(self):
        rows = wastage_report(
            REQUESTS, MATERIALS, [], PROJECTS, SpendingFilter(status=RequestStatus.PENDING),
        )
        assert {row.material_id for row in rows} == {"M", "S"}

    def test_audit_without_timestamp_ranks_oldest(self):
        undated = audit("A0", "M", 5, at=None)
        dated = audit("A1", "M", 25)

        assert latest_audits([dated, undated])["M"] is dated
        assert latest_audits([undated])["M"] is undated

    def test_zero_requested_guard(self):
        row = WastageRow("M", "Cement", requested=0, consumed=0, approved_cost=Decimal("0"))
        assert row.cost_of_wastage == Decimal("0")

    def test_high_wastage_flag(self):
        high = WastageRow("M", "Cement", HIGH_WASTAGE_THRESHOLD + 1, 0, Decimal("1"))
        edge = WastageRow("M", "Cement", HIGH_WASTAGE_THRESHOLD, 0, Decimal("1"))
        assert high.high_wastage
        assert not edge.high_wastage


# ══════════════════════════════════════════════════════════════
# READ MODEL
# ══════════════════════════════════════════════════════════════

class TestSpendingReadModel:
    def _services(self):
        svc = build_services(clock=FixedClock(NOW), settings=FulfillmentSettings())
        svc.inventory.register_material(RegisterMaterialRequest(
            material_id="M", name="Cement", price=Decimal("10"), quantity=100,
            category="Binders",
        ))
        svc.budget.register_project(RegisterProjectRequest(
            project_id="P", name="Tower A", budget=Decimal("1000"),
        ))
        return svc

    def test_report_follows_the_store(self):
        svc = self._services()
        worker = Requester("u1", "worker1")
        approved = svc.fulfillment.submit_request("M", "P", 30, worker).record.request_id
        svc.fulfillment.submit_request("M", "P", 5, worker)
        svc.fulfillment.respond(approved, "approve")
        svc.audits.record_audit("M", 60, "auditor")

        report = svc.analytics.report()

        assert report.request_count == 2
        assert report.summary.approved == Decimal("300")
        assert report.summary.pending == Decimal("50")
        assert report.summary.category_spending == {"Binders": Decimal("300")}
        assert [(p.project_id, p.spent) for p in report.projects] == [("P", Decimal("300"))]
        assert report.wastage == []  # 30 requested, latest count 60

    def test_wastage_visible_after_low_count(self):
        svc = self._services()
        request_id = svc.fulfillment.submit_request(
            "M", "P", 30, Requester("u1"),
        ).record.request_id
        svc.fulfillment.respond(request_id, "approve")
        svc.audits.record_audit("M", 12, "auditor")

        [row] = svc.analytics.report().wastage
        assert (row.requested, row.consumed, row.wasted) == (30, 12, 18)

    def test_unsubscribed_model_is_empty(self):
        model = SpendingReadModel()
        report = model.report()
        assert report.request_count == 0
        assert report.summary.total == Decimal("0")

    def test_cancel_freezes_view(self):
        svc = self._services()
        svc.analytics.cancel()
        svc.fulfillment.submit_request("M", "P", 1, Requester("u1"))
        assert svc.analytics.requests() == []

    def test_undated_legacy_audit_does_not_break_report(self):
        svc = self._services()
        request_id = svc.fulfillment.submit_request(
            "M", "P", 30, Requester("u1"),
        ).record.request_id
        svc.fulfillment.respond(request_id, "approve")
        svc.audits.record_audit("M", 12, "auditor")
        svc.store.write(f"{STOCK_AUDITS}/legacy", {
            "material_id": "M", "recorded_quantity": 70, "actual_quantity": 70,
        })

        [row] = svc.analytics.report().wastage
        assert row.consumed == 12

    def test_malformed_records_are_skipped(self, caplog):
        svc = self._services()
        request_id = svc.fulfillment.submit_request(
            "M", "P", 10, Requester("u1"),
        ).record.request_id
        svc.store.write(f"{MATERIAL_REQUESTS}/BROKEN", {"quantity_requested": "lots"})

        with caplog.at_level("WARNING", logger="fieldsync.projections"):
            report = svc.analytics.report()

        assert [r.request_id for r in svc.analytics.requests()] == [request_id]
        assert report.summary.pending == Decimal("100")
        assert f"skipping malformed {MATERIAL_REQUESTS}/BROKEN" in caplog.text

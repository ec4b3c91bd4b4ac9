"""
FieldSync Projections — Spending Analytics
============================================
Pure read-only views over requests, materials, projects and audits.

Every function here is a pure function of its arguments: no store
access, no clock, no hidden state. SpendingReadModel only keeps the
latest snapshot of each collection and calls these functions.

Views:
- spending_summary  — approved / pending / rejected totals, approved
                      spending per material category
- project_spending  — per project budget, spent, approved cost
- wastage_report    — approved quantity not found by the latest audit
"""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from threading import Lock
from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence, TypeVar

from core.ledger_store import (
    MATERIAL_REQUESTS,
    MATERIALS,
    PROJECTS,
    STOCK_AUDITS,
    LedgerStore,
    Snapshot,
    Subscription,
)
from core.primitives import Material, MaterialRequest, Project, RequestStatus, StockAudit
from core.time import TimeWindow
from engines.stock_audit.services import audit_order

logger = logging.getLogger("fieldsync.projections")

HIGH_WASTAGE_THRESHOLD = 50

T = TypeVar("T")


# ══════════════════════════════════════════════════════════════
# FILTER
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SpendingFilter:
    """
    Request filter shared by all views.

    status:     Only requests in this status (None = all).
    window:     Only requests whose requested_at falls in the window.
    project_id: Only requests of this project.
    user:       Matches user_id or username (case-insensitive).
    search:     Substring of material name, username or project name.
    """

    status: Optional[RequestStatus] = None
    window: Optional[TimeWindow] = None
    project_id: Optional[str] = None
    user: Optional[str] = None
    search: Optional[str] = None

    def matches(self, request: MaterialRequest, project_name: str = "") -> bool:
        if self.status is not None and request.status != self.status:
            return False
        if self.window is not None and not self.window.contains(request.requested_at):
            return False
        if self.project_id is not None and request.project_id != self.project_id:
            return False
        if self.user:
            user = self.user.lower()
            if user not in (request.user_id.lower(), request.username.lower()):
                return False
        if self.search:
            needle = self.search.lower()
            haystack = (request.material_name, request.username, project_name)
            if not any(needle in text.lower() for text in haystack):
                return False
        return True


def filter_requests(
    requests: Iterable[MaterialRequest],
    projects: Optional[Mapping[str, Project]] = None,
    flt: Optional[SpendingFilter] = None,
) -> List[MaterialRequest]:
    if flt is None:
        return list(requests)
    projects = projects or {}
    return [
        r for r in requests
        if flt.matches(r, projects[r.project_id].name if r.project_id in projects else "")
    ]


# ══════════════════════════════════════════════════════════════
# VIEWS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SpendingSummary:
    approved: Decimal = Decimal("0")
    pending: Decimal = Decimal("0")
    rejected: Decimal = Decimal("0")
    category_spending: Dict[str, Decimal] = field(default_factory=dict)

    @property
    def total(self) -> Decimal:
        """Total spending counts approved requests only."""
        return self.approved


def spending_summary(
    requests: Iterable[MaterialRequest],
    materials: Mapping[str, Material],
    projects: Optional[Mapping[str, Project]] = None,
    flt: Optional[SpendingFilter] = None,
) -> SpendingSummary:
    """Requests whose material is unknown are left out of every total."""
    totals = {status: Decimal("0") for status in RequestStatus}
    categories: Dict[str, Decimal] = defaultdict(Decimal)

    for request in filter_requests(requests, projects, flt):
        material = materials.get(request.material_id)
        if material is None:
            continue
        totals[request.status] += request.total_cost
        if request.status == RequestStatus.APPROVED:
            categories[material.category] += request.total_cost

    return SpendingSummary(
        approved=totals[RequestStatus.APPROVED],
        pending=totals[RequestStatus.PENDING],
        rejected=totals[RequestStatus.REJECTED],
        category_spending=dict(sorted(categories.items())),
    )


@dataclass(frozen=True)
class ProjectSpending:
    project_id: str
    name: str
    budget: Decimal
    spent: Decimal
    approved_cost: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.budget - self.spent


def project_spending(
    requests: Iterable[MaterialRequest],
    projects: Mapping[str, Project],
    flt: Optional[SpendingFilter] = None,
) -> List[ProjectSpending]:
    approved_cost: Dict[str, Decimal] = defaultdict(Decimal)
    for request in filter_requests(requests, projects, flt):
        if request.is_approved and request.project_id in projects:
            approved_cost[request.project_id] += request.total_cost

    return [
        ProjectSpending(
            project_id=project.project_id,
            name=project.name,
            budget=project.budget,
            spent=project.spent,
            approved_cost=approved_cost[project.project_id],
        )
        for _, project in sorted(projects.items())
    ]


@dataclass(frozen=True)
class WastageRow:
    material_id: str
    material_name: str
    requested: int
    consumed: int
    approved_cost: Decimal

    @property
    def wasted(self) -> int:
        return max(0, self.requested - self.consumed)

    @property
    def cost_of_wastage(self) -> Decimal:
        if self.requested == 0:
            return Decimal("0")
        return self.wasted * (self.approved_cost / self.requested)

    @property
    def high_wastage(self) -> bool:
        return self.wasted > HIGH_WASTAGE_THRESHOLD


def latest_audits(audits: Iterable[StockAudit]) -> Dict[str, StockAudit]:
    """Latest audit per material; audits without a timestamp rank oldest."""
    latest: Dict[str, StockAudit] = {}
    for audit in sorted(audits, key=audit_order):
        latest[audit.material_id] = audit
    return latest


def wastage_report(
    requests: Iterable[MaterialRequest],
    materials: Mapping[str, Material],
    audits: Sequence[StockAudit],
    projects: Optional[Mapping[str, Project]] = None,
    flt: Optional[SpendingFilter] = None,
) -> List[WastageRow]:
    """
    Per material with approved requests (in the filter):
        requested = Σ approved quantity
        consumed  = latest audit's actual quantity (0 if never audited)
        wasted    = max(0, requested - consumed)
    Only rows with wasted > 0 are returned.
    """
    approved_only = replace(flt or SpendingFilter(), status=RequestStatus.APPROVED)
    requested: Dict[str, int] = defaultdict(int)
    cost: Dict[str, Decimal] = defaultdict(Decimal)
    names: Dict[str, str] = {}

    for request in filter_requests(requests, projects, approved_only):
        if request.material_id not in materials:
            continue
        requested[request.material_id] += request.quantity_requested
        cost[request.material_id] += request.total_cost
        names.setdefault(request.material_id, request.material_name)

    latest = latest_audits(audits)
    rows = []
    for material_id in sorted(requested):
        audit = latest.get(material_id)
        row = WastageRow(
            material_id=material_id,
            material_name=names[material_id],
            requested=requested[material_id],
            consumed=audit.actual_quantity if audit else 0,
            approved_cost=cost[material_id],
        )
        if row.wasted > 0:
            rows.append(row)
    return rows


# ══════════════════════════════════════════════════════════════
# READ MODEL
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SpendingReport:
    summary: SpendingSummary
    projects: List[ProjectSpending]
    wastage: List[WastageRow]
    request_count: int


class SpendingReadModel:
    """
    Latest snapshot of each input collection, fed by store
    subscriptions. Reports are recomputed on demand from those
    snapshots; the read model never writes to the store.
    """

    projection_name = "spending_read_model"

    COLLECTIONS = (MATERIAL_REQUESTS, MATERIALS, PROJECTS, STOCK_AUDITS)

    def __init__(self) -> None:
        self._snapshots: Dict[str, Snapshot] = {}
        self._lock = Lock()
        self._subscriptions: List[Subscription] = []

    def subscribe(self, store: LedgerStore) -> List[Subscription]:
        for collection in self.COLLECTIONS:
            self._subscriptions.append(
                store.subscribe(collection, self.apply, subscriber_name=self.projection_name)
            )
        return list(self._subscriptions)

    def cancel(self) -> None:
        for subscription in self._subscriptions:
            subscription.cancel()
        self._subscriptions.clear()

    def apply(self, snapshot: Snapshot) -> None:
        with self._lock:
            self._snapshots[snapshot.path] = snapshot

    def _children(self, collection: str) -> Dict[str, dict]:
        with self._lock:
            snapshot = self._snapshots.get(collection)
        return snapshot.children() if snapshot is not None else {}

    def _records(self, collection: str, parse: Callable[[str, dict], T]) -> Dict[str, T]:
        """Typed records of a collection; malformed ones are logged and skipped."""
        records: Dict[str, T] = {}
        for record_id, raw in sorted(self._children(collection).items()):
            try:
                records[record_id] = parse(record_id, raw)
            except (TypeError, ValueError) as exc:
                logger.warning(f"{self.projection_name}: skipping malformed {collection}/{record_id}: {exc}")
        return records

    def requests(self) -> List[MaterialRequest]:
        return list(self._records(MATERIAL_REQUESTS, MaterialRequest.from_record).values())

    def materials(self) -> Dict[str, Material]:
        return self._records(MATERIALS, Material.from_record)

    def projects(self) -> Dict[str, Project]:
        return self._records(PROJECTS, Project.from_record)

    def audits(self) -> List[StockAudit]:
        return sorted(self._records(STOCK_AUDITS, StockAudit.from_record).values(), key=audit_order)

    def report(self, flt: Optional[SpendingFilter] = None) -> SpendingReport:
        requests = self.requests()
        materials = self.materials()
        projects = self.projects()
        return SpendingReport(
            summary=spending_summary(requests, materials, projects, flt),
            projects=project_spending(requests, projects, flt),
            wastage=wastage_report(requests, materials, self.audits(), projects, flt),
            request_count=len(filter_requests(requests, projects, flt)),
        )

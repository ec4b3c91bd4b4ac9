"""
FieldSync Dispatch Engine — Application Service
=================================================
DispatchScheduler owns dispatches/{id} and drivers/{id}.

Invariant: every approved material request has exactly one dispatch,
keyed by the request id.

Reconciliation (diff-then-write):
    desired = approved request ids
    actual  = existing dispatch ids
    for each id in desired - actual:
        hold the dispatch lock, re-check, create-only commit
        (expected_version=0) together with delivery_assigned=True

Redelivered snapshots find the dispatch already present and do
nothing. Reconciliation NEVER touches stock: the approval already
deducted it. Manual dispatches carry their own single deduction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Iterable, List, Optional, Tuple

from core.commands import OperationOutcome, run_operation
from core.commands.errors import InvalidTransition, NotFound
from core.config import FulfillmentSettings
from core.ledger_store import (
    DISPATCHES,
    DRIVERS,
    LedgerStore,
    VersionConflict,
    Write,
    new_record_id,
    record_path,
)
from core.primitives import (
    UNASSIGNED_DRIVER,
    Dispatch,
    DispatchStatus,
    Driver,
    InventoryAction,
    MaterialRequest,
)
from core.primitives.coercion import datetime_to_iso
from core.time import Clock, SystemClock, add_days
from engines.dispatch.commands import (
    CreateDispatchRequest,
    RegisterDriverRequest,
    UpdateDispatchStatusRequest,
)
from engines.dispatch.policies import DriverAssignmentPolicy, build_driver_policy
from engines.inventory.events import build_log_entry, log_entry_write
from engines.inventory.policies import sufficient_stock_policy
from engines.inventory.services import InventoryStore
from engines.requests.services import RequestLedger

logger = logging.getLogger("fieldsync.dispatch")


@dataclass(frozen=True)
class ReconcileResult:
    created: Tuple[str, ...] = ()
    already_dispatched: int = 0

    @property
    def created_count(self) -> int:
        return len(self.created)


class DispatchScheduler:

    def __init__(
        self,
        store: LedgerStore,
        inventory: InventoryStore,
        requests: RequestLedger,
        clock: Optional[Clock] = None,
        settings: Optional[FulfillmentSettings] = None,
        policy: Optional[DriverAssignmentPolicy] = None,
    ):
        self._store = store
        self._inventory = inventory
        self._requests = requests
        self._clock = clock or SystemClock()
        self._settings = settings or FulfillmentSettings()
        self._policy = policy or build_driver_policy(self._settings.driver_policy)

    @property
    def policy(self) -> DriverAssignmentPolicy:
        return self._policy

    @staticmethod
    def path(dispatch_id: str) -> str:
        return record_path(DISPATCHES, dispatch_id)

    # ══════════════════════════════════════════════════════════
    # READS
    # ══════════════════════════════════════════════════════════

    def read(self, dispatch_id: str) -> Tuple[Dispatch, int]:
        snapshot = self._store.read_once(self.path(dispatch_id))
        if not snapshot.exists:
            raise NotFound("Dispatch", dispatch_id)
        return Dispatch.from_record(dispatch_id, snapshot.value), snapshot.version

    def get(self, dispatch_id: str) -> Dispatch:
        return self.read(dispatch_id)[0]

    def list_dispatches(self) -> List[Dispatch]:
        """Every readable dispatch; malformed records are logged and skipped."""
        snapshot = self._store.read_once(DISPATCHES)
        dispatches = []
        for dispatch_id, raw in sorted(snapshot.children().items()):
            try:
                dispatches.append(Dispatch.from_record(dispatch_id, raw))
            except (TypeError, ValueError) as exc:
                logger.warning(f"Skipping malformed dispatch {dispatch_id}: {exc}")
        return dispatches

    def list_drivers(self, active_only: bool = False) -> List[Driver]:
        snapshot = self._store.read_once(DRIVERS)
        drivers = []
        for driver_id, raw in sorted(snapshot.children().items()):
            try:
                drivers.append(Driver.from_record(driver_id, raw))
            except (TypeError, ValueError) as exc:
                logger.warning(f"Skipping malformed driver {driver_id}: {exc}")
        if active_only:
            drivers = [d for d in drivers if d.active]
        return drivers

    def _get_driver(self, driver_id: str) -> Driver:
        snapshot = self._store.read_once(record_path(DRIVERS, driver_id))
        if not snapshot.exists:
            raise NotFound("Driver", driver_id)
        return Driver.from_record(driver_id, snapshot.value)

    # ══════════════════════════════════════════════════════════
    # DRIVERS
    # ══════════════════════════════════════════════════════════

    def register_driver(self, request: RegisterDriverRequest) -> Driver:
        driver = Driver(
            driver_id=request.driver_id or new_record_id("DRV"),
            name=request.name.strip(),
            vehicle_number=request.vehicle_number,
            active=request.active,
        )
        self._store.commit([
            Write.create(record_path(DRIVERS, driver.driver_id), driver.to_record()),
        ])
        logger.info(f"Driver registered: {driver.driver_id} '{driver.name}'")
        return driver

    # ══════════════════════════════════════════════════════════
    # RECONCILIATION
    # ══════════════════════════════════════════════════════════

    def reconcile(
        self, requests: Optional[Iterable[MaterialRequest]] = None,
    ) -> ReconcileResult:
        """Create the missing dispatch of every approved request."""
        if requests is None:
            requests = self._requests.list_requests()

        desired = {r.request_id: r for r in requests if r.is_approved}
        actual = set(self._store.read_once(DISPATCHES).children())
        missing = sorted(set(desired) - actual)

        created = [
            request_id for request_id in missing
            if self._create_for_request(desired[request_id])
        ]
        return ReconcileResult(
            created=tuple(created),
            already_dispatched=len(desired) - len(created),
        )

    def _create_for_request(self, request: MaterialRequest) -> bool:
        path = self.path(request.request_id)
        request_path = self._requests.path(request.request_id)
        with self._store.locked(path, request_path):
            if self._store.read_once(path).exists:
                return False
            request_snapshot = self._store.read_once(request_path)
            if not request_snapshot.exists:
                logger.warning(f"Request {request.request_id} no longer exists; no dispatch created.")
                return False

            driver = self._assign_driver()
            now = self._clock.now_utc()
            dispatch = Dispatch(
                dispatch_id=request.request_id,
                material_id=request.material_id,
                material_name=request.material_name,
                quantity=request.quantity_requested,
                from_site=self._settings.default_from_site,
                to_site=self._settings.default_to_site,
                driver_id=driver.driver_id,
                driver_name=driver.name,
                vehicle_number=driver.vehicle_number,
                dispatch_time=now,
                eta=add_days(now, self._settings.eta_days),
                request_id=request.request_id,
            )
            try:
                self._store.commit([
                    Write.create(path, dispatch.to_record()),
                    self._requests.delivery_assigned_write(
                        request.request_id, request_snapshot.version,
                    ),
                ])
            except VersionConflict:
                logger.info(f"Dispatch {request.request_id} or its request changed concurrently; skipped.")
                return False

        logger.info(
            f"Dispatch created for request {request.request_id}: "
            f"{dispatch.quantity} of {dispatch.material_name} "
            f"driver={driver.driver_id} eta={dispatch.eta.isoformat()}"
        )
        return True

    def _assign_driver(self) -> Driver:
        drivers = self.list_drivers(active_only=True)
        if not drivers:
            logger.warning(
                f"No active drivers; dispatch assigned to {UNASSIGNED_DRIVER.driver_id}."
            )
            return UNASSIGNED_DRIVER
        dispatches = self.list_dispatches() if getattr(self._policy, "uses_dispatches", True) else []
        return self._policy.choose(drivers, dispatches)

    # ══════════════════════════════════════════════════════════
    # MANUAL DISPATCH
    # ══════════════════════════════════════════════════════════

    def create_dispatch(
        self,
        material_id: str,
        quantity: int,
        driver_id: str,
        vehicle_number: Optional[str] = None,
        from_site: Optional[str] = None,
        to_site: Optional[str] = None,
        created_by: str = "admin",
    ) -> OperationOutcome:
        """Ad-hoc dispatch with its own single stock deduction."""
        return run_operation(
            "dispatch.create_dispatch",
            lambda: self._create_manual(CreateDispatchRequest(
                material_id=material_id,
                quantity=quantity,
                driver_id=driver_id,
                created_by=created_by,
                vehicle_number=vehicle_number,
                from_site=from_site,
                to_site=to_site,
            )),
            clock=self._clock,
        )

    def _create_manual(self, command: CreateDispatchRequest):
        driver = self._get_driver(command.driver_id)

        with self._store.locked(self._inventory.path(command.material_id)):
            material, version = self._inventory.read(command.material_id)
            violation = sufficient_stock_policy(material, command.quantity)
            if violation:
                raise violation

            now = self._clock.now_utc()
            dispatch = Dispatch(
                dispatch_id=new_record_id("DISP"),
                material_id=material.material_id,
                material_name=material.name,
                quantity=command.quantity,
                from_site=command.from_site or self._settings.default_from_site,
                to_site=command.to_site or self._settings.default_to_site,
                driver_id=driver.driver_id,
                driver_name=driver.name,
                vehicle_number=command.vehicle_number or driver.vehicle_number,
                dispatch_time=now,
                eta=add_days(now, self._settings.eta_days),
            )
            deducted = material.with_quantity(material.quantity - command.quantity, now)
            entry = build_log_entry(
                deducted,
                InventoryAction.DISPATCHED,
                -command.quantity,
                command.created_by,
                now,
                reference_id=dispatch.dispatch_id,
            )
            self._store.commit([
                Write.create(self.path(dispatch.dispatch_id), dispatch.to_record()),
                self._inventory.quantity_write(deducted, version),
                log_entry_write(entry),
            ])

        message = (
            f"Dispatched {command.quantity} {material.unit_type} of {material.name} "
            f"to {dispatch.to_site} ({material.quantity} → {deducted.quantity} in stock)."
        )
        return message, dispatch

    # ══════════════════════════════════════════════════════════
    # STATUS
    # ══════════════════════════════════════════════════════════

    def update_status(self, dispatch_id: str, new_status) -> OperationOutcome:
        """in-transit → delivered (stamps delivery_time) or → delayed."""
        return run_operation(
            "dispatch.update_status",
            lambda: self._update_status(UpdateDispatchStatusRequest(
                dispatch_id=dispatch_id,
                new_status=UpdateDispatchStatusRequest.parse_status(new_status),
            )),
            clock=self._clock,
        )

    update_dispatch_status = update_status

    def _update_status(self, command: UpdateDispatchStatusRequest):
        path = self.path(command.dispatch_id)
        with self._store.locked(path):
            dispatch, version = self.read(command.dispatch_id)
            if not dispatch.can_transition_to(command.new_status):
                raise InvalidTransition(
                    "Dispatch", dispatch.dispatch_id,
                    dispatch.status.value, command.new_status.value,
                )

            updated = replace(dispatch, status=command.new_status)
            fields = {"status": command.new_status.value}
            if command.new_status == DispatchStatus.DELIVERED:
                updated = replace(updated, delivery_time=self._clock.now_utc())
                fields["delivery_time"] = datetime_to_iso(updated.delivery_time)

            self._store.commit([Write.update(path, fields, expected_version=version)])

        message = (
            f"Dispatch {dispatch.dispatch_id} moved from {dispatch.status.value} "
            f"to {updated.status.value}."
        )
        return message, updated

"""
FieldSync Inventory Engine — Application Service
==================================================
InventoryStore owns materials/{id} and inventory_logs/{id}.

Consumers read materials through it. Components that change stock
as part of a larger commit (approval, manual dispatch, audit) take
a versioned read, build the quantity write here and commit it
together with their own writes.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import List, Optional, Tuple

from core.commands import OperationOutcome, run_operation
from core.commands.errors import NotFound
from core.config import FulfillmentSettings
from core.ledger_store import (
    INVENTORY_LOGS,
    MATERIALS,
    LedgerStore,
    Write,
    new_record_id,
    record_path,
)
from core.primitives import InventoryAction, InventoryLogEntry, Material
from core.time import Clock, SystemClock
from engines.inventory.commands import (
    RegisterMaterialRequest,
    RestockRequest,
    UpdateMaterialRequest,
)
from engines.inventory.events import build_log_entry, log_entry_write

logger = logging.getLogger("fieldsync.inventory")


class InventoryStore:
    """Owner of material stock records and the inventory log."""

    def __init__(
        self,
        store: LedgerStore,
        clock: Optional[Clock] = None,
        settings: Optional[FulfillmentSettings] = None,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._settings = settings or FulfillmentSettings()

    # ── Reads ─────────────────────────────────────────────────

    @staticmethod
    def path(material_id: str) -> str:
        return record_path(MATERIALS, material_id)

    def read(self, material_id: str) -> Tuple[Material, int]:
        """Material and its record version; NotFound if absent."""
        snapshot = self._store.read_once(self.path(material_id))
        if not snapshot.exists:
            raise NotFound("Material", material_id)
        return Material.from_record(material_id, snapshot.value), snapshot.version

    def get(self, material_id: str) -> Material:
        return self.read(material_id)[0]

    def find(self, material_id: str) -> Optional[Material]:
        try:
            return self.get(material_id)
        except NotFound:
            return None

    def list_materials(self) -> List[Material]:
        snapshot = self._store.read_once(MATERIALS)
        return [
            Material.from_record(material_id, raw)
            for material_id, raw in sorted(snapshot.children().items())
        ]

    def low_stock(self, threshold: Optional[int] = None) -> List[Material]:
        if threshold is None:
            threshold = self._settings.low_stock_threshold
        return [m for m in self.list_materials() if m.is_low_stock(threshold)]

    def logs_for(self, material_id: str) -> List[InventoryLogEntry]:
        """Inventory log of one material, oldest first."""
        snapshot = self._store.read_once(INVENTORY_LOGS)
        entries = [
            InventoryLogEntry.from_record(log_id, raw)
            for log_id, raw in snapshot.children().items()
            if raw.get("material_id") == material_id
        ]
        return sorted(entries, key=lambda e: (e.logged_at, e.log_id))

    # ── Write builders ────────────────────────────────────────

    def quantity_write(self, material: Material, expected_version: int) -> Write:
        """Conditional write of a new quantity for a previously read material."""
        return Write.update(
            self.path(material.material_id),
            {
                "quantity": material.quantity,
                "updated_at": material.to_record()["updated_at"],
            },
            expected_version=expected_version,
        )

    # ── Operations ────────────────────────────────────────────

    def register_material(self, request: RegisterMaterialRequest) -> Material:
        now = self._clock.now_utc()
        material = Material(
            material_id=request.material_id or new_record_id("MAT"),
            name=request.name.strip(),
            price=request.price,
            quantity=request.quantity,
            category=request.category,
            unit_type=request.unit_type,
            supplier=request.supplier,
            description=request.description,
            created_at=now,
            updated_at=now,
        )
        entry = build_log_entry(
            material, InventoryAction.ADDED, material.quantity,
            request.registered_by, now,
        )
        self._store.commit([
            Write.create(self.path(material.material_id), material.to_record()),
            log_entry_write(entry),
        ])
        logger.info(
            f"Material registered: {material.material_id} '{material.name}' "
            f"qty={material.quantity} price={material.price}"
        )
        return material

    def restock(self, material_id: str, quantity: int, restocked_by: str) -> OperationOutcome:
        return run_operation(
            "inventory.restock",
            lambda: self._restock(RestockRequest(material_id, quantity, restocked_by)),
            clock=self._clock,
        )

    def _restock(self, request: RestockRequest):
        path = self.path(request.material_id)
        with self._store.locked(path):
            material, version = self.read(request.material_id)
            now = self._clock.now_utc()
            updated = material.with_quantity(material.quantity + request.quantity, now)
            entry = build_log_entry(
                updated, InventoryAction.RESTOCKED, request.quantity,
                request.restocked_by, now,
            )
            self._store.commit([
                self.quantity_write(updated, version),
                log_entry_write(entry),
            ])

        message = (
            f"Restocked {request.quantity} {material.unit_type} of {material.name} "
            f"({material.quantity} → {updated.quantity})."
        )
        return message, updated

    def update_material(self, material_id: str, updated_by: str = "admin", **changes) -> OperationOutcome:
        """
        Edit catalogue fields and, optionally, overwrite the stock count.

        Serialized with approvals, audits and restocks on the material
        lock; a quantity change is logged as Edited with its signed delta.
        """
        return run_operation(
            "inventory.update_material",
            lambda: self._update_material(
                UpdateMaterialRequest(material_id=material_id, updated_by=updated_by, **changes)
            ),
            clock=self._clock,
        )

    def _update_material(self, request: UpdateMaterialRequest):
        path = self.path(request.material_id)
        with self._store.locked(path):
            material, version = self.read(request.material_id)
            now = self._clock.now_utc()
            updated = replace(material, updated_at=now, **request.changes())

            writes = [Write.update(path, updated.to_record(), expected_version=version)]
            delta = updated.quantity - material.quantity
            if delta:
                writes.append(log_entry_write(build_log_entry(
                    updated, InventoryAction.EDITED, delta, request.updated_by, now,
                )))
            self._store.commit(writes)

        logger.info(
            f"Material updated: {updated.material_id} by {request.updated_by} "
            f"fields={sorted(request.changes())}"
        )
        message = f"Updated {updated.name}."
        if delta:
            message = f"Updated {updated.name} ({material.quantity} → {updated.quantity} in stock)."
        return message, updated

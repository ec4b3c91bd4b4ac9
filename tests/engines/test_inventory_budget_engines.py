"""FieldSync inventory and budget engine tests."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from core.commands import ReasonCode, ValidationError
from core.commands.errors import NotFound
from core.config import FulfillmentSettings
from core.ledger_store import InMemoryLedgerStore, VersionConflict
from core.primitives import InventoryAction
from core.time import FixedClock
from engines.budget.commands import RegisterProjectRequest, TopUpBudgetRequest
from engines.budget.policies import budget_ceiling_policy
from engines.budget.services import ProjectBudget
from engines.inventory.commands import (
    RegisterMaterialRequest,
    RestockRequest,
    UpdateMaterialRequest,
)
from engines.inventory.policies import sufficient_stock_policy
from engines.inventory.services import InventoryStore

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


def inventory(threshold=10):
    return InventoryStore(
        InMemoryLedgerStore(),
        clock=FixedClock(NOW),
        settings=FulfillmentSettings(low_stock_threshold=threshold),
    )


def cement(**overrides):
    fields = dict(material_id="M", name="Cement", price=Decimal("10"), quantity=100)
    fields.update(overrides)
    return RegisterMaterialRequest(**fields)


# ══════════════════════════════════════════════════════════════
# INVENTORY
# ══════════════════════════════════════════════════════════════

class TestRegisterMaterial:
    def test_register(self):
        store = inventory()
        material = store.register_material(cement(category="Binders"))

        assert material.created_at == NOW
        assert store.get("M") == material
        assert store.get("M").category == "Binders"
        assert store.get("M").supplier == "N/A"

    def test_added_log_entry(self):
        store = inventory()
        store.register_material(cement(registered_by="storekeeper"))
        [entry] = store.logs_for("M")
        assert entry.action == InventoryAction.ADDED
        assert entry.quantity_change == 100
        assert entry.changed_by == "storekeeper"

    def test_generated_id(self):
        material = inventory().register_material(cement(material_id=None))
        assert material.material_id.startswith("MAT-")

    def test_duplicate_id_rejected(self):
        store = inventory()
        store.register_material(cement())
        with pytest.raises(VersionConflict):
            store.register_material(cement(quantity=5))
        assert store.get("M").quantity == 100

    @pytest.mark.parametrize("overrides", [
        {"name": " "},
        {"price": Decimal("-1")},
        {"quantity": -1},
        {"quantity": 2.5},
    ])
    def test_invalid_input(self, overrides):
        with pytest.raises(ValidationError):
            cement(**overrides)

    def test_missing_material(self):
        store = inventory()
        with pytest.raises(NotFound):
            store.get("NOPE")
        assert store.find("NOPE") is None


class TestRestock:
    def test_restock_adds_quantity(self):
        store = inventory()
        store.register_material(cement())

        outcome = store.restock("M", 25, "storekeeper")

        assert outcome.is_accepted
        assert outcome.operation == "inventory.restock"
        assert outcome.record.quantity == 125
        assert store.get("M").quantity == 125
        restocked = [e for e in store.logs_for("M") if e.action == InventoryAction.RESTOCKED]
        assert [e.quantity_change for e in restocked] == [25]

    def test_non_positive_restock(self):
        store = inventory()
        store.register_material(cement())
        outcome = store.restock("M", 0, "storekeeper")
        assert outcome.code == ReasonCode.VALIDATION_ERROR
        assert store.get("M").quantity == 100

    def test_restock_unknown_material(self):
        outcome = inventory().restock("NOPE", 5, "storekeeper")
        assert outcome.code == ReasonCode.NOT_FOUND

    def test_restock_request_requires_actor(self):
        with pytest.raises(ValidationError):
            RestockRequest("M", 5, "")


class TestUpdateMaterial:
    def _store(self):
        clock = FixedClock(NOW)
        store = InventoryStore(InMemoryLedgerStore(), clock=clock)
        store.register_material(cement(category="Binders"))
        clock.advance(3600)
        return store

    def test_edit_keeps_created_at(self):
        store = self._store()

        outcome = store.update_material("M", name=" Cement 53 ", price=Decimal("11.5"))

        material = store.get("M")
        assert outcome.is_accepted
        assert outcome.operation == "inventory.update_material"
        assert (material.name, material.price, material.category) == (
            "Cement 53", Decimal("11.5"), "Binders",
        )
        assert material.created_at == NOW
        assert material.updated_at == NOW + timedelta(hours=1)
        assert [e.action for e in store.logs_for("M")] == [InventoryAction.ADDED]

    def test_quantity_change_is_logged(self):
        store = self._store()

        outcome = store.update_material("M", quantity=80, updated_by="storekeeper")

        edited = [e for e in store.logs_for("M") if e.action == InventoryAction.EDITED]
        assert outcome.record.quantity == 80
        assert store.get("M").quantity == 80
        assert [(e.quantity_change, e.changed_by) for e in edited] == [(-20, "storekeeper")]
        assert "100 → 80" in outcome.message

    @pytest.mark.parametrize("changes", [
        {"price": Decimal("0")},
        {"price": Decimal("-1")},
        {"quantity": -1},
        {"name": "  "},
        {},
    ])
    def test_invalid_edit_rejected(self, changes):
        store = self._store()
        outcome = store.update_material("M", **changes)
        assert outcome.code == ReasonCode.VALIDATION_ERROR
        assert store.get("M").price == Decimal("10")
        assert store.get("M").quantity == 100

    def test_unknown_material(self):
        outcome = inventory().update_material("NOPE", price=Decimal("1"))
        assert outcome.code == ReasonCode.NOT_FOUND

    def test_request_lists_only_given_fields(self):
        request = UpdateMaterialRequest("M", price=Decimal("2"), supplier="Acme")
        assert request.changes() == {"price": Decimal("2"), "supplier": "Acme"}


class TestStockQueries:
    def test_low_stock_uses_configured_threshold(self):
        store = inventory(threshold=10)
        store.register_material(cement(material_id="A", quantity=9))
        store.register_material(cement(material_id="B", quantity=10))
        store.register_material(cement(material_id="C", quantity=0))

        assert [m.material_id for m in store.low_stock()] == ["A", "C"]
        assert [m.material_id for m in store.low_stock(threshold=1)] == ["C"]

    def test_list_materials_sorted(self):
        store = inventory()
        store.register_material(cement(material_id="B"))
        store.register_material(cement(material_id="A"))
        assert [m.material_id for m in store.list_materials()] == ["A", "B"]

    def test_sufficient_stock_policy(self):
        material = inventory().register_material(cement(quantity=10))
        assert sufficient_stock_policy(material, 10) is None
        violation = sufficient_stock_policy(material, 11)
        assert violation.available == 10
        assert violation.requested == 11


# ══════════════════════════════════════════════════════════════
# BUDGET
# ══════════════════════════════════════════════════════════════

class TestProjectBudget:
    def test_register_project(self):
        budget = ProjectBudget(InMemoryLedgerStore(), clock=FixedClock(NOW))
        project = budget.register_project(RegisterProjectRequest(
            project_id="P", name="Tower A", budget=Decimal("1000"), spent=Decimal("900"),
        ))
        assert budget.get("P") == project
        assert project.remaining == Decimal("100")
        assert project.opening_spent == Decimal("900")

    def test_spent_above_budget_rejected(self):
        with pytest.raises(ValidationError, match="cannot exceed"):
            RegisterProjectRequest(budget=Decimal("10"), spent=Decimal("11"))

    def test_top_up(self):
        budget = ProjectBudget(InMemoryLedgerStore(), clock=FixedClock(NOW))
        budget.register_project(RegisterProjectRequest(
            project_id="P", budget=Decimal("1000"), spent=Decimal("900"),
        ))

        outcome = budget.top_up("P", Decimal("500"))

        assert outcome.is_accepted
        assert outcome.operation == "budget.top_up"
        assert budget.get("P").budget == Decimal("1500")
        assert budget.get("P").spent == Decimal("900")

    def test_top_up_must_be_positive(self):
        with pytest.raises(ValidationError):
            TopUpBudgetRequest("P", Decimal("0"))

    def test_top_up_unknown_project(self):
        budget = ProjectBudget(InMemoryLedgerStore(), clock=FixedClock(NOW))
        assert budget.top_up("NOPE", Decimal("5")).code == ReasonCode.NOT_FOUND

    def test_list_projects(self):
        budget = ProjectBudget(InMemoryLedgerStore())
        budget.register_project(RegisterProjectRequest(project_id="B", budget=Decimal("1")))
        budget.register_project(RegisterProjectRequest(project_id="A", budget=Decimal("1")))
        assert [p.project_id for p in budget.list_projects()] == ["A", "B"]

    def test_budget_ceiling_policy(self):
        budget = ProjectBudget(InMemoryLedgerStore())
        project = budget.register_project(RegisterProjectRequest(
            project_id="P", budget=Decimal("100"),
        ))
        assert budget_ceiling_policy(project, Decimal("100")) is None
        assert budget_ceiling_policy(project, Decimal("100.01")).requested == Decimal("100.01")

"""
FieldSync — Django Ledger Store Contract Tests
================================================
Same contract as the in-memory store, persisted through LedgerNode.
Uses transaction=True so on_commit notifications actually run.
"""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from core.ledger_store import VersionConflict, Write
from core.ledger_store.django_store import DjangoLedgerStore
from core.ledger_store.models import LedgerNode

pytestmark = pytest.mark.django_db(transaction=True)

NOW = datetime(2026, 3, 2, 9, 0, 0, tzinfo=timezone.utc)


class TestDjangoLedgerReadWrite:
    def test_absent_record(self):
        snap = DjangoLedgerStore().read_once("materials/m-1")
        assert snap.value is None
        assert snap.version == 0

    def test_write_persists_node(self):
        store = DjangoLedgerStore()
        store.write("materials/m-1", {"name": "Cement", "quantity": 5})

        node = LedgerNode.objects.get(path="materials/m-1")
        assert node.collection == "materials"
        assert node.record_id == "m-1"
        assert node.value == {"name": "Cement", "quantity": 5}
        assert node.version == 1

    def test_partial_update_merges_and_bumps_version(self):
        store = DjangoLedgerStore()
        store.write("materials/m-1", {"name": "Cement", "quantity": 5})
        version = store.partial_update("materials/m-1", {"quantity": 2})

        snap = store.read_once("materials/m-1")
        assert version == 2
        assert snap.value == {"name": "Cement", "quantity": 2}

    def test_delete_removes_node(self):
        store = DjangoLedgerStore()
        store.write("materials/m-1", {"name": "Cement"})
        store.delete("materials/m-1")
        assert not LedgerNode.objects.filter(path="materials/m-1").exists()

    def test_collection_snapshot(self):
        store = DjangoLedgerStore()
        store.write("projects/a", {"name": "A"})
        store.write("projects/b", {"name": "B"})
        children = store.read_once("projects").children()
        assert children == {"a": {"name": "A"}, "b": {"name": "B"}}


class TestDjangoLedgerCommit:
    def test_conflict_writes_nothing(self):
        store = DjangoLedgerStore()
        store.write("materials/m-1", {"quantity": 10})

        with pytest.raises(VersionConflict):
            store.commit([
                Write.set("projects/p-1", {"spent": "5"}),
                Write.update("materials/m-1", {"quantity": 9}, expected_version=3),
            ])

        assert not LedgerNode.objects.filter(path="projects/p-1").exists()
        assert store.read_once("materials/m-1").value == {"quantity": 10}

    def test_create_only(self):
        store = DjangoLedgerStore()
        store.commit([Write.create("dispatches/r-1", {"quantity": 1})])
        with pytest.raises(VersionConflict):
            store.commit([Write.create("dispatches/r-1", {"quantity": 2})])
        assert LedgerNode.objects.filter(collection="dispatches").count() == 1


class TestDjangoLedgerSubscriptions:
    def test_subscriber_notified_after_commit(self):
        store = DjangoLedgerStore()
        seen = []
        store.subscribe("materials", seen.append)

        store.write("materials/m-1", {"quantity": 3})

        assert len(seen) == 2
        assert seen[-1].children() == {"m-1": {"quantity": 3}}

    def test_no_notification_for_failed_commit(self):
        store = DjangoLedgerStore()
        store.write("materials/m-1", {"quantity": 3})
        seen = []
        store.subscribe("materials/m-1", seen.append)

        with pytest.raises(VersionConflict):
            store.commit([Write.update("materials/m-1", {"quantity": 1}, expected_version=9)])

        assert len(seen) == 1


class TestDjangoFulfillmentPipeline:
    def test_approval_and_dispatch_on_database(self):
        from core.bootstrap import build_services
        from core.bootstrap.invariants import check_ledger_invariants
        from core.config import FulfillmentSettings
        from core.time import FixedClock
        from engines.budget.commands import RegisterProjectRequest
        from engines.fulfillment.commands import Requester
        from engines.inventory.commands import RegisterMaterialRequest

        store = DjangoLedgerStore()
        services = build_services(
            store=store, clock=FixedClock(NOW), settings=FulfillmentSettings(),
        )
        services.inventory.register_material(RegisterMaterialRequest(
            material_id="M", name="Cement", price=Decimal("10"), quantity=100,
        ))
        services.budget.register_project(RegisterProjectRequest(
            project_id="P", name="Tower A", budget=Decimal("1000"),
        ))

        submitted = services.fulfillment.submit_request("M", "P", 30, Requester("u1", "worker1"))
        outcome = services.fulfillment.respond(submitted.record.request_id, "approve")

        assert outcome.is_accepted
        assert services.inventory.get("M").quantity == 70
        assert services.budget.get("P").spent == Decimal("300")
        assert services.dispatch.get(submitted.record.request_id).quantity == 30
        assert check_ledger_invariants(store) == []
        services.close()

"""
FieldSync — Ledger Invariant Tests
====================================
check_ledger_invariants() on hand-built ledgers, and the bootstrap
self-check against the database.
"""

import pytest

from core.bootstrap import SystemBootstrapError
from core.bootstrap.invariants import (
    assert_ledger_invariants,
    check_ledger_invariants,
    check_ledger_table,
)
from core.ledger_store import InMemoryLedgerStore


def approved(project_id="P", cost="300"):
    return {"status": "approved", "project_id": project_id, "total_cost": cost,
            "quantity_requested": 30, "material_id": "M"}


def sound_ledger():
    return {
        "materials/M": {"name": "Cement", "quantity": 70},
        "projects/P": {"budget": "1000", "spent": "300"},
        "material_requests/R1": approved(),
        "dispatches/R1": {"request_id": "R1", "quantity": 30},
    }


def invariants(ledger):
    return sorted(v.invariant for v in check_ledger_invariants(InMemoryLedgerStore(ledger)))


class TestLedgerInvariants:
    def test_sound_ledger(self):
        assert invariants(sound_ledger()) == []

    def test_negative_stock(self):
        ledger = sound_ledger()
        ledger["materials/M"]["quantity"] = -1
        assert invariants(ledger) == ["NON_NEGATIVE_STOCK"]

    def test_spent_over_budget(self):
        ledger = sound_ledger()
        ledger["projects/P"]["budget"] = "100"
        assert invariants(ledger) == ["SPENT_WITHIN_BUDGET"]

    def test_spent_drift(self):
        ledger = sound_ledger()
        ledger["projects/P"]["spent"] = "250"
        assert invariants(ledger) == ["SPENT_MATCHES_LEDGER"]

    def test_opening_spent_counts(self):
        ledger = sound_ledger()
        ledger["projects/P"].update(spent="1200", budget="2000", opening_spent="900")
        assert invariants(ledger) == []

    def test_missing_dispatch(self):
        ledger = sound_ledger()
        del ledger["dispatches/R1"]
        assert invariants(ledger) == ["ONE_DISPATCH"]

    def test_duplicate_dispatch(self):
        ledger = sound_ledger()
        ledger["dispatches/EXTRA"] = {"request_id": "R1", "quantity": 30}
        assert invariants(ledger) == ["ONE_DISPATCH"]

    def test_orphan_dispatch(self):
        ledger = sound_ledger()
        ledger["material_requests/R2"] = {"status": "pending", "project_id": "P"}
        ledger["dispatches/R2"] = {"request_id": "R2", "quantity": 1}
        assert invariants(ledger) == ["NO_ORPHAN_DISPATCH"]

    def test_manual_dispatch_is_fine(self):
        ledger = sound_ledger()
        ledger["dispatches/DISP-1"] = {"quantity": 5, "request_id": None}
        assert invariants(ledger) == []

    def test_assert_raises_with_every_path(self):
        ledger = sound_ledger()
        ledger["materials/M"]["quantity"] = -1
        ledger["projects/P"]["spent"] = "250"

        with pytest.raises(SystemBootstrapError) as exc_info:
            assert_ledger_invariants(InMemoryLedgerStore(ledger))

        assert "materials/M" in str(exc_info.value)
        assert "projects/P" in str(exc_info.value)


@pytest.mark.django_db(transaction=True)
class TestBootstrapSelfCheck:
    def test_table_exists(self):
        check_ledger_table()

    def test_self_check_passes_on_empty_ledger(self):
        from core.bootstrap.self_check import run_bootstrap_checks

        run_bootstrap_checks()

    def test_self_check_refuses_corrupt_ledger(self):
        from core.bootstrap.self_check import run_bootstrap_checks
        from core.ledger_store.django_store import DjangoLedgerStore

        store = DjangoLedgerStore()
        store.write("materials/M", {"name": "Cement", "quantity": -3})

        with pytest.raises(SystemBootstrapError, match="NON_NEGATIVE_STOCK"):
            run_bootstrap_checks(store)


class TestBootstrapSkips:
    @pytest.mark.parametrize("command", ["migrate", "makemigrations", "flush"])
    def test_schema_commands_skip(self, monkeypatch, command):
        from core.bootstrap import apps
        monkeypatch.setattr(apps.sys, "argv", ["manage.py", command])
        assert apps._running_schema_command()

    def test_other_commands_run_checks(self, monkeypatch):
        from core.bootstrap import apps
        monkeypatch.setattr(apps.sys, "argv", ["manage.py", "runserver"])
        assert not apps._running_schema_command()
        assert apps._running_under_pytest()

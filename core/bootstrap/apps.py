"""
FieldSync Bootstrap — App Configuration
=========================================
Checks the ledger before the process serves anything: the LedgerNode
table exists and the stored stock, spend and dispatch records satisfy
the ledger invariants. A violation raises SystemBootstrapError and
Django does not finish starting.

Not run while the schema is being built or torn down, or under pytest
(tests create their own databases and call the checks directly).
"""

import logging
import os
import sys

from django.apps import AppConfig

logger = logging.getLogger("fieldsync.bootstrap")

SCHEMA_COMMANDS = frozenset({
    "migrate",
    "makemigrations",
    "showmigrations",
    "sqlmigrate",
    "flush",
})


def _running_schema_command() -> bool:
    return len(sys.argv) >= 2 and sys.argv[1] in SCHEMA_COMMANDS


def _running_under_pytest() -> bool:
    return "PYTEST_CURRENT_TEST" in os.environ or "pytest" in sys.modules


class BootstrapConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.bootstrap"
    label = "bootstrap"
    verbose_name = "FieldSync Bootstrap"

    def ready(self):
        if _running_schema_command():
            logger.info(f"Ledger self-check skipped for '{sys.argv[1]}'.")
            return
        if _running_under_pytest():
            return

        from core.bootstrap.self_check import run_bootstrap_checks
        run_bootstrap_checks()

"""
FieldSync Bootstrap — Self-Check Orchestrator
===============================================
Runs all invariant checks at system startup.
If any check fails → SystemBootstrapError propagates → system refuses to start.

Check order:
1. Ledger table exists
2. Ledger contents satisfy the fulfillment invariants

No auto-fix. No fallback. No silence.
"""

import logging

from core.bootstrap.invariants import assert_ledger_invariants, check_ledger_table

logger = logging.getLogger("fieldsync.bootstrap")


def run_bootstrap_checks(store=None):
    """
    Execute all system invariant checks.
    Called once at startup via AppConfig.ready().
    """
    from core.ledger_store.django_store import DjangoLedgerStore

    logger.info("═══ FieldSync Bootstrap Self-Check Starting ═══")

    check_ledger_table()
    assert_ledger_invariants(store or DjangoLedgerStore())

    logger.info("═══ FieldSync Bootstrap Self-Check PASSED ═══")

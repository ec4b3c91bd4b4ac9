"""
FieldSync Core — Ledger Store App Configuration
=================================================
Registers the persistent ledger node model with Django.

This app:
- Stores ledger records (LedgerNode)
- Provides the transactional commit used by DjangoLedgerStore

This app does NOT:
- Interpret record payloads
- Enforce business rules
"""

from django.apps import AppConfig


class LedgerStoreConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "core.ledger_store"
    label = "ledger_store"
    verbose_name = "FieldSync Ledger Store"

"""
FieldSync Bootstrap — Wiring and Self-Defense
===============================================
build_services() wires the fulfillment pipeline; the self-check
ensures FieldSync never starts on a corrupted ledger.
"""

from core.bootstrap.errors import SystemBootstrapError
from core.bootstrap.services import FulfillmentServices, build_services

__all__ = [
    "SystemBootstrapError",
    "FulfillmentServices",
    "build_services",
]

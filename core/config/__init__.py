"""
FieldSync Core Config — Public API
====================================
Operator-tunable fulfillment settings.
No hardcoded sites or thresholds in engine logic.
"""

from core.config.settings import (
    DRIVER_POLICIES,
    FulfillmentSettings,
    load_fulfillment_settings,
)

__all__ = [
    "DRIVER_POLICIES",
    "FulfillmentSettings",
    "load_fulfillment_settings",
]

"""
FieldSync Core Config — Fulfillment Settings
==============================================
Operator-tunable constants of the fulfillment pipeline.

Sources, in order:
    1. FIELDSYNC dict in Django settings (when Django is configured)
    2. Defaults below

Unknown keys and invalid values fail loudly at load time.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping, Optional


DRIVER_POLICIES = ("first_available", "round_robin", "least_loaded")


# ══════════════════════════════════════════════════════════════
# SETTINGS
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class FulfillmentSettings:
    """
    eta_days:            Days added to dispatch_time for auto-created ETAs.
    default_from_site:   Origin of auto-created dispatches.
    default_to_site:     Destination of auto-created dispatches.
    low_stock_threshold: Materials below this quantity count as low stock.
    driver_policy:       Auto-assignment policy name.
    """

    eta_days: int = 2
    default_from_site: str = "Warehouse"
    default_to_site: str = "MKR Project"
    low_stock_threshold: int = 10
    driver_policy: str = "first_available"

    def __post_init__(self) -> None:
        if not isinstance(self.eta_days, int) or self.eta_days < 0:
            raise ValueError(f"eta_days must be an int >= 0, got {self.eta_days!r}.")

        if not isinstance(self.low_stock_threshold, int) or self.low_stock_threshold < 0:
            raise ValueError(
                f"low_stock_threshold must be an int >= 0, "
                f"got {self.low_stock_threshold!r}."
            )

        if not self.default_from_site or not self.default_to_site:
            raise ValueError("Default dispatch sites must be non-empty.")

        if self.driver_policy not in DRIVER_POLICIES:
            raise ValueError(
                f"driver_policy must be one of {DRIVER_POLICIES}, "
                f"got {self.driver_policy!r}."
            )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping[str, Any]]) -> "FulfillmentSettings":
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown FIELDSYNC settings: {', '.join(unknown)}.")
        return cls(**data)


def load_fulfillment_settings() -> FulfillmentSettings:
    """Read FIELDSYNC from Django settings, or return defaults."""
    from django.conf import settings

    if not settings.configured:
        return FulfillmentSettings()
    return FulfillmentSettings.from_mapping(getattr(settings, "FIELDSYNC", None))

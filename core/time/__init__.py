"""
FieldSync Core Time — Public API
==================================
Explicit clock protocol and temporal helpers.
No datetime.now() in engine logic.
"""

from core.time.clock import (
    Clock,
    FixedClock,
    SystemClock,
    get_default_clock,
    override_default_clock,
)
from core.time.temporal import (
    TimeWindow,
    add_days,
)

__all__ = [
    "Clock",
    "FixedClock",
    "SystemClock",
    "get_default_clock",
    "override_default_clock",
    "TimeWindow",
    "add_days",
]

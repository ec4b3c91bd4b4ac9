"""
FieldSync Core Time — Temporal Helpers
========================================
Pure functions for time interval logic.
All functions take explicit datetime arguments — no hidden clock access.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional


# ══════════════════════════════════════════════════════════════
# TIME WINDOW: closed interval [start, end]
# ══════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class TimeWindow:
    """
    A closed time interval [start, end].

    Invariant: start <= end (enforced at construction).
    """

    start: datetime
    end: datetime

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise ValueError(
                f"TimeWindow start ({self.start}) must be <= end ({self.end})."
            )

    def contains(self, dt: Optional[datetime]) -> bool:
        """Check if datetime falls within window (inclusive). None never does."""
        if dt is None:
            return False
        return self.start <= dt <= self.end

    def duration(self) -> timedelta:
        return self.end - self.start

    @classmethod
    def last_days(cls, days: int, now: datetime) -> "TimeWindow":
        """Window covering the `days` days up to `now` (report date ranges)."""
        if days < 0:
            raise ValueError("days must be >= 0.")
        return cls(start=now - timedelta(days=days), end=now)


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)

"""
FieldSync Core Time — Clocks
==============================
Every timestamp the ledger stores (requested_at, responded_at,
dispatch_time, eta, delivery_time, audited_at, logged_at) is read
from a Clock handed to the component at construction.

    SystemClock  — wall clock, UTC
    FixedClock   — pinned instant for tests and replays; advance() it
                   to model scenarios that span hours or days

build_services() and run_operation() fall back to the process default
clock when none is passed; override_default_clock() swaps it for a block.
"""

from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator, Protocol, Union


class Clock(Protocol):
    """Injectable time source."""

    def now_utc(self) -> datetime:
        """Timezone-aware current time in UTC."""
        ...  # pragma: no cover


class SystemClock:

    def now_utc(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock:
    """
    Returns the same instant until advanced.

        clock = FixedClock(datetime(2026, 3, 2, tzinfo=timezone.utc))
        clock.advance(3600)                 # seconds
        clock.advance(timedelta(days=2))    # or a timedelta
    """

    def __init__(self, fixed_dt: datetime) -> None:
        if fixed_dt.tzinfo is None:
            raise ValueError("FixedClock requires timezone-aware datetime.")
        self._fixed_dt = fixed_dt.astimezone(timezone.utc)

    def now_utc(self) -> datetime:
        return self._fixed_dt

    def advance(self, step: Union[float, timedelta]) -> datetime:
        if not isinstance(step, timedelta):
            step = timedelta(seconds=step)
        if step < timedelta(0):
            raise ValueError("FixedClock cannot move backwards.")
        self._fixed_dt = self._fixed_dt + step
        return self._fixed_dt


_default_clock: Clock = SystemClock()


def get_default_clock() -> Clock:
    return _default_clock


@contextmanager
def override_default_clock(clock: Clock) -> Iterator[Clock]:
    """Use `clock` as the process default inside the block."""
    global _default_clock
    previous, _default_clock = _default_clock, clock
    try:
        yield clock
    finally:
        _default_clock = previous

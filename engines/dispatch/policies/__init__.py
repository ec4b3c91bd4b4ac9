"""
FieldSync Dispatch Engine — Driver Assignment Policies
========================================================
Named, pluggable policies choosing the driver of an auto-created
dispatch. Every policy only ever sees active drivers, sorted by
driver_id, and at least one of them.

    first_available — first active driver by driver_id (default)
    round_robin     — rotate through active drivers in driver_id order
    least_loaded    — fewest in-transit dispatches, ties by driver_id
"""

from __future__ import annotations

from threading import Lock
from typing import Dict, Optional, Protocol, Sequence, Type

from core.primitives import Dispatch, DispatchStatus, Driver


class DriverAssignmentPolicy(Protocol):
    name: str
    uses_dispatches: bool

    def choose(self, drivers: Sequence[Driver], dispatches: Sequence[Dispatch]) -> Driver:
        ...  # pragma: no cover


class FirstAvailablePolicy:
    name = "first_available"
    uses_dispatches = False

    def choose(self, drivers: Sequence[Driver], dispatches: Sequence[Dispatch]) -> Driver:
        return drivers[0]


class RoundRobinPolicy:
    """Continues after the last driver it assigned; wraps around."""

    name = "round_robin"
    uses_dispatches = False

    def __init__(self):
        self._last_driver_id: Optional[str] = None
        self._lock = Lock()

    def choose(self, drivers: Sequence[Driver], dispatches: Sequence[Dispatch]) -> Driver:
        with self._lock:
            chosen = drivers[0]
            if self._last_driver_id is not None:
                for driver in drivers:
                    if driver.driver_id > self._last_driver_id:
                        chosen = driver
                        break
            self._last_driver_id = chosen.driver_id
            return chosen


class LeastLoadedPolicy:
    name = "least_loaded"
    uses_dispatches = True

    def choose(self, drivers: Sequence[Driver], dispatches: Sequence[Dispatch]) -> Driver:
        load: Dict[str, int] = {d.driver_id: 0 for d in drivers}
        for dispatch in dispatches:
            if dispatch.status == DispatchStatus.IN_TRANSIT and dispatch.driver_id in load:
                load[dispatch.driver_id] += 1
        return min(drivers, key=lambda d: (load[d.driver_id], d.driver_id))


POLICY_CLASSES: Dict[str, Type] = {
    FirstAvailablePolicy.name: FirstAvailablePolicy,
    RoundRobinPolicy.name: RoundRobinPolicy,
    LeastLoadedPolicy.name: LeastLoadedPolicy,
}


def build_driver_policy(name: str) -> DriverAssignmentPolicy:
    try:
        return POLICY_CLASSES[name]()
    except KeyError:
        raise ValueError(
            f"Unknown driver policy '{name}'. Known: {sorted(POLICY_CLASSES)}."
        ) from None

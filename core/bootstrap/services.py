"""
FieldSync Bootstrap — Service Wiring
======================================
One store, one clock and one settings object shared by every
component; the dispatch scheduler and the spending read model are
subscribed to the store before build_services() returns.

    services = build_services()                       # in-memory, defaults
    services = build_services(store=DjangoLedgerStore())
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from core.config import FulfillmentSettings, load_fulfillment_settings
from core.ledger_store import InMemoryLedgerStore, LedgerStore
from core.time import Clock, get_default_clock
from engines.budget.services import ProjectBudget
from engines.dispatch.policies import DriverAssignmentPolicy
from engines.dispatch.services import DispatchScheduler
from engines.dispatch.subscriptions import DispatchSubscriptionHandler
from engines.fulfillment.services import FulfillmentCoordinator
from engines.inventory.services import InventoryStore
from engines.requests.services import RequestLedger
from engines.stock_audit.services import StockAuditEngine
from projections.spending import SpendingReadModel

logger = logging.getLogger("fieldsync.bootstrap")


@dataclass
class FulfillmentServices:
    store: LedgerStore
    clock: Clock
    settings: FulfillmentSettings
    inventory: InventoryStore
    budget: ProjectBudget
    requests: RequestLedger
    fulfillment: FulfillmentCoordinator
    dispatch: DispatchScheduler
    audits: StockAuditEngine
    analytics: SpendingReadModel
    dispatch_handler: DispatchSubscriptionHandler

    def close(self) -> None:
        """Cancel every subscription started by build_services()."""
        self.dispatch_handler.cancel()
        self.analytics.cancel()


def build_services(
    store: Optional[LedgerStore] = None,
    clock: Optional[Clock] = None,
    settings: Optional[FulfillmentSettings] = None,
    driver_policy: Optional[DriverAssignmentPolicy] = None,
    subscribe: bool = True,
) -> FulfillmentServices:
    store = store if store is not None else InMemoryLedgerStore()
    clock = clock or get_default_clock()
    settings = settings or load_fulfillment_settings()

    inventory = InventoryStore(store, clock=clock, settings=settings)
    budget = ProjectBudget(store, clock=clock)
    requests = RequestLedger(store)
    scheduler = DispatchScheduler(
        store, inventory, requests,
        clock=clock, settings=settings, policy=driver_policy,
    )

    services = FulfillmentServices(
        store=store,
        clock=clock,
        settings=settings,
        inventory=inventory,
        budget=budget,
        requests=requests,
        fulfillment=FulfillmentCoordinator(store, inventory, budget, requests, clock=clock),
        dispatch=scheduler,
        audits=StockAuditEngine(store, inventory, clock=clock),
        analytics=SpendingReadModel(),
        dispatch_handler=DispatchSubscriptionHandler(scheduler),
    )

    if subscribe:
        services.dispatch_handler.subscribe(store)
        services.analytics.subscribe(store)
        logger.info(
            f"FieldSync services started (driver policy: {scheduler.policy.name})"
        )
    return services

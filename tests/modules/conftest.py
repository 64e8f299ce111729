"""
Shared fixtures for order queue tests.

DESIGN RULE: Every fixture is opt-in.  No autouse.  Each test declares
the backend it runs against in its function signature.
"""

import pytest

from cutting_kernel.services.memory_plan_store import InMemoryPlanStore
from cutting_kernel.services.orchestrator import CutPlanOrchestrator
from cutting_kernel.services.sql_plan_store import SqlPlanStore
from cutting_modules.order_queue import InMemoryOrderBook, OrderQueueService, SqlOrderBook

SCREEN_STOCK = [("Komarnici", 3000, 2), ("Komarnici", 5000, 1)]
SILL_STOCK = [("Prozorske daske", 10000, 1)]


@pytest.fixture
def queue_orchestrator(clock) -> CutPlanOrchestrator:
    orchestrator = CutPlanOrchestrator(InMemoryPlanStore(), clock=clock)
    orchestrator.seed_inventory(SCREEN_STOCK + SILL_STOCK)
    return orchestrator


@pytest.fixture
def order_service(queue_orchestrator, clock) -> OrderQueueService:
    return OrderQueueService(queue_orchestrator, InMemoryOrderBook(), clock=clock)


@pytest.fixture
def sql_order_service(session, clock) -> OrderQueueService:
    """Orders and ledger share one session, as a single database would."""
    orchestrator = CutPlanOrchestrator(SqlPlanStore(session), clock=clock)
    orchestrator.seed_inventory(SCREEN_STOCK + SILL_STOCK)
    return OrderQueueService(orchestrator, SqlOrderBook(session), clock=clock)


@pytest.fixture(params=["memory", "sqlite"])
def any_order_service(request) -> OrderQueueService:
    if request.param == "memory":
        return request.getfixturevalue("order_service")
    return request.getfixturevalue("sql_order_service")

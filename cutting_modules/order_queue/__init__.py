"""
Order Queue Module (``cutting_modules.order_queue``).

Responsibility
--------------
Thin glue that sequences repeated calls into the cutting kernel: frame
orders are queued as PENDING and later accepted one by one or in a batch.
Acceptance plans the order against the ledger, commits the plan and
records the plan id on the order.

Architecture
------------
Layer: **Modules** -- value objects, a workflow declaration, ORM model,
order book and one orchestration service.  Imports from
``cutting_kernel`` but never the reverse (the kernel's ``create_tables``
imports ``orm`` by name only to register the table).
"""

from cutting_modules.order_queue.models import (
    AcceptResult,
    AcceptStatus,
    OrderRequest,
    OrderStatus,
    QueuedOrder,
)
from cutting_modules.order_queue.order_book import InMemoryOrderBook, OrderBook, SqlOrderBook
from cutting_modules.order_queue.service import OrderQueueService
from cutting_modules.order_queue.workflows import ORDER_WORKFLOW

__all__ = [
    "AcceptResult",
    "AcceptStatus",
    "InMemoryOrderBook",
    "ORDER_WORKFLOW",
    "OrderBook",
    "OrderQueueService",
    "OrderRequest",
    "OrderStatus",
    "QueuedOrder",
    "SqlOrderBook",
]

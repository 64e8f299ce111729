"""
Order Queue Service (``cutting_modules.order_queue.service``).

Responsibility
--------------
Thin orchestration over the cutting kernel: queue frame orders, and
accept them by planning, committing the plan against inventory, and
marking the order accepted with the plan id.

Architecture
------------
Layer: **Modules**.  Calls ``CutPlanOrchestrator`` for every ledger
effect; never touches a ``PlanStore`` directly.  Owns the order book's
transaction boundary.

Invariants
----------
- Accepting an order runs plan -> commit -> mark accepted, in that
  order.  A failure in any step leaves the order PENDING.
- Accepting an accepted order returns ALREADY_ACCEPTED and changes
  nothing.
- ``accept_all`` handles each pending order independently; one failure
  never aborts the batch.

Failure Modes
-------------
- ``OrderNotFoundError`` from ``accept`` for an unknown id.
- ``InvalidOrderError`` from ``create_orders``; nothing is queued.
- ``InventoryConflictError`` from ``accept`` when the ledger moved
  between planning and commit.  ``accept_all`` reports it as FAILED.
"""

from __future__ import annotations

from collections.abc import Sequence
from uuid import UUID, uuid4

from cutting_kernel.domain.clock import Clock, SystemClock
from cutting_kernel.exceptions import OrderNotFoundError
from cutting_kernel.logging_config import LogContext, get_logger
from cutting_kernel.services.orchestrator import CutPlanOrchestrator

from cutting_modules.order_queue.models import (
    AcceptResult,
    AcceptStatus,
    OrderRequest,
    OrderStatus,
    QueuedOrder,
)
from cutting_modules.order_queue.order_book import OrderBook
from cutting_modules.order_queue.workflows import ACCEPT_ACTION, ORDER_WORKFLOW

logger = get_logger("modules.order_queue.service")


class OrderQueueService:
    """
    Queue orders and accept them against the inventory ledger.

    Usage:
        service = OrderQueueService(orchestrator, InMemoryOrderBook())
        [order] = service.create_orders([OrderRequest(width_mm=800, qty=2)])
        result = service.accept(order.id)
    """

    def __init__(
        self,
        orchestrator: CutPlanOrchestrator,
        order_book: OrderBook,
        clock: Clock | None = None,
    ):
        self._orchestrator = orchestrator
        self._book = order_book
        self._clock = clock or SystemClock()

    def create_orders(self, requests: Sequence[OrderRequest]) -> list[QueuedOrder]:
        """Validate and queue orders as PENDING.  All or nothing."""
        for request in requests:
            request.validate()

        created_at = self._clock.now()
        orders = [
            QueuedOrder(
                id=uuid4(),
                material_class=request.material_class,
                height_mm=request.height_mm,
                width_mm=request.width_mm,
                qty=request.qty,
                status=OrderStatus.PENDING,
                created_at=created_at,
                width_only=request.width_only,
                derived_from_width=request.derived_from_width,
            )
            for request in requests
        ]
        try:
            self._book.add_orders(orders)
            self._book.commit()
        except Exception:
            self._book.rollback()
            raise

        logger.info("orders_created", extra={"order_count": len(orders)})
        return orders

    def list_orders(self) -> list[QueuedOrder]:
        return self._book.list_orders()

    def accept(self, order_id: UUID) -> AcceptResult:
        """
        Plan and commit one queued order, then mark it accepted.

        The order's height falls back to its width when absent; the plan
        uses the orchestrator's default parameters.

        Raises:
            OrderNotFoundError: Unknown order id.
            InventoryConflictError: The ledger changed before commit.
        """
        with LogContext.bind(correlation_id=str(uuid4()), order_id=str(order_id)):
            order = self._book.get_order(order_id)
            if order is None:
                raise OrderNotFoundError(str(order_id))

            if ORDER_WORKFLOW.find(order.status.value, ACCEPT_ACTION) is None:
                logger.info("order_already_accepted", extra={"status": order.status.value})
                return AcceptResult(
                    order_id=order_id,
                    status=AcceptStatus.ALREADY_ACCEPTED,
                    order=order,
                )

            outcome = self._orchestrator.plan(
                demand_lines=[order.demand_line()],
                material_class=order.material_class,
                width_only=order.width_only,
            )
            self._orchestrator.commit(outcome.plan_id)

            try:
                accepted = self._book.mark_accepted(
                    order_id, [outcome.plan_id], self._clock.now()
                )
                self._book.commit()
            except Exception:
                self._book.rollback()
                raise

            logger.info(
                "order_accepted",
                extra={
                    "plan_id": str(outcome.plan_id),
                    "plan_status": outcome.status.value,
                },
            )
            return AcceptResult(
                order_id=order_id,
                status=AcceptStatus.ACCEPTED,
                order=accepted,
                plan=outcome,
            )

    def accept_all(self) -> list[AcceptResult]:
        """Accept every pending order, reporting each outcome separately."""
        pending = [o for o in self._book.list_orders() if not o.is_accepted]
        results: list[AcceptResult] = []
        for order in pending:
            try:
                results.append(self.accept(order.id))
            except Exception as exc:
                logger.warning(
                    "order_accept_failed",
                    extra={"order_id": str(order.id)},
                    exc_info=True,
                )
                results.append(
                    AcceptResult(
                        order_id=order.id,
                        status=AcceptStatus.FAILED,
                        order=order,
                        error=str(exc) or type(exc).__name__,
                    )
                )

        logger.info(
            "accept_all_completed",
            extra={
                "pending_count": len(pending),
                "accepted_count": sum(r.status is AcceptStatus.ACCEPTED for r in results),
                "failed_count": sum(r.status is AcceptStatus.FAILED for r in results),
            },
        )
        return results

"""
Order book -- persistence for queued orders.

``InMemoryOrderBook`` for tests and single-process use, ``SqlOrderBook``
over the ``order_entries`` table.  Both list orders newest first and
both treat marking an already accepted order as a no-op.  The SQL book
only flushes; ``OrderQueueService`` owns commit and rollback.
"""

from __future__ import annotations

import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from cutting_kernel.exceptions import OrderNotFoundError
from cutting_kernel.logging_config import get_logger

from cutting_modules.order_queue.models import OrderStatus, QueuedOrder
from cutting_modules.order_queue.orm import OrderEntryModel

logger = get_logger("modules.order_queue.order_book")


class OrderBook(ABC):
    @abstractmethod
    def add_orders(self, orders: Sequence[QueuedOrder]) -> None:
        ...

    @abstractmethod
    def list_orders(self) -> list[QueuedOrder]:
        """All orders, newest first."""

    @abstractmethod
    def get_order(self, order_id: UUID) -> QueuedOrder | None:
        ...

    @abstractmethod
    def mark_accepted(
        self,
        order_id: UUID,
        plan_ids: Sequence[UUID],
        accepted_at: datetime,
    ) -> QueuedOrder:
        """
        Raises:
            OrderNotFoundError: If no order has this id.
        """

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


class InMemoryOrderBook(OrderBook):
    def __init__(self):
        self._lock = threading.RLock()
        self._orders: dict[UUID, QueuedOrder] = {}
        self._arrival: dict[UUID, int] = {}

    def add_orders(self, orders: Sequence[QueuedOrder]) -> None:
        with self._lock:
            for order in orders:
                self._arrival[order.id] = len(self._arrival)
                self._orders[order.id] = order

    def list_orders(self) -> list[QueuedOrder]:
        with self._lock:
            return sorted(
                self._orders.values(),
                key=lambda o: (o.created_at, self._arrival[o.id]),
                reverse=True,
            )

    def get_order(self, order_id: UUID) -> QueuedOrder | None:
        with self._lock:
            return self._orders.get(order_id)

    def mark_accepted(
        self,
        order_id: UUID,
        plan_ids: Sequence[UUID],
        accepted_at: datetime,
    ) -> QueuedOrder:
        with self._lock:
            order = self._orders.get(order_id)
            if order is None:
                raise OrderNotFoundError(str(order_id))
            if order.is_accepted:
                return order
            accepted = replace(
                order,
                status=OrderStatus.ACCEPTED,
                accepted_at=accepted_at,
                accepted_plan_ids=tuple(plan_ids),
            )
            self._orders[order_id] = accepted
            return accepted

    def commit(self) -> None:
        pass

    def rollback(self) -> None:
        pass


class SqlOrderBook(OrderBook):
    def __init__(self, session: Session):
        self._session = session

    def add_orders(self, orders: Sequence[QueuedOrder]) -> None:
        self._session.add_all([OrderEntryModel.from_dto(order) for order in orders])
        self._session.flush()

    def list_orders(self) -> list[QueuedOrder]:
        stmt = select(OrderEntryModel).order_by(
            OrderEntryModel.created_at.desc(), OrderEntryModel.id.desc()
        )
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def get_order(self, order_id: UUID) -> QueuedOrder | None:
        model = self._session.get(OrderEntryModel, order_id)
        return model.to_dto() if model is not None else None

    def mark_accepted(
        self,
        order_id: UUID,
        plan_ids: Sequence[UUID],
        accepted_at: datetime,
    ) -> QueuedOrder:
        model = self._session.execute(
            select(OrderEntryModel)
            .where(OrderEntryModel.id == order_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if model is None:
            raise OrderNotFoundError(str(order_id))
        if model.status == OrderStatus.ACCEPTED.value:
            return model.to_dto()

        model.status = OrderStatus.ACCEPTED.value
        model.accepted_at = accepted_at
        model.accepted_plan_ids = [str(plan_id) for plan_id in plan_ids]
        self._session.flush()
        logger.debug("order_marked_accepted", extra={"order_id": str(order_id)})
        return model.to_dto()

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

"""
Module: cutting_modules.order_queue.orm
Responsibility: SQLAlchemy persistence for queued orders (``order_entries``).
Architecture position: Modules > Order queue > ORM.  Inherits from the
    kernel declarative ``Base``.  Plan ids are stored as a JSON list with
    no foreign key to ``cut_plans``.

Invariants enforced:
    - status is PENDING or ACCEPTED (CHECK constraint).
    - width_mm > 0, qty > 0, height_mm NULL or > 0 (CHECK constraints).
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from cutting_kernel.db.base import Base, UUIDString

from cutting_modules.order_queue.models import OrderStatus, QueuedOrder


class OrderEntryModel(Base):
    """
    ORM model for a queued order.

    Maps to: cutting_modules.order_queue.models.QueuedOrder (frozen dataclass).
    """

    __tablename__ = "order_entries"

    __table_args__ = (
        CheckConstraint("status IN ('PENDING', 'ACCEPTED')", name="ck_order_status"),
        CheckConstraint("width_mm > 0", name="ck_order_width_positive"),
        CheckConstraint("qty > 0", name="ck_order_qty_positive"),
        CheckConstraint(
            "height_mm IS NULL OR height_mm > 0", name="ck_order_height_positive"
        ),
        Index("idx_order_status", "status"),
        Index("idx_order_created", "created_at"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)

    material_class: Mapped[str] = mapped_column(String(100), nullable=False)

    height_mm: Mapped[int | None] = mapped_column(Integer, nullable=True)

    width_mm: Mapped[int] = mapped_column(Integer, nullable=False)

    qty: Mapped[int] = mapped_column(Integer, nullable=False)

    width_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    derived_from_width: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=OrderStatus.PENDING.value
    )

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    accepted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    accepted_plan_ids: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    @classmethod
    def from_dto(cls, order: QueuedOrder) -> OrderEntryModel:
        return cls(
            id=order.id,
            material_class=order.material_class,
            height_mm=order.height_mm,
            width_mm=order.width_mm,
            qty=order.qty,
            width_only=order.width_only,
            derived_from_width=order.derived_from_width,
            status=order.status.value,
            created_at=order.created_at,
            accepted_at=order.accepted_at,
            accepted_plan_ids=[str(plan_id) for plan_id in order.accepted_plan_ids],
        )

    def to_dto(self) -> QueuedOrder:
        return QueuedOrder(
            id=self.id,
            material_class=self.material_class,
            height_mm=self.height_mm,
            width_mm=self.width_mm,
            qty=self.qty,
            status=OrderStatus(self.status),
            created_at=self.created_at,
            width_only=self.width_only,
            derived_from_width=self.derived_from_width,
            accepted_at=self.accepted_at,
            accepted_plan_ids=tuple(UUID(p) for p in self.accepted_plan_ids),
        )

    def __repr__(self) -> str:
        return f"<OrderEntry {self.id}: {self.status} {self.width_mm}x{self.qty}>"

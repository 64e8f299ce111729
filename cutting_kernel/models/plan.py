"""
Module: cutting_kernel.models.plan
Responsibility: ORM persistence for staged cutting plans.
Architecture position: Kernel > Models.  May import from db/base.py and
    domain values only.

Invariants enforced:
    - status is one of PLANNED, COMMITTED, EXPIRED (CHECK constraint).
    - params, demand lines, pieces and result are stored as JSON documents
      in their wire shape and never change after insert.
    - committed_at is set exactly when status becomes COMMITTED.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import JSON, Boolean, CheckConstraint, DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from cutting_kernel.db.base import Base, UUIDString
from cutting_kernel.domain.values import (
    DemandLine,
    PlanParams,
    PlanRecord,
    PlanResult,
    PlanState,
)


class CutPlanModel(Base):
    """
    Persistent staged plan.

    Guarantees:
        - ``from_record`` / ``to_record`` convert losslessly to and from
          the domain ``PlanRecord``.
    """

    __tablename__ = "cut_plans"

    __table_args__ = (
        CheckConstraint(
            "status IN ('PLANNED', 'COMMITTED', 'EXPIRED')",
            name="ck_cut_plan_status",
        ),
        Index("idx_cut_plan_status", "status"),
    )

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True)

    status: Mapped[str] = mapped_column(String(20), nullable=False)

    material_class: Mapped[str] = mapped_column(String(100), nullable=False)

    width_only: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    params_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    demand_json: Mapped[list] = mapped_column(JSON, nullable=False)

    pieces_json: Mapped[list] = mapped_column(JSON, nullable=False)

    result_json: Mapped[dict] = mapped_column(JSON, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    committed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    @classmethod
    def from_record(cls, record: PlanRecord) -> CutPlanModel:
        return cls(
            id=record.id,
            status=record.state.value,
            material_class=record.material_class,
            width_only=record.width_only,
            params_json=record.params.to_dict(),
            demand_json=[line.to_dict() for line in record.demand_lines],
            pieces_json=list(record.pieces),
            result_json=record.result.to_dict(),
            created_at=record.created_at,
            committed_at=record.committed_at,
        )

    def to_record(self) -> PlanRecord:
        return PlanRecord(
            id=self.id,
            state=PlanState(self.status),
            material_class=self.material_class,
            params=PlanParams.merge(self.params_json),
            demand_lines=tuple(DemandLine.from_dict(d) for d in self.demand_json),
            pieces=tuple(self.pieces_json),
            result=PlanResult.from_dict(self.result_json),
            created_at=self.created_at,
            width_only=self.width_only,
            committed_at=self.committed_at,
        )

    def __repr__(self) -> str:
        return f"<CutPlan {self.id}: {self.status} {self.material_class}>"

"""
SqlPlanStore -- SQLAlchemy-backed ledger and plan store.

Responsibility:
    Persists inventory rows (``inventory_rows``) and staged plans
    (``cut_plans``) and applies a plan to the ledger inside the caller's
    transaction.

Architecture position:
    Kernel > Services -- imperative shell.  Implements ``PlanStore``.
    Flush-only: ``commit()`` / ``rollback()`` exist so the orchestrator
    can close the transaction, but no other method ends it.

Invariants enforced:
    - The plan row is locked (``SELECT ... FOR UPDATE``) before its state
      is read, so two commits of the same plan serialize and the second
      sees COMMITTED.
    - Consumed inventory rows are locked in one statement ordered by
      ascending id.  Every commit takes row locks in the same order, so
      competing commits cannot deadlock.
    - All consumed rows are verified before the first decrement.
    - Remnants merge into the existing (class, length) row under lock.
      A concurrent first insert of the same key is absorbed by a
      SAVEPOINT and a locked re-read.

Failure modes:
    - PlanNotFoundError, InventoryConflictError (see ``PlanStore``).
    - The caller must roll back after any exception; the session may
      hold partial flushes otherwise.

Audit relevance:
    Ledger mutations are logged at INFO with units consumed and remnants
    returned; conflicts at WARNING with the offending row.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from cutting_kernel.domain.ledger_delta import build_ledger_delta
from cutting_kernel.domain.lifecycle import commit_transition
from cutting_kernel.domain.values import CommitStatus, InventoryRow, PlanRecord, PlanState
from cutting_kernel.exceptions import InventoryConflictError, PlanNotFoundError
from cutting_kernel.logging_config import get_logger
from cutting_kernel.models.inventory import InventoryRowModel
from cutting_kernel.models.plan import CutPlanModel
from cutting_kernel.services.plan_store import PlanStore, validate_stock_addition

logger = get_logger("services.sql_plan_store")


class SqlPlanStore(PlanStore):
    """
    ``PlanStore`` over a SQLAlchemy session.

    Contract:
        The session should be inside a transaction the caller controls.
    Guarantees:
        - Never calls ``session.commit()`` outside ``commit()``.
        - Row locks taken by ``commit_plan`` are held until the caller
          commits or rolls back.
    Non-goals:
        - No automatic retry after ``InventoryConflictError``; callers
          re-plan against the new ledger.
    """

    def __init__(self, session: Session):
        self._session = session

    def list_inventory(self, material_class: str | None = None) -> list[InventoryRow]:
        stmt = select(InventoryRowModel).where(InventoryRowModel.qty > 0)
        if material_class is not None:
            stmt = stmt.where(InventoryRowModel.material_class == material_class)
        stmt = stmt.order_by(InventoryRowModel.material_class, InventoryRowModel.length_mm)
        return [model.to_dto() for model in self._session.scalars(stmt)]

    def add_inventory(self, material_class: str, length_mm: int, qty: int) -> InventoryRow:
        validate_stock_addition(material_class, length_mm, qty)
        model = self._merge_row(material_class, length_mm, qty)
        self._session.flush()
        logger.info(
            "inventory_added",
            extra={
                "row_id": model.id,
                "material_class": material_class,
                "length_mm": length_mm,
                "qty_added": qty,
                "qty_total": model.qty,
            },
        )
        return model.to_dto()

    def save_plan(self, record: PlanRecord) -> None:
        self._session.add(CutPlanModel.from_record(record))
        self._session.flush()

    def get_plan(self, plan_id: UUID) -> PlanRecord:
        model = self._session.get(CutPlanModel, plan_id)
        if model is None:
            raise PlanNotFoundError(str(plan_id))
        return model.to_record()

    def commit_plan(self, plan_id: UUID, committed_at: datetime) -> CommitStatus:
        # Lock the plan row first; a concurrent commit of the same plan
        # blocks here and then observes COMMITTED.
        plan = self._session.execute(
            select(CutPlanModel)
            .where(CutPlanModel.id == plan_id)
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()
        if plan is None:
            raise PlanNotFoundError(str(plan_id))

        outcome = commit_transition(PlanState(plan.status), str(plan_id))
        if not outcome.changed:
            return CommitStatus.ALREADY_COMMITTED

        # Plans only draw from rows of their own class
        delta = build_ledger_delta(
            plan.to_record().result.allocations, lambda _row_id: plan.material_class
        )

        locked = {
            row.id: row
            for row in self._session.scalars(
                select(InventoryRowModel)
                .where(InventoryRowModel.id.in_(list(delta.consumption)))
                .order_by(InventoryRowModel.id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
        }

        for row_id, required in delta.consumption.items():
            row = locked.get(row_id)
            available = row.qty if row is not None else None
            if available is None or available < required:
                logger.warning(
                    "inventory_conflict_detected",
                    extra={"row_id": row_id, "required": required, "available": available},
                )
                raise InventoryConflictError(str(plan_id), row_id, required, available)

        for row_id, required in delta.consumption.items():
            locked[row_id].qty -= required
        # Flush before the remnant lookups; populate_existing would
        # otherwise overwrite the pending decrements.
        self._session.flush()

        for (material_class, length_mm), count in sorted(delta.remnants.items()):
            self._merge_row(material_class, length_mm, count)

        plan.status = outcome.state.value
        plan.committed_at = committed_at
        self._session.flush()

        logger.info(
            "inventory_consumed",
            extra={
                "rows_touched": len(delta.consumption),
                "units_consumed": delta.consumed_units,
                "remnants_returned": delta.returned_units,
            },
        )
        return CommitStatus.COMMITTED

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def _merge_row(self, material_class: str, length_mm: int, qty: int) -> InventoryRowModel:
        row = self._locked_row(material_class, length_mm)
        if row is None:
            # First stock of this length.  Another transaction may insert
            # the same key concurrently; the savepoint keeps that race from
            # rolling back the rest of the commit.
            savepoint = self._session.begin_nested()
            try:
                row = InventoryRowModel(
                    material_class=material_class, length_mm=length_mm, qty=qty
                )
                self._session.add(row)
                self._session.flush()
                savepoint.commit()
                return row
            except IntegrityError:
                logger.debug(
                    "inventory_row_race_retry",
                    extra={"material_class": material_class, "length_mm": length_mm},
                )
                savepoint.rollback()
                row = self._locked_row(material_class, length_mm)
                if row is None:
                    raise

        row.qty += qty
        self._session.flush()
        return row

    def _locked_row(self, material_class: str, length_mm: int) -> InventoryRowModel | None:
        return self._session.execute(
            select(InventoryRowModel)
            .where(
                InventoryRowModel.material_class == material_class,
                InventoryRowModel.length_mm == length_mm,
            )
            .with_for_update()
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

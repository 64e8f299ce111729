"""
InMemoryPlanStore -- single-process ledger and plan store.

Responsibility:
    Keeps inventory rows and staged plans in dictionaries.  Used by tests,
    demos and single-process deployments that do not need a database.

Architecture position:
    Kernel > Services -- imperative shell.  Implements ``PlanStore``.

Invariants enforced:
    - One ``threading.RLock`` guards every read and write.  A commit holds
      it for its whole check-then-mutate sequence, so concurrent commits
      of competing plans serialize and exactly the first one to verify
      wins.
    - Conflicts and invalid remnant rows are detected before the first
      mutation, so a failed commit leaves the ledger untouched.
    - Row ids are assigned from a monotonically increasing counter and are
      never reused.

Non-goals:
    - No durability.  ``commit()`` and ``rollback()`` are no-ops: every
      mutation is applied immediately under the lock.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from cutting_kernel.domain.ledger_delta import RemnantKey, build_ledger_delta
from cutting_kernel.domain.lifecycle import commit_transition
from cutting_kernel.domain.values import CommitStatus, InventoryRow, PlanRecord
from cutting_kernel.exceptions import InventoryConflictError, PlanNotFoundError
from cutting_kernel.logging_config import get_logger
from cutting_kernel.services.plan_store import PlanStore, validate_stock_addition

logger = get_logger("services.memory_plan_store")


class InMemoryPlanStore(PlanStore):
    """
    Dictionary-backed ``PlanStore``.

    Args:
        seed: Optional ``(material_class, length_mm, qty)`` triples added
            to the ledger on construction.
    """

    def __init__(self, seed: Iterable[tuple[str, int, int]] | None = None):
        self._lock = threading.RLock()
        self._rows: dict[int, InventoryRow] = {}
        self._index: dict[RemnantKey, int] = {}
        self._plans: dict[UUID, PlanRecord] = {}
        self._next_row_id = 1
        for material_class, length_mm, qty in seed or ():
            self.add_inventory(material_class, length_mm, qty)

    def list_inventory(self, material_class: str | None = None) -> list[InventoryRow]:
        with self._lock:
            rows = [
                row for row in self._rows.values()
                if row.qty > 0
                and (material_class is None or row.material_class == material_class)
            ]
        return sorted(rows, key=lambda r: (r.material_class, r.length_mm))

    def add_inventory(self, material_class: str, length_mm: int, qty: int) -> InventoryRow:
        validate_stock_addition(material_class, length_mm, qty)
        with self._lock:
            row = self._merge_row(material_class, length_mm, qty)
        logger.info(
            "inventory_added",
            extra={
                "row_id": row.id,
                "material_class": material_class,
                "length_mm": length_mm,
                "qty_added": qty,
                "qty_total": row.qty,
            },
        )
        return row

    def save_plan(self, record: PlanRecord) -> None:
        with self._lock:
            self._plans[record.id] = record

    def get_plan(self, plan_id: UUID) -> PlanRecord:
        with self._lock:
            record = self._plans.get(plan_id)
        if record is None:
            raise PlanNotFoundError(str(plan_id))
        return record

    def commit_plan(self, plan_id: UUID, committed_at: datetime) -> CommitStatus:
        with self._lock:
            record = self.get_plan(plan_id)
            outcome = commit_transition(record.state, str(plan_id))
            if not outcome.changed:
                return CommitStatus.ALREADY_COMMITTED

            # Plans only draw from rows of their own class
            delta = build_ledger_delta(
                record.result.allocations, lambda _row_id: record.material_class
            )

            # Check every row before touching any of them
            for row_id, required in delta.consumption.items():
                row = self._rows.get(row_id)
                available = row.qty if row is not None else None
                if available is None or available < required:
                    logger.warning(
                        "inventory_conflict_detected",
                        extra={"row_id": row_id, "required": required, "available": available},
                    )
                    raise InventoryConflictError(str(plan_id), row_id, required, available)
            for (material_class, length_mm), count in delta.remnants.items():
                validate_stock_addition(material_class, length_mm, count)

            for row_id, required in delta.consumption.items():
                row = self._rows[row_id]
                self._rows[row_id] = replace(row, qty=row.qty - required)

            for (material_class, length_mm), count in delta.remnants.items():
                self._merge_row(material_class, length_mm, count)

            self._plans[plan_id] = replace(
                record, state=outcome.state, committed_at=committed_at
            )

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
        pass

    def rollback(self) -> None:
        pass

    def _merge_row(self, material_class: str, length_mm: int, qty: int) -> InventoryRow:
        key = (material_class, length_mm)
        row_id = self._index.get(key)
        if row_id is not None:
            row = replace(self._rows[row_id], qty=self._rows[row_id].qty + qty)
        else:
            row_id = self._next_row_id
            self._next_row_id += 1
            self._index[key] = row_id
            row = InventoryRow(
                id=row_id, material_class=material_class, length_mm=length_mm, qty=qty
            )
        self._rows[row_id] = row
        return row

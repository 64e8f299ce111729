"""
PlanStore -- abstract persistence contract for the inventory ledger and
staged plans.

Responsibility:
    Defines the operations the orchestrator needs from a backend: read a
    ledger snapshot, add stock, persist and fetch staged plans, and apply
    a plan to the ledger atomically.

Architecture position:
    Kernel > Services -- imperative shell.  Implemented by
    ``SqlPlanStore`` (SQLAlchemy) and ``InMemoryPlanStore`` (single
    process).  The orchestrator owns the transaction boundary and calls
    ``commit()`` / ``rollback()``.

Invariants enforced:
    - ``commit_plan`` is all-or-nothing: it verifies every consumed row
      before mutating any of them.
    - ``commit_plan`` on a committed plan is a no-op returning
      ``CommitStatus.ALREADY_COMMITTED``.
    - ``list_inventory`` never returns rows with ``qty == 0``.

Failure modes:
    - PlanNotFoundError: unknown plan id.
    - InventoryConflictError: a consumed row is missing or short.
    - InvalidInventoryRowError: ``add_inventory`` called with a
      non-positive length, a negative quantity or a blank class.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from uuid import UUID

from cutting_kernel.domain.values import CommitStatus, InventoryRow, PlanRecord
from cutting_kernel.exceptions import InvalidInventoryRowError


class PlanStore(ABC):
    """Backend contract shared by the SQL and in-memory stores."""

    @abstractmethod
    def list_inventory(self, material_class: str | None = None) -> list[InventoryRow]:
        """Rows with qty > 0, sorted by material class then length."""

    @abstractmethod
    def add_inventory(self, material_class: str, length_mm: int, qty: int) -> InventoryRow:
        """Insert a row, or add ``qty`` to the existing (class, length) row."""

    @abstractmethod
    def save_plan(self, record: PlanRecord) -> None:
        ...

    @abstractmethod
    def get_plan(self, plan_id: UUID) -> PlanRecord:
        """
        Raises:
            PlanNotFoundError: If no plan has this id.
        """

    @abstractmethod
    def commit_plan(self, plan_id: UUID, committed_at: datetime) -> CommitStatus:
        """
        Apply a staged plan to the ledger.

        Steps, atomically:
            1. Load the plan (locked).
            2. Return ALREADY_COMMITTED if it is committed.
            3. Verify every consumed row exists with enough qty.
            4. Decrement consumed rows.
            5. Insert or merge kept remnants by (class, length).
            6. Mark the plan COMMITTED at ``committed_at``.

        Raises:
            PlanNotFoundError: If no plan has this id.
            InventoryConflictError: If step 3 fails.  Nothing is mutated.
        """

    @abstractmethod
    def commit(self) -> None:
        ...

    @abstractmethod
    def rollback(self) -> None:
        ...


def validate_stock_addition(material_class: str, length_mm: int, qty: int) -> None:
    """Reject stock additions the ledger constraints would refuse."""
    if not material_class or not material_class.strip():
        raise InvalidInventoryRowError("material_class", material_class)
    if isinstance(length_mm, bool) or not isinstance(length_mm, int) or length_mm <= 0:
        raise InvalidInventoryRowError("length_mm", length_mm)
    if isinstance(qty, bool) or not isinstance(qty, int) or qty < 0:
        raise InvalidInventoryRowError("qty", qty)

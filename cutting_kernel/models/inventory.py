"""
Module: cutting_kernel.models.inventory
Responsibility: ORM persistence for the inventory ledger.  One row per
    (material class, bar length) with the number of bars on hand.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - (material_class, length_mm) is unique: adding stock of an existing
      length merges into the row.
    - qty >= 0 (CHECK constraint); length_mm > 0 (CHECK constraint).
    - qty is the only field that changes after insert, and only the commit
      path decrements it.

Failure modes:
    - IntegrityError on a concurrent insert of the same (class, length);
      the store retries inside a savepoint.
    - IntegrityError if a decrement would drive qty negative.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import Mapped, mapped_column

from cutting_kernel.db.base import Base
from cutting_kernel.domain.values import InventoryRow


class InventoryRowModel(Base):
    """
    Persistent ledger row.

    Guarantees:
        - ``id`` is an integer, referenced as ``sourceId`` by plan
          allocations.
        - ``to_dto()`` returns the immutable domain snapshot.
    """

    __tablename__ = "inventory_rows"

    __table_args__ = (
        UniqueConstraint("material_class", "length_mm", name="uq_inventory_class_length"),
        CheckConstraint("qty >= 0", name="ck_inventory_qty_non_negative"),
        CheckConstraint("length_mm > 0", name="ck_inventory_length_positive"),
        Index("idx_inventory_class_length", "material_class", "length_mm"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    material_class: Mapped[str] = mapped_column(String(100), nullable=False)

    length_mm: Mapped[int] = mapped_column(Integer, nullable=False)

    qty: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    def to_dto(self) -> InventoryRow:
        return InventoryRow(
            id=self.id,
            material_class=self.material_class,
            length_mm=self.length_mm,
            qty=self.qty,
        )

    def __repr__(self) -> str:
        return (
            f"<InventoryRow {self.id}: {self.material_class} "
            f"{self.length_mm}mm x {self.qty}>"
        )

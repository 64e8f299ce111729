"""
Order Queue Domain Models (``cutting_modules.order_queue.models``).

Responsibility
--------------
Frozen value objects for the order queue: the request to queue a frame,
the queued order itself, and the per-order outcome of an accept call.

Architecture
------------
Layer: **Modules** -- pure data.  No I/O; persistence lives in
``order_book`` and ``orm``.

Invariants
----------
- ``QueuedOrder.width_mm > 0`` and ``qty > 0``; ``height_mm`` is either
  ``None`` or positive.  Checked by ``OrderRequest.validate()`` before
  anything is queued.
- An ACCEPTED order carries ``accepted_at`` and at least one plan id.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from cutting_kernel.domain.values import DEFAULT_MATERIAL_CLASS, DemandLine
from cutting_kernel.exceptions import InvalidOrderError
from cutting_kernel.services.orchestrator import PlanOutcome


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"


class AcceptStatus(str, Enum):
    ACCEPTED = "ACCEPTED"
    ALREADY_ACCEPTED = "ALREADY_ACCEPTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class OrderRequest:
    """A frame to queue.  ``height_mm=None`` means "same as the width"."""

    width_mm: int
    qty: int
    height_mm: int | None = None
    material_class: str = DEFAULT_MATERIAL_CLASS
    width_only: bool = False
    derived_from_width: bool = False

    def validate(self) -> None:
        if self.height_mm is not None and self.height_mm <= 0:
            raise InvalidOrderError("height_mm", self.height_mm)
        if self.width_mm <= 0:
            raise InvalidOrderError("width_mm", self.width_mm)
        if self.qty <= 0:
            raise InvalidOrderError("qty", self.qty)


@dataclass(frozen=True)
class QueuedOrder:
    """A queued frame order and its acceptance state."""

    id: UUID
    material_class: str
    height_mm: int | None
    width_mm: int
    qty: int
    status: OrderStatus
    created_at: datetime
    width_only: bool = False
    derived_from_width: bool = False
    accepted_at: datetime | None = None
    accepted_plan_ids: tuple[UUID, ...] = ()

    @property
    def is_accepted(self) -> bool:
        return self.status is OrderStatus.ACCEPTED

    def demand_line(self) -> DemandLine:
        """The single demand line planned for this order."""
        height_mm = self.height_mm if self.height_mm is not None else self.width_mm
        return DemandLine(height_mm=height_mm, width_mm=self.width_mm, qty=self.qty)


@dataclass(frozen=True)
class AcceptResult:
    """Outcome of accepting one queued order."""

    order_id: UUID
    status: AcceptStatus
    order: QueuedOrder | None = None
    plan: PlanOutcome | None = None
    error: str | None = None

    @property
    def is_success(self) -> bool:
        return self.status in (AcceptStatus.ACCEPTED, AcceptStatus.ALREADY_ACCEPTED)

"""
Cutting Domain Values (``cutting_kernel.domain.values``).

Responsibility
--------------
Frozen value objects for the nouns of the cutting core: plan parameters,
inventory rows, demand lines, cuts, allocations, shortage items, plan
results and staged plan records, plus the closed enums that discriminate
plan status, shortage reason and lifecycle state.

Architecture
------------
Layer: **Kernel domain** -- pure data.  ZERO I/O.  No imports from
``db/``, ``models/`` or ``services/``.  All lengths are integer
millimetres; unit conversion happens before the kernel is called.

Invariants
----------
- ``PlanParams`` fields are non-negative integers.
- ``InventoryRow.qty >= 0`` and ``length_mm > 0``.
- ``PlanResult`` is immutable once computed; its wire form
  (``to_dict``/``from_dict``) is the camelCase document stored with a plan
  and returned to callers.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Self
from uuid import UUID

from cutting_kernel.exceptions import InvalidInventoryRowError

DEFAULT_KERF_MM = 3
DEFAULT_ALLOWANCE_MM = 1
DEFAULT_MIN_REMNANT_MM = 100

MATERIAL_CLASS_SCREENS = "Komarnici"
MATERIAL_CLASS_SILLS = "Prozorske daske"
MATERIAL_CLASSES = (MATERIAL_CLASS_SCREENS, MATERIAL_CLASS_SILLS)
DEFAULT_MATERIAL_CLASS = MATERIAL_CLASS_SCREENS


def to_non_negative_int(value: Any) -> int:
    """Round half-up to an int, clamping non-finite and negative values to 0.

    Data hygiene for lengths and quantities: junk in, zero out.  Zero-valued
    pieces are filtered by the callers.
    """
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0
    if not math.isfinite(number):
        return 0
    return max(0, math.floor(number + 0.5))


class PlanStatus(str, Enum):
    """Outcome of one allocation run."""

    SUCCESS = "SUCCESS"
    PARTIAL = "PARTIAL"
    FAIL = "FAIL"


class ShortageReason(str, Enum):
    """Why pieces could not be placed."""

    NO_STOCK_LONG_ENOUGH = "NO_STOCK_LONG_ENOUGH"
    KERF_ALLOWANCE_MAKES_IT_IMPOSSIBLE = "KERF_ALLOWANCE_MAKES_IT_IMPOSSIBLE"
    INSUFFICIENT_STOCK_AFTER_ALLOCATION = "INSUFFICIENT_STOCK_AFTER_ALLOCATION"


class PlanState(str, Enum):
    """Lifecycle state of a staged plan."""

    PLANNED = "PLANNED"
    COMMITTED = "COMMITTED"
    EXPIRED = "EXPIRED"  # reserved; never produced by the kernel


class CommitStatus(str, Enum):
    """Outcome of a successful commit call."""

    COMMITTED = "COMMITTED"
    ALREADY_COMMITTED = "ALREADY_COMMITTED"


@dataclass(frozen=True)
class PlanParams:
    """
    Per-run clearances, in millimetres.

    kerf_mm is the blade width lost per cut, allowance_mm the extra
    clearance per piece.  Both are added to every piece before it is
    measured against a bar.  Remnants at or above min_remnant_mm go back
    to inventory; shorter ones are waste.
    """

    kerf_mm: int = DEFAULT_KERF_MM
    allowance_mm: int = DEFAULT_ALLOWANCE_MM
    min_remnant_mm: int = DEFAULT_MIN_REMNANT_MM

    def __post_init__(self):
        for name in ("kerf_mm", "allowance_mm", "min_remnant_mm"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{name} cannot be negative, got {value}")

    @classmethod
    def merge(
        cls,
        patch: Mapping[str, int | None] | None = None,
        defaults: PlanParams | None = None,
    ) -> Self:
        """Fill unspecified fields of a camelCase or snake_case patch."""
        base = defaults or cls()
        if not patch:
            return base
        values: dict[str, int] = {}
        for snake, camel in _PARAM_KEYS:
            value = patch.get(camel, patch.get(snake))
            if value is not None:
                values[snake] = value
        return replace(base, **values)

    def to_dict(self) -> dict[str, int]:
        return {
            "kerfMm": self.kerf_mm,
            "allowanceMm": self.allowance_mm,
            "minRemnantMm": self.min_remnant_mm,
        }


_PARAM_KEYS = (
    ("kerf_mm", "kerfMm"),
    ("allowance_mm", "allowanceMm"),
    ("min_remnant_mm", "minRemnantMm"),
)


@dataclass(frozen=True)
class InventoryRow:
    """One ledger row: ``qty`` bars of ``length_mm`` in a material class."""

    id: int
    material_class: str
    length_mm: int
    qty: int

    def __post_init__(self):
        if self.length_mm <= 0:
            raise InvalidInventoryRowError("length_mm", self.length_mm)
        if self.qty < 0:
            raise InvalidInventoryRowError("qty", self.qty)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "inventoryClass": self.material_class,
            "lengthMm": self.length_mm,
            "qty": self.qty,
        }


@dataclass(frozen=True)
class DemandLine:
    """An ordered frame: ``qty`` units of ``height_mm`` x ``width_mm``."""

    height_mm: float
    width_mm: float
    qty: float

    def to_dict(self) -> dict[str, Any]:
        return {"heightMm": self.height_mm, "widthMm": self.width_mm, "qty": self.qty}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            height_mm=data["heightMm"],
            width_mm=data["widthMm"],
            qty=data["qty"],
        )


@dataclass(frozen=True)
class Cut:
    """A piece placed on a bar; effective_mm includes allowance and kerf."""

    piece_mm: int
    effective_mm: int


@dataclass(frozen=True)
class StockRef:
    """The bar an allocation was cut from and the row it came from."""

    length_mm: int
    source_id: int


@dataclass(frozen=True)
class Allocation:
    """
    One bar that received at least one cut.

    Guarantees: ``used_mm + remnant_mm == stock.length_mm`` and
    ``remnant_kept`` iff ``remnant_mm >= min_remnant_mm`` of the run.
    """

    stock: StockRef
    cuts: tuple[Cut, ...]
    used_mm: int
    remnant_mm: int
    remnant_kept: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "stock": {
                "lengthMm": self.stock.length_mm,
                "sourceId": self.stock.source_id,
            },
            "cuts": [
                {"pieceMm": c.piece_mm, "effectiveMm": c.effective_mm}
                for c in self.cuts
            ],
            "usedMm": self.used_mm,
            "remnantMm": self.remnant_mm,
            "remnantKept": self.remnant_kept,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        return cls(
            stock=StockRef(
                length_mm=data["stock"]["lengthMm"],
                source_id=data["stock"]["sourceId"],
            ),
            cuts=tuple(
                Cut(piece_mm=c["pieceMm"], effective_mm=c["effectiveMm"])
                for c in data["cuts"]
            ),
            used_mm=data["usedMm"],
            remnant_mm=data["remnantMm"],
            remnant_kept=data["remnantKept"],
        )


@dataclass(frozen=True)
class ShortageItem:
    """``missing_count`` pieces of ``piece_mm`` that could not be placed."""

    piece_mm: int
    missing_count: int
    reason: ShortageReason


@dataclass(frozen=True)
class CutListItem:
    piece_mm: int
    count: int


@dataclass(frozen=True)
class PlanStats:
    total_pieces: int = 0
    total_used_stocks: int = 0
    total_waste_mm: int = 0


@dataclass(frozen=True)
class PlanResult:
    """
    Complete result of one allocation run.

    Contract:
        Computed once by the allocation engine; never mutated.
    Guarantees:
        - sum of cuts over allocations + sum of shortage missing counts
          == ``stats.total_pieces``, except for a short-circuited FAIL,
          which itemises only the longest length (see cutting_engines.bfd).
        - ``stats.total_used_stocks == len(allocations)``.
    """

    status: PlanStatus
    cut_list: tuple[CutListItem, ...] = ()
    allocations: tuple[Allocation, ...] = ()
    shortage: tuple[ShortageItem, ...] = ()
    stats: PlanStats = field(default_factory=PlanStats)

    @property
    def allocated_piece_count(self) -> int:
        return sum(len(a.cuts) for a in self.allocations)

    @property
    def missing_piece_count(self) -> int:
        return sum(s.missing_count for s in self.shortage)

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "cutList": [
                {"pieceMm": c.piece_mm, "count": c.count} for c in self.cut_list
            ],
            "allocations": [a.to_dict() for a in self.allocations],
            "shortage": [
                {
                    "pieceMm": s.piece_mm,
                    "missingCount": s.missing_count,
                    "reason": s.reason.value,
                }
                for s in self.shortage
            ],
            "stats": {
                "totalPieces": self.stats.total_pieces,
                "totalUsedStocks": self.stats.total_used_stocks,
                "totalWasteMm": self.stats.total_waste_mm,
            },
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        stats = data["stats"]
        return cls(
            status=PlanStatus(data["status"]),
            cut_list=tuple(
                CutListItem(piece_mm=c["pieceMm"], count=c["count"])
                for c in data["cutList"]
            ),
            allocations=tuple(Allocation.from_dict(a) for a in data["allocations"]),
            shortage=tuple(
                ShortageItem(
                    piece_mm=s["pieceMm"],
                    missing_count=s["missingCount"],
                    reason=ShortageReason(s["reason"]),
                )
                for s in data["shortage"]
            ),
            stats=PlanStats(
                total_pieces=stats["totalPieces"],
                total_used_stocks=stats["totalUsedStocks"],
                total_waste_mm=stats["totalWasteMm"],
            ),
        )


@dataclass(frozen=True)
class PlanRecord:
    """
    A staged plan: the inputs of one planning call and its result.

    Contract: immutable snapshot.  Only ``state`` and ``committed_at``
    differ between the PLANNED and COMMITTED versions of the same plan;
    stores produce the committed version with ``dataclasses.replace``.
    """

    id: UUID
    state: PlanState
    material_class: str
    params: PlanParams
    demand_lines: tuple[DemandLine, ...]
    pieces: tuple[int, ...]
    result: PlanResult
    created_at: datetime
    width_only: bool = False
    committed_at: datetime | None = None

    @property
    def is_committed(self) -> bool:
        return self.state is PlanState.COMMITTED

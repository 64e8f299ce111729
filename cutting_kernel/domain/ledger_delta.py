"""
Ledger delta: what committing a plan does to inventory.

Responsibility:
    Turns a plan's allocations into the two mutations a commit applies:
    units consumed per originating inventory row, and kept remnants to be
    inserted or merged back into the ledger.

Architecture position:
    Kernel > Domain -- pure.  Stores call ``build_ledger_delta`` inside
    their locked commit so that both backends summarise identically.

Invariants enforced:
    - Every allocation consumes exactly one unit of its source row.
    - Only allocations with ``remnant_kept`` and a positive remnant return
      material; remnants are keyed by (material class, remnant length).
      With a zero minimum remnant an exact fit is "kept" at 0 mm, which is
      no material and never becomes a ledger row.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass

from cutting_kernel.domain.values import Allocation

RemnantKey = tuple[str, int]


@dataclass(frozen=True)
class LedgerDelta:
    """Consumption by row id plus remnant returns by (class, length)."""

    consumption: dict[int, int]
    remnants: dict[RemnantKey, int]

    @property
    def consumed_units(self) -> int:
        return sum(self.consumption.values())

    @property
    def returned_units(self) -> int:
        return sum(self.remnants.values())


def summarize_consumption(allocations: Iterable[Allocation]) -> dict[int, int]:
    """Units consumed per source row, ordered by row id.

    Ascending order is also the lock order used by the SQL store.
    """
    consumption: dict[int, int] = {}
    for allocation in allocations:
        source_id = allocation.stock.source_id
        consumption[source_id] = consumption.get(source_id, 0) + 1
    return dict(sorted(consumption.items()))


def summarize_remnants(
    allocations: Iterable[Allocation],
    class_of_row: Callable[[int], str],
) -> dict[RemnantKey, int]:
    """Kept remnants grouped by (material class, remnant length)."""
    remnants: dict[RemnantKey, int] = {}
    for allocation in allocations:
        if not allocation.remnant_kept or allocation.remnant_mm <= 0:
            continue
        key = (class_of_row(allocation.stock.source_id), allocation.remnant_mm)
        remnants[key] = remnants.get(key, 0) + 1
    return remnants


def build_ledger_delta(
    allocations: Iterable[Allocation],
    class_of_row: Callable[[int], str],
) -> LedgerDelta:
    allocations = tuple(allocations)
    return LedgerDelta(
        consumption=summarize_consumption(allocations),
        remnants=summarize_remnants(allocations, class_of_row),
    )

"""
Module: cutting_engines.bfd
Responsibility:
    Assign required pieces to on-hand stock bars with the
    Best-Fit-Decreasing heuristic, classify pieces that cannot be placed,
    and compute waste/remnant statistics.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import cutting_kernel.domain values.

Invariants enforced:
    - Conservation: cuts placed + shortage missing counts == total pieces
      for every run that places pieces.  A short-circuited FAIL reports only
      the longest length as missing; see "Known reporting gap" below.
    - A bar's remaining length never goes negative.
    - remnant_kept iff remnant_mm >= min_remnant_mm; waste is the sum of
      remnants that are not kept.
    - Determinism: identical inputs produce identical outputs.  Ties between
      bars with the same leftover go to the earliest bar in arena order.

Failure modes:
    - None.  Any well-formed input yields a PlanResult; shortage is data,
      not an exception.

Known reporting gap:
    When the longest piece cannot fit any bar at all, the run
    short-circuits and reports only the copies of that longest length as
    missing.  Other pieces that would not fit either are not itemised.
    Callers rely on this shape, so it is preserved.

Usage:
    from cutting_engines.bfd import BestFitDecreasingEngine

    engine = BestFitDecreasingEngine()
    result = engine.allocate(
        stock_rows=[InventoryRow(id=1, material_class="Komarnici", length_mm=5000, qty=2)],
        pieces=[1000, 1000, 1000, 1000],
        params=PlanParams(kerf_mm=0, allowance_mm=0),
    )
"""

from __future__ import annotations

import time
from collections import Counter
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from cutting_engines.tracer import traced_engine
from cutting_kernel.domain.pieces import expand_demand_lines, normalize_pieces
from cutting_kernel.domain.values import (
    Allocation,
    Cut,
    CutListItem,
    DemandLine,
    InventoryRow,
    PlanParams,
    PlanResult,
    PlanStats,
    PlanStatus,
    ShortageItem,
    ShortageReason,
    StockRef,
    to_non_negative_int,
)
from cutting_kernel.logging_config import get_logger

logger = get_logger("engines.bfd")


@dataclass
class StockBar:
    """
    One physical bar in the allocation arena.

    Mutable and engine-internal: created by expanding ledger rows, indexed
    by position, discarded when the run ends.
    """

    source_id: int
    original_mm: int
    remaining_mm: int
    cuts: list[Cut] = field(default_factory=list)


def expand_stock(rows: Iterable[InventoryRow]) -> list[StockBar]:
    """A row of quantity N becomes N independent bars."""
    bars: list[StockBar] = []
    for row in rows:
        length_mm = to_non_negative_int(row.length_mm)
        for _ in range(to_non_negative_int(row.qty)):
            bars.append(
                StockBar(source_id=row.id, original_mm=length_mm, remaining_mm=length_mm)
            )
    return bars


def summarize_pieces(pieces: Iterable[int]) -> tuple[CutListItem, ...]:
    """Cut list: count per distinct length, ascending."""
    counts = Counter(pieces)
    return tuple(
        CutListItem(piece_mm=length, count=counts[length]) for length in sorted(counts)
    )


class BestFitDecreasingEngine:
    """
    Best-Fit-Decreasing cutting allocation.

    Contract:
        Pure function of (stock rows, pieces, params).  No I/O, no shared
        state; safe to run concurrently for different plans.
    Guarantees:
        - Pieces are processed longest first.
        - Each piece goes to the bar that leaves the smallest non-negative
          leftover after its effective length (piece + allowance + kerf).
        - "Impossible in principle" failures are detected before any bar
          is touched; "insufficient given competing demand" failures are
          tallied during the greedy pass.
    Non-goals:
        - Not an exact bin-packing solver; no global optimum search.
        - Does not read or write the inventory ledger.
    """

    @traced_engine("bfd", "1.0", fingerprint_fields=("stock_rows", "pieces", "params"))
    def allocate(
        self,
        *,
        stock_rows: Sequence[InventoryRow],
        pieces: Sequence[int],
        params: PlanParams,
    ) -> PlanResult:
        """
        Allocate pieces to bars expanded from ``stock_rows``.

        Args:
            stock_rows: Ledger snapshot rows (one material class).
            pieces: Positive integer piece lengths, any order.
            params: Kerf, allowance and minimum kept remnant.

        Returns:
            PlanResult with status SUCCESS, PARTIAL or FAIL.
        """
        t0 = time.monotonic()
        ordered = sorted(pieces, reverse=True)
        bars = expand_stock(stock_rows)

        logger.info("bfd_allocation_started", extra={
            "piece_count": len(ordered),
            "bar_count": len(bars),
            "kerf_mm": params.kerf_mm,
            "allowance_mm": params.allowance_mm,
            "min_remnant_mm": params.min_remnant_mm,
        })

        if not ordered:
            return PlanResult(status=PlanStatus.SUCCESS)

        impossible = self._classify_longest(stock_rows, ordered, params)
        if impossible is not None:
            logger.warning("bfd_longest_piece_impossible", extra={
                "piece_mm": impossible.piece_mm,
                "missing_count": impossible.missing_count,
                "reason": impossible.reason.value,
            })
            return PlanResult(
                status=PlanStatus.FAIL,
                cut_list=summarize_pieces(ordered),
                shortage=(impossible,),
                stats=PlanStats(total_pieces=len(ordered)),
            )

        shortage_tally = self._place_pieces(bars, ordered, params)
        result = self._build_result(bars, ordered, shortage_tally, params)

        duration_ms = round((time.monotonic() - t0) * 1000, 2)
        logger.info("bfd_allocation_completed", extra={
            "status": result.status.value,
            "total_used_stocks": result.stats.total_used_stocks,
            "total_waste_mm": result.stats.total_waste_mm,
            "missing_pieces": result.missing_piece_count,
            "duration_ms": duration_ms,
        })
        return result

    def _classify_longest(
        self,
        stock_rows: Sequence[InventoryRow],
        ordered: Sequence[int],
        params: PlanParams,
    ) -> ShortageItem | None:
        """Short-circuit check on the longest piece against the longest bar.

        Row quantity is ignored here: a row that exists with qty 0 still
        counts as "stock long enough", and the shortage then surfaces from
        the greedy pass instead.
        """
        longest = ordered[0]
        with_allowance = longest + params.allowance_mm
        effective = with_allowance + params.kerf_mm
        max_stock = max(
            (to_non_negative_int(row.length_mm) for row in stock_rows), default=0
        )

        if effective <= max_stock:
            return None

        if with_allowance <= max_stock:
            reason = ShortageReason.KERF_ALLOWANCE_MAKES_IT_IMPOSSIBLE
        else:
            reason = ShortageReason.NO_STOCK_LONG_ENOUGH

        return ShortageItem(
            piece_mm=longest,
            missing_count=ordered.count(longest),
            reason=reason,
        )

    def _place_pieces(
        self,
        bars: list[StockBar],
        ordered: Sequence[int],
        params: PlanParams,
    ) -> dict[int, int]:
        """Greedy best-fit pass.  Returns the shortage tally by piece length."""
        shortage_tally: dict[int, int] = {}
        for piece in ordered:
            effective_mm = piece + params.allowance_mm + params.kerf_mm
            best_idx = -1
            best_leftover = 0

            for idx, bar in enumerate(bars):
                if bar.remaining_mm < effective_mm:
                    continue
                leftover = bar.remaining_mm - effective_mm
                if best_idx == -1 or leftover < best_leftover:
                    best_idx = idx
                    best_leftover = leftover

            if best_idx == -1:
                shortage_tally[piece] = shortage_tally.get(piece, 0) + 1
                continue

            bar = bars[best_idx]
            bar.cuts.append(Cut(piece_mm=piece, effective_mm=effective_mm))
            bar.remaining_mm -= effective_mm
        return shortage_tally

    def _build_result(
        self,
        bars: Sequence[StockBar],
        ordered: Sequence[int],
        shortage_tally: dict[int, int],
        params: PlanParams,
    ) -> PlanResult:
        allocations = tuple(
            Allocation(
                stock=StockRef(length_mm=bar.original_mm, source_id=bar.source_id),
                cuts=tuple(bar.cuts),
                used_mm=bar.original_mm - bar.remaining_mm,
                remnant_mm=bar.remaining_mm,
                remnant_kept=bar.remaining_mm >= params.min_remnant_mm,
            )
            for bar in bars
            if bar.cuts
        )

        shortage = tuple(
            ShortageItem(
                piece_mm=piece_mm,
                missing_count=missing,
                reason=ShortageReason.INSUFFICIENT_STOCK_AFTER_ALLOCATION,
            )
            for piece_mm, missing in sorted(shortage_tally.items(), reverse=True)
        )

        if not shortage:
            status = PlanStatus.SUCCESS
        elif allocations:
            status = PlanStatus.PARTIAL
        else:
            status = PlanStatus.FAIL

        total_waste_mm = sum(a.remnant_mm for a in allocations if not a.remnant_kept)

        return PlanResult(
            status=status,
            cut_list=summarize_pieces(ordered),
            allocations=allocations,
            shortage=shortage,
            stats=PlanStats(
                total_pieces=len(ordered),
                total_used_stocks=len(allocations),
                total_waste_mm=total_waste_mm,
            ),
        )


def build_cut_plan(
    stock_rows: Sequence[InventoryRow],
    demand_lines: Iterable[DemandLine],
    params: PlanParams | None = None,
) -> PlanResult:
    """Expand frame demand lines and allocate them."""
    return BestFitDecreasingEngine().allocate(
        stock_rows=stock_rows,
        pieces=expand_demand_lines(demand_lines),
        params=params or PlanParams(),
    )


def build_cut_plan_for_pieces(
    stock_rows: Sequence[InventoryRow],
    pieces: Iterable[float],
    params: PlanParams | None = None,
) -> PlanResult:
    """Allocate a caller-supplied flat piece list."""
    return BestFitDecreasingEngine().allocate(
        stock_rows=stock_rows,
        pieces=normalize_pieces(pieces),
        params=params or PlanParams(),
    )

"""
Piece expansion: demand lines -> flat multiset of piece lengths.

A frame of height H and width W needs two pieces of each, so one unit of
quantity contributes ``H, W, H, W``.  The width-only variant contributes
``W, W`` per unit.  Output is unsorted; the allocation engine sorts.

Values are rounded half-up; non-finite or non-positive lengths are dropped
silently (data hygiene, not an error).
"""

from __future__ import annotations

from collections.abc import Iterable

from cutting_kernel.domain.values import DemandLine, to_non_negative_int

PIECES_PER_DIMENSION = 2


def expand_demand_lines(lines: Iterable[DemandLine]) -> list[int]:
    """Expand height/width demand lines into piece lengths."""
    pieces: list[int] = []
    for line in lines:
        height_mm = to_non_negative_int(line.height_mm)
        width_mm = to_non_negative_int(line.width_mm)
        qty = to_non_negative_int(line.qty)
        for _ in range(PIECES_PER_DIMENSION * qty):
            pieces.append(height_mm)
            pieces.append(width_mm)
    return [p for p in pieces if p > 0]


def expand_width_only(lines: Iterable[DemandLine]) -> list[int]:
    """Single-dimension variant: each unit needs two pieces of its width."""
    pieces: list[int] = []
    for line in lines:
        width_mm = to_non_negative_int(line.width_mm)
        qty = to_non_negative_int(line.qty)
        pieces.extend([width_mm] * (PIECES_PER_DIMENSION * qty))
    return [p for p in pieces if p > 0]


def normalize_pieces(values: Iterable[float]) -> list[int]:
    """Round a caller-supplied flat piece list and drop unusable entries."""
    return [p for p in (to_non_negative_int(v) for v in values) if p > 0]

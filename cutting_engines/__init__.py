"""
Module: cutting_engines
Responsibility:
    Package entrypoint re-exporting the pure calculation engines.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import cutting_kernel.domain (and sibling engine modules).
    MUST NOT import cutting_kernel.services or cutting_modules.

Invariants enforced:
    - Purity: engines never read the clock or the ledger.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``cutting_engines.tracer``), emitting CUTTING_ENGINE_TRACE records.
"""

from cutting_engines.bfd import (
    BestFitDecreasingEngine,
    StockBar,
    build_cut_plan,
    build_cut_plan_for_pieces,
    expand_stock,
    summarize_pieces,
)
from cutting_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "BestFitDecreasingEngine",
    "StockBar",
    "build_cut_plan",
    "build_cut_plan_for_pieces",
    "compute_input_fingerprint",
    "expand_stock",
    "summarize_pieces",
    "traced_engine",
]

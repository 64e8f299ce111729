"""Pure domain layer: values, piece expansion, plan lifecycle, ledger deltas."""

from cutting_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from cutting_kernel.domain.ledger_delta import (
    LedgerDelta,
    build_ledger_delta,
    summarize_consumption,
    summarize_remnants,
)
from cutting_kernel.domain.lifecycle import (
    PLAN_WORKFLOW,
    TransitionOutcome,
    commit_transition,
)
from cutting_kernel.domain.pieces import (
    expand_demand_lines,
    expand_width_only,
    normalize_pieces,
)
from cutting_kernel.domain.values import (
    DEFAULT_MATERIAL_CLASS,
    MATERIAL_CLASSES,
    Allocation,
    CommitStatus,
    Cut,
    CutListItem,
    DemandLine,
    InventoryRow,
    PlanParams,
    PlanRecord,
    PlanResult,
    PlanState,
    PlanStats,
    PlanStatus,
    ShortageItem,
    ShortageReason,
    StockRef,
)

__all__ = [
    "DEFAULT_MATERIAL_CLASS",
    "MATERIAL_CLASSES",
    "Allocation",
    "Clock",
    "CommitStatus",
    "Cut",
    "CutListItem",
    "DemandLine",
    "DeterministicClock",
    "InventoryRow",
    "LedgerDelta",
    "PLAN_WORKFLOW",
    "PlanParams",
    "PlanRecord",
    "PlanResult",
    "PlanState",
    "PlanStats",
    "PlanStatus",
    "ShortageItem",
    "ShortageReason",
    "StockRef",
    "SystemClock",
    "TransitionOutcome",
    "build_ledger_delta",
    "commit_transition",
    "expand_demand_lines",
    "expand_width_only",
    "normalize_pieces",
    "summarize_consumption",
    "summarize_remnants",
]

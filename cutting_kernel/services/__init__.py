"""Kernel services: ledger and plan stores, planning/commit orchestrator."""

from cutting_kernel.services.memory_plan_store import InMemoryPlanStore
from cutting_kernel.services.orchestrator import CommitResult, CutPlanOrchestrator, PlanOutcome
from cutting_kernel.services.plan_store import PlanStore
from cutting_kernel.services.sql_plan_store import SqlPlanStore

__all__ = [
    "CommitResult",
    "CutPlanOrchestrator",
    "InMemoryPlanStore",
    "PlanOutcome",
    "PlanStore",
    "SqlPlanStore",
]

"""
CutPlanOrchestrator -- planning and commit facade over a PlanStore.

Responsibility:
    Runs a planning call end to end (ledger snapshot, piece expansion,
    allocation, staging a PLANNED record) and commits staged plans against
    the ledger.  Owns the transaction boundary for both.

Architecture position:
    Kernel > Services -- imperative shell.  Calls the pure engine in
    ``cutting_engines`` and the persistence contract in ``plan_store``.
    Outer layers (``cutting_modules``) call this class; they never touch
    a store's ``commit()`` themselves.

Invariants enforced:
    - A planning call never mutates inventory.
    - With ``auto_commit=True`` a successful call commits the store and
      any exception rolls it back before propagating.
    - Every call runs inside ``LogContext.bind`` with a fresh
      correlation id; commit calls also bind the plan id.

Failure modes:
    - ValueError: both ``demand_lines`` and ``pieces`` given, or invalid
      parameter values.
    - PlanNotFoundError, InventoryConflictError from ``commit``.

Usage:
    orchestrator = CutPlanOrchestrator(InMemoryPlanStore(seed=[("Komarnici", 6000, 4)]))
    outcome = orchestrator.plan(demand_lines=[DemandLine(1200, 800, 2)])
    orchestrator.commit(outcome.plan_id)
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from uuid import UUID, uuid4

from cutting_engines.bfd import BestFitDecreasingEngine
from cutting_kernel.domain.clock import Clock, SystemClock
from cutting_kernel.domain.pieces import expand_demand_lines, expand_width_only, normalize_pieces
from cutting_kernel.domain.values import (
    DEFAULT_MATERIAL_CLASS,
    CommitStatus,
    DemandLine,
    InventoryRow,
    PlanParams,
    PlanRecord,
    PlanResult,
    PlanState,
    PlanStatus,
)
from cutting_kernel.exceptions import InventoryConflictError
from cutting_kernel.logging_config import LogContext, get_logger
from cutting_kernel.services.plan_store import PlanStore

logger = get_logger("services.orchestrator")


@dataclass(frozen=True)
class PlanOutcome:
    """Result of a planning call: the staged plan id and what it computed."""

    plan_id: UUID
    result: PlanResult
    material_class: str
    width_only: bool = False

    @property
    def status(self) -> PlanStatus:
        return self.result.status


@dataclass(frozen=True)
class CommitResult:
    """Result of a commit call.  Failures raise instead."""

    status: CommitStatus
    plan_id: UUID

    @property
    def is_new_commit(self) -> bool:
        return self.status is CommitStatus.COMMITTED


class CutPlanOrchestrator:
    """
    Planning and commit entry point.

    By default every call commits the store on success and rolls it back
    on failure.  Set ``auto_commit=False`` to let the caller own the
    transaction (tests, or batching several calls into one unit of work).
    """

    def __init__(
        self,
        store: PlanStore,
        clock: Clock | None = None,
        auto_commit: bool = True,
        default_params: PlanParams | None = None,
        engine: BestFitDecreasingEngine | None = None,
    ):
        """
        Args:
            store: Ledger and plan persistence backend.
            clock: Clock for plan timestamps. Defaults to SystemClock.
            auto_commit: Commit on success and roll back on failure.
            default_params: Fallback for fields a planning call omits.
                Defaults to kerf 3, allowance 1, min remnant 100.
            engine: Allocation engine. Defaults to Best-Fit-Decreasing.
        """
        self._store = store
        self._clock = clock or SystemClock()
        self._auto_commit = auto_commit
        self._default_params = default_params or PlanParams()
        self._engine = engine or BestFitDecreasingEngine()

    @property
    def default_params(self) -> PlanParams:
        return self._default_params

    def plan(
        self,
        demand_lines: Iterable[DemandLine] | None = None,
        pieces: Iterable[float] | None = None,
        params: PlanParams | Mapping[str, int | None] | None = None,
        material_class: str = DEFAULT_MATERIAL_CLASS,
        width_only: bool = False,
    ) -> PlanOutcome:
        """
        Compute a plan against the current ledger and stage it as PLANNED.

        Either ``demand_lines`` (expanded into pieces, two per dimension
        per unit, or two widths per unit when ``width_only``) or a flat
        ``pieces`` list may be given.  Giving neither plans nothing.

        Args:
            demand_lines: Frames to cut.
            pieces: Raw piece lengths; rounded, non-positive entries dropped.
            params: A full ``PlanParams`` or a partial mapping
                (camelCase or snake_case keys) merged over the defaults.
            material_class: Ledger rows considered for allocation.
            width_only: Expand demand lines into widths only.

        Returns:
            PlanOutcome with the new plan id.  The result may be PARTIAL or
            FAIL; shortage is data, not an error.
        """
        if demand_lines is not None and pieces is not None:
            raise ValueError("Provide demand_lines or pieces, not both")

        resolved = self._resolve_params(params)
        lines = tuple(demand_lines or ())
        if pieces is not None:
            piece_list = normalize_pieces(pieces)
        elif width_only:
            piece_list = expand_width_only(lines)
        else:
            piece_list = expand_demand_lines(lines)

        plan_id = uuid4()
        with LogContext.bind(correlation_id=str(uuid4()), plan_id=str(plan_id)):
            logger.info(
                "plan_started",
                extra={
                    "material_class": material_class,
                    "width_only": width_only,
                    "demand_line_count": len(lines),
                    "piece_count": len(piece_list),
                },
            )
            t0 = time.monotonic()
            try:
                stock_rows = self._store.list_inventory(material_class)
                result = self._engine.allocate(
                    stock_rows=stock_rows, pieces=piece_list, params=resolved
                )
                record = PlanRecord(
                    id=plan_id,
                    state=PlanState.PLANNED,
                    material_class=material_class,
                    params=resolved,
                    demand_lines=lines,
                    pieces=tuple(piece_list),
                    result=result,
                    created_at=self._clock.now(),
                    width_only=width_only,
                )
                self._store.save_plan(record)

                if self._auto_commit:
                    self._store.commit()

                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.info(
                    "plan_completed",
                    extra={
                        "status": result.status.value,
                        "total_used_stocks": result.stats.total_used_stocks,
                        "total_waste_mm": result.stats.total_waste_mm,
                        "missing_pieces": result.missing_piece_count,
                        "duration_ms": duration_ms,
                    },
                )
                return PlanOutcome(
                    plan_id=plan_id,
                    result=result,
                    material_class=material_class,
                    width_only=width_only,
                )

            except Exception:
                if self._auto_commit:
                    self._store.rollback()
                logger.error("plan_failed", exc_info=True)
                raise

    def commit(self, plan_id: UUID) -> CommitResult:
        """
        Apply a staged plan to the ledger, exactly once.

        Re-committing a committed plan returns ALREADY_COMMITTED and
        changes nothing.

        Raises:
            PlanNotFoundError: Unknown plan id.
            InventoryConflictError: The ledger no longer covers the plan.
                Nothing was changed; re-plan and try again.
        """
        with LogContext.bind(correlation_id=str(uuid4()), plan_id=str(plan_id)):
            logger.info("commit_started")
            t0 = time.monotonic()
            try:
                status = self._store.commit_plan(plan_id, self._clock.now())

                if self._auto_commit:
                    self._store.commit()

                duration_ms = round((time.monotonic() - t0) * 1000, 2)
                logger.info(
                    "commit_completed",
                    extra={"status": status.value, "duration_ms": duration_ms},
                )
                return CommitResult(status=status, plan_id=plan_id)

            except InventoryConflictError:
                if self._auto_commit:
                    self._store.rollback()
                logger.warning("commit_conflict", exc_info=True)
                raise
            except Exception:
                if self._auto_commit:
                    self._store.rollback()
                logger.error("commit_failed", exc_info=True)
                raise

    def list_inventory(self, material_class: str | None = None) -> list[InventoryRow]:
        return self._store.list_inventory(material_class)

    def add_inventory(self, material_class: str, length_mm: int, qty: int) -> InventoryRow:
        try:
            row = self._store.add_inventory(material_class, length_mm, qty)
            if self._auto_commit:
                self._store.commit()
            return row
        except Exception:
            if self._auto_commit:
                self._store.rollback()
            raise

    def get_plan(self, plan_id: UUID) -> PlanRecord:
        return self._store.get_plan(plan_id)

    def seed_inventory(self, rows: Sequence[tuple[str, int, int]]) -> list[InventoryRow]:
        """Add several stock rows in one unit of work."""
        try:
            added = [
                self._store.add_inventory(material_class, length_mm, qty)
                for material_class, length_mm, qty in rows
            ]
            if self._auto_commit:
                self._store.commit()
            return added
        except Exception:
            if self._auto_commit:
                self._store.rollback()
            raise

    def _resolve_params(
        self, params: PlanParams | Mapping[str, int | None] | None
    ) -> PlanParams:
        if isinstance(params, PlanParams):
            return params
        return PlanParams.merge(params, defaults=self._default_params)

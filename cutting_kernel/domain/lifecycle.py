"""
Plan lifecycle: PLANNED -> COMMITTED, exactly once.

EXPIRED is declared so that stored rows written by a surrounding system
remain readable, but no kernel transition leads into or out of it.
Committing an already committed plan is a no-op, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass

from cutting_kernel.domain.values import PlanState
from cutting_kernel.domain.workflow import Transition, Workflow
from cutting_kernel.exceptions import InvalidPlanTransitionError
from cutting_kernel.logging_config import get_logger

logger = get_logger("domain.lifecycle")

COMMIT_ACTION = "commit"

PLAN_WORKFLOW = Workflow(
    name="cut_plan",
    description="Staged cutting plan awaiting commit against inventory",
    initial_state=PlanState.PLANNED.value,
    states=tuple(s.value for s in PlanState),
    transitions=(
        Transition(
            from_state=PlanState.PLANNED.value,
            to_state=PlanState.COMMITTED.value,
            action=COMMIT_ACTION,
            mutates_ledger=True,
        ),
    ),
    terminal_states=(PlanState.COMMITTED.value, PlanState.EXPIRED.value),
)


@dataclass(frozen=True)
class TransitionOutcome:
    """Resulting state, and whether the transition actually fired."""

    state: PlanState
    changed: bool


def commit_transition(state: PlanState, plan_id: str = "") -> TransitionOutcome:
    """Apply the commit action to ``state``.

    Raises:
        InvalidPlanTransitionError: for states other than PLANNED/COMMITTED.
    """
    if state is PlanState.COMMITTED:
        return TransitionOutcome(state=state, changed=False)

    transition = PLAN_WORKFLOW.find(state.value, COMMIT_ACTION)
    if transition is None:
        logger.warning(
            "plan_transition_rejected",
            extra={"from_state": state.value, "action": COMMIT_ACTION},
        )
        raise InvalidPlanTransitionError(plan_id, state.value, COMMIT_ACTION)
    return TransitionOutcome(state=PlanState(transition.to_state), changed=True)

"""
Canonical workflow types (``cutting_kernel.domain.workflow``).

Pure value objects for lifecycle state machines, shared by the plan
lifecycle and the order queue so that Transition and Workflow are defined
once.

Invariants enforced
-------------------
* Transitions reference only states in ``Workflow.states``.
* ``initial_state`` is a member of ``states``.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Transition:
    """A valid state transition in a workflow.

    ``mutates_ledger=True`` marks the transition that writes inventory.
    """
    from_state: str
    to_state: str
    action: str
    mutates_ledger: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition for a document lifecycle.

    ``terminal_states`` are states with no outgoing transitions.
    """
    name: str
    description: str
    initial_state: str
    states: tuple[str, ...]
    transitions: tuple[Transition, ...]
    terminal_states: tuple[str, ...] = ()

    def __post_init__(self):
        if self.initial_state not in self.states:
            raise ValueError(
                f"initial_state {self.initial_state!r} is not a state of {self.name}"
            )
        for t in self.transitions:
            if t.from_state not in self.states or t.to_state not in self.states:
                raise ValueError(
                    f"transition {t.action!r} references unknown state in {self.name}"
                )

    def find(self, from_state: str, action: str) -> Transition | None:
        """Return the transition for ``action`` from ``from_state``, if any."""
        for t in self.transitions:
            if t.from_state == from_state and t.action == action:
                return t
        return None

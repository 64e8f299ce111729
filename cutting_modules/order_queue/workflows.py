"""
Order Queue Workflows.

State machine for queued orders: PENDING -> ACCEPTED, once.
"""

from cutting_kernel.domain.workflow import Transition, Workflow

from cutting_modules.order_queue.models import OrderStatus

ACCEPT_ACTION = "accept"

ORDER_WORKFLOW = Workflow(
    name="queued_order",
    description="Queued frame order, planned and committed on acceptance",
    initial_state=OrderStatus.PENDING.value,
    states=tuple(s.value for s in OrderStatus),
    transitions=(
        Transition(
            from_state=OrderStatus.PENDING.value,
            to_state=OrderStatus.ACCEPTED.value,
            action=ACCEPT_ACTION,
            mutates_ledger=True,
        ),
    ),
    terminal_states=(OrderStatus.ACCEPTED.value,),
)

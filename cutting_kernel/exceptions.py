"""
Typed Exception Hierarchy for the Cutting Kernel.

===============================================================================
WHY TYPED EXCEPTIONS
===============================================================================

Callers of the kernel (an HTTP layer, the order queue, batch scripts) must
tell "this plan does not exist" apart from "inventory moved underneath this
plan" without parsing message strings.  Every error therefore has:

  1. A TYPED exception class (catch by type, not message)
  2. A CODE class attribute (machine-readable, API-safe)
  3. Structured DATA attributes (not just a message string)

Algorithmic shortage is NOT an error.  A plan that cannot place every piece
is a successful return carrying ShortageItems.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CuttingKernelError (base)
    |
    +-- PlanError
    |   +-- PlanNotFoundError
    |   +-- InvalidPlanTransitionError
    |
    +-- InventoryError
    |   +-- InvalidInventoryRowError
    |
    +-- ConcurrencyError
    |   +-- InventoryConflictError
    |
    +-- OrderError
        +-- OrderNotFoundError
        +-- InvalidOrderError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                        | When Raised
----------------|-----------------------------|-----------------------------------------
Plan            | PLAN_NOT_FOUND              | Commit of an unknown plan id
                | INVALID_PLAN_TRANSITION     | Commit of a plan in a reserved state
----------------|-----------------------------|-----------------------------------------
Inventory       | INVALID_INVENTORY_ROW       | Non-positive length or negative qty
----------------|-----------------------------|-----------------------------------------
Concurrency     | INVENTORY_CONFLICT          | Ledger no longer covers the plan
----------------|-----------------------------|-----------------------------------------
Order           | ORDER_NOT_FOUND             | Accept of an unknown queued order
                | INVALID_ORDER               | Non-positive order dimension or qty

===============================================================================
HANDLING PATTERNS
===============================================================================

1. IDEMPOTENT COMMIT IS NOT AN ERROR:

    result = orchestrator.commit(plan_id)
    if result.status is CommitStatus.ALREADY_COMMITTED:
        ...  # ledger untouched, nothing to do

2. CONFLICT MEANS RE-PLAN:

    try:
        orchestrator.commit(plan_id)
    except InventoryConflictError as e:
        log.warning("stale plan", extra={"row_id": e.row_id})
        outcome = orchestrator.plan(...)  # fresh snapshot

===============================================================================
"""


class CuttingKernelError(Exception):
    """
    Base exception for all cutting kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CUTTING_KERNEL_ERROR"


# Plan-related exceptions


class PlanError(CuttingKernelError):
    """Base exception for plan-related errors."""

    code: str = "PLAN_ERROR"


class PlanNotFoundError(PlanError):
    """Plan with given ID was not found."""

    code: str = "PLAN_NOT_FOUND"

    def __init__(self, plan_id: str):
        self.plan_id = plan_id
        super().__init__(f"Plan not found: {plan_id}")


class InvalidPlanTransitionError(PlanError):
    """The plan's lifecycle state does not allow the requested action."""

    code: str = "INVALID_PLAN_TRANSITION"

    def __init__(self, plan_id: str, from_state: str, action: str):
        self.plan_id = plan_id
        self.from_state = from_state
        self.action = action
        super().__init__(
            f"Plan {plan_id} cannot '{action}' from state {from_state}"
        )


# Inventory-related exceptions


class InventoryError(CuttingKernelError):
    """Base exception for inventory ledger errors."""

    code: str = "INVENTORY_ERROR"


class InvalidInventoryRowError(InventoryError):
    """An inventory row value is out of range."""

    code: str = "INVALID_INVENTORY_ROW"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Invalid inventory {field}: {value!r}")


# Concurrency-related exceptions


class ConcurrencyError(CuttingKernelError):
    """Base exception for concurrency-related errors."""

    code: str = "CONCURRENCY_ERROR"


class InventoryConflictError(ConcurrencyError):
    """
    The ledger changed after the plan was staged.

    Raised when a consumed row is gone or holds fewer units than the plan
    requires.  The commit is aborted as a whole; nothing was mutated.
    """

    code: str = "INVENTORY_CONFLICT"

    def __init__(
        self,
        plan_id: str,
        row_id: int,
        required: int,
        available: int | None,
    ):
        self.plan_id = plan_id
        self.row_id = row_id
        self.required = required
        self.available = available
        super().__init__(
            "Inventory changed, plan cannot be committed: "
            f"row {row_id} requires {required}, available {available}"
        )


# Order-queue exceptions


class OrderError(CuttingKernelError):
    """Base exception for order-queue errors."""

    code: str = "ORDER_ERROR"


class OrderNotFoundError(OrderError):
    """Queued order with given ID was not found."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


class InvalidOrderError(OrderError):
    """A queued order line has a non-positive dimension or quantity."""

    code: str = "INVALID_ORDER"

    def __init__(self, field: str, value: object):
        self.field = field
        self.value = value
        super().__init__(f"Order {field} must be positive, got {value!r}")

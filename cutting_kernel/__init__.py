"""
Cutting Kernel

Allocation-and-commit core for linear stock cutting:
- Piece expansion from ordered frames
- Best-Fit-Decreasing allocation against on-hand bars
- Staged plans with an idempotent PLANNED -> COMMITTED lifecycle
- Atomic, conflict-checked commit against the inventory ledger
"""

__version__ = "0.1.0"

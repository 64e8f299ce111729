"""SQLAlchemy ORM models for the cutting kernel."""

from cutting_kernel.models.inventory import InventoryRowModel
from cutting_kernel.models.plan import CutPlanModel

__all__ = [
    "CutPlanModel",
    "InventoryRowModel",
]

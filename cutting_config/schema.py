"""
Configuration Schema (``cutting_config.schema``).

Responsibility
--------------
Frozen dataclasses describing one cutting configuration set: default
plan parameters, database settings, logging level and the seed stock
written into an empty ledger.

Architecture position
---------------------
**Config layer** -- pure data definitions.  Produced by
``cutting_config.loader`` and returned by ``get_active_config()``.

Invariants enforced
-------------------
* All lengths and quantities are non-negative integers; stock lengths
  are positive.
* Dataclasses are frozen; a loaded configuration never changes.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from cutting_kernel.domain.values import (
    DEFAULT_ALLOWANCE_MM,
    DEFAULT_KERF_MM,
    DEFAULT_MIN_REMNANT_MM,
    PlanParams,
)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


@dataclass(frozen=True)
class PlanDefaults:
    """Plan parameters used when a planning call leaves a field out."""

    kerf_mm: int = DEFAULT_KERF_MM
    allowance_mm: int = DEFAULT_ALLOWANCE_MM
    min_remnant_mm: int = DEFAULT_MIN_REMNANT_MM

    def __post_init__(self):
        self.to_params()

    def to_params(self) -> PlanParams:
        return PlanParams(
            kerf_mm=self.kerf_mm,
            allowance_mm=self.allowance_mm,
            min_remnant_mm=self.min_remnant_mm,
        )


@dataclass(frozen=True)
class DatabaseSettings:
    url: str = "sqlite:///cutting.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 10

    def __post_init__(self):
        if not self.url:
            raise ValueError("database url cannot be empty")
        if self.pool_size < 1:
            raise ValueError(f"pool_size must be positive, got {self.pool_size}")
        if self.max_overflow < 0:
            raise ValueError(f"max_overflow cannot be negative, got {self.max_overflow}")


@dataclass(frozen=True)
class SeedStockRow:
    """One ledger row created when the inventory is seeded."""

    material_class: str
    length_mm: int
    qty: int

    def __post_init__(self):
        if not self.material_class:
            raise ValueError("seed row material_class cannot be empty")
        if self.length_mm <= 0:
            raise ValueError(f"seed row length_mm must be positive, got {self.length_mm}")
        if self.qty < 0:
            raise ValueError(f"seed row qty cannot be negative, got {self.qty}")

    def as_tuple(self) -> tuple[str, int, int]:
        return (self.material_class, self.length_mm, self.qty)


@dataclass(frozen=True)
class CuttingConfig:
    """
    A complete, validated configuration set.

    ``checksum`` is the SHA-256 of the canonical JSON of the source
    document, before environment overrides.
    """

    config_id: str
    version: int
    plan_defaults: PlanDefaults = field(default_factory=PlanDefaults)
    database: DatabaseSettings = field(default_factory=DatabaseSettings)
    log_level: str = "INFO"
    material_classes: tuple[str, ...] = ()
    seed_inventory: tuple[SeedStockRow, ...] = ()
    checksum: str = ""

    def __post_init__(self):
        if self.log_level not in LOG_LEVELS:
            raise ValueError(
                f"log_level must be one of {', '.join(LOG_LEVELS)}, got {self.log_level!r}"
            )
        unknown = {
            row.material_class for row in self.seed_inventory
        } - set(self.material_classes)
        if self.material_classes and unknown:
            raise ValueError(
                f"seed inventory uses undeclared material classes: {sorted(unknown)}"
            )

    def seed_rows(self) -> list[tuple[str, int, int]]:
        return [row.as_tuple() for row in self.seed_inventory]

"""
cutting_config -- single public entrypoint for cutting configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Other components receive the returned
    ``CuttingConfig`` (or values derived from it) instead of reading
    files or environment variables themselves.

Architecture position:
    Configuration -- sits beside ``cutting_kernel``.  It may import kernel
    domain values; the kernel MUST NEVER import from ``cutting_config``.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - Deterministic checksum: the same YAML document always yields the
      same ``CuttingConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the configuration file does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``KeyError`` / ``ValueError`` -- missing keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``CUTTING_CONFIG_TRACE`` log entry with the config id, version and
    checksum, tying each run to the exact configuration it used.
"""

from __future__ import annotations

import logging
import os
from dataclasses import replace
from pathlib import Path

from cutting_config.loader import load_config_file
from cutting_config.schema import CuttingConfig, DatabaseSettings, PlanDefaults, SeedStockRow

_logger = logging.getLogger("cutting_kernel.config")

_DEFAULT_CONFIG_PATH = Path(__file__).parent / "sets" / "default.yaml"

CONFIG_PATH_ENV = "CUTTING_CONFIG_PATH"
DATABASE_URL_ENV = "DATABASE_URL"


def get_active_config(path: Path | str | None = None) -> CuttingConfig:
    """The ONLY public configuration entrypoint.

    Resolution order for the file: the ``path`` argument, then the
    ``CUTTING_CONFIG_PATH`` environment variable, then the bundled
    ``sets/default.yaml``.  ``DATABASE_URL``, when set, replaces the
    configured database URL.

    Raises:
        FileNotFoundError: If the resolved file does not exist.
        ValueError: If the configuration fails validation.
    """
    resolved = Path(path or os.environ.get(CONFIG_PATH_ENV) or _DEFAULT_CONFIG_PATH)
    config = load_config_file(resolved)

    database_url = os.environ.get(DATABASE_URL_ENV)
    if database_url:
        config = replace(config, database=replace(config.database, url=database_url))

    _logger.info(
        "CUTTING_CONFIG_TRACE",
        extra={
            "trace_type": "CUTTING_CONFIG_TRACE",
            "config_id": config.config_id,
            "config_version": config.version,
            "checksum": config.checksum,
            "source_path": str(resolved),
            "database_dialect": config.database.url.split(":", 1)[0],
            "database_url_overridden": bool(database_url),
            "seed_row_count": len(config.seed_inventory),
        },
    )
    return config


def seed_inventory_if_empty(orchestrator, config: CuttingConfig) -> int:
    """Write the configured seed stock into an empty ledger.

    Returns the number of rows written; 0 when the ledger already holds
    stock.
    """
    if orchestrator.list_inventory():
        return 0
    rows = config.seed_rows()
    orchestrator.seed_inventory(rows)
    _logger.info("inventory_seeded", extra={"row_count": len(rows)})
    return len(rows)


__all__ = [
    "CuttingConfig",
    "DatabaseSettings",
    "PlanDefaults",
    "SeedStockRow",
    "get_active_config",
    "seed_inventory_if_empty",
]

"""
Configuration Loader (``cutting_config.loader``).

Responsibility
--------------
Reads a YAML configuration set and parses it into the frozen dataclasses
of ``cutting_config.schema``.  Runtime callers use
``cutting_config.get_active_config()``; this module is its plumbing.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Out-of-range values  -> ``ValueError`` from the schema dataclasses.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from cutting_config.schema import CuttingConfig, DatabaseSettings, PlanDefaults, SeedStockRow


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the top level is not a mapping.
    """
    with open(path) as f:
        data = yaml.safe_load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization; identical data, identical hash."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_plan_defaults(data: dict[str, Any]) -> PlanDefaults:
    defaults = PlanDefaults()
    return PlanDefaults(
        kerf_mm=int(data.get("kerf_mm", defaults.kerf_mm)),
        allowance_mm=int(data.get("allowance_mm", defaults.allowance_mm)),
        min_remnant_mm=int(data.get("min_remnant_mm", defaults.min_remnant_mm)),
    )


def parse_database(data: dict[str, Any]) -> DatabaseSettings:
    defaults = DatabaseSettings()
    return DatabaseSettings(
        url=str(data.get("url", defaults.url)),
        echo=bool(data.get("echo", defaults.echo)),
        pool_size=int(data.get("pool_size", defaults.pool_size)),
        max_overflow=int(data.get("max_overflow", defaults.max_overflow)),
    )


def parse_seed_row(data: dict[str, Any]) -> SeedStockRow:
    return SeedStockRow(
        material_class=data["material_class"],
        length_mm=int(data["length_mm"]),
        qty=int(data["qty"]),
    )


def parse_config(data: dict[str, Any], checksum: str = "") -> CuttingConfig:
    """Build a ``CuttingConfig`` from an already-loaded YAML mapping."""
    plan_defaults = parse_plan_defaults(data.get("plan_defaults") or {})
    return CuttingConfig(
        config_id=data["config_id"],
        version=int(data.get("version", 1)),
        plan_defaults=plan_defaults,
        database=parse_database(data.get("database") or {}),
        log_level=str(data.get("log_level", "INFO")).upper(),
        material_classes=tuple(data.get("material_classes") or ()),
        seed_inventory=tuple(
            parse_seed_row(row) for row in data.get("seed_inventory") or ()
        ),
        checksum=checksum or compute_checksum(data),
    )


def load_config_file(path: Path) -> CuttingConfig:
    data = load_yaml_file(path)
    return parse_config(data, compute_checksum(data))

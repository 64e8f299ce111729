"""
cutting_engines.tracer -- CUTTING_ENGINE_TRACE records for engine runs.

``@traced_engine`` wraps a keyword-only engine entry point and logs, after
it returns, which engine ran, how long it took and a fingerprint of the
inputs that determine its result.  Two allocation runs with the same
fingerprint planned the same stock for the same pieces with the same
parameters, so their plans are identical.

Fingerprint inputs are the values this package passes in: integers,
sequences of integers, and frozen dataclasses such as ``PlanParams`` and
``InventoryRow``.  Dataclasses are rendered field by field in declaration
order.  A field absent from the call is rendered as ``null``.

Usage:
    @traced_engine("bfd", "1.0", fingerprint_fields=("stock_rows", "pieces", "params"))
    def allocate(self, *, stock_rows, pieces, params):
        ...
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import logging
import time
from collections.abc import Callable, Sequence
from typing import Any

# Engines never import kernel services, so the logger is looked up directly.
_logger = logging.getLogger("cutting_kernel.engines.tracer")


def _render(value: Any) -> str:
    if value is None:
        return "null"
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        inner = ",".join(
            f"{f.name}={_render(getattr(value, f.name))}" for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}({inner})"
    if isinstance(value, Sequence) and not isinstance(value, str):
        return "[" + ",".join(_render(item) for item in value) + "]"
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """First 16 hex chars of the SHA-256 of the rendered fields."""
    canonical = "|".join(f"{name}={_render(kwargs.get(name))}" for name in fingerprint_fields)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:16]


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            started = time.monotonic()
            result = func(*args, **kwargs)
            _logger.info(
                "CUTTING_ENGINE_TRACE",
                extra={
                    "engine_name": engine_name,
                    "engine_version": engine_version,
                    "function": func.__qualname__,
                    "input_fingerprint": compute_input_fingerprint(fingerprint_fields, kwargs),
                    "duration_ms": round((time.monotonic() - started) * 1000, 2),
                },
            )
            return result

        return wrapper

    return decorator

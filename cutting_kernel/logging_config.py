"""
Structured JSON logging for the cutting kernel.

Each record under the ``cutting_kernel`` logger is written as one JSON
object holding ``ts``, ``level``, ``logger`` and ``message``.  It also
carries:

  * the plan/order identifiers bound with ``LogContext.bind``;
  * every ``extra`` field the call site passed;
  * for a logged kernel error, its ``exc_code`` plus each structured
    attribute as ``exc_<name>`` (``exc_row_id``, ``exc_required`` ...).

Bound context wins over an ``extra`` field of the same name.
"""

from __future__ import annotations

import json
import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from cutting_kernel.exceptions import CuttingKernelError

__all__ = [
    "CONTEXT_FIELDS",
    "LogContext",
    "StructuredFormatter",
    "configure_logging",
    "get_logger",
    "reset_logging",
]

LOGGER_ROOT = "cutting_kernel"
CONTEXT_FIELDS = ("correlation_id", "plan_id", "order_id")

_HANDLER_NAME = "cutting_kernel.json"

# Replaced wholesale on bind, never mutated in place
_bound: ContextVar[dict[str, str]] = ContextVar("cutting_log_context", default={})


class LogContext:
    """Identifiers stamped on every record emitted inside a ``bind`` block."""

    @staticmethod
    def get_all() -> dict[str, str]:
        return dict(_bound.get())

    @staticmethod
    def clear() -> None:
        _bound.set({})

    @staticmethod
    @contextmanager
    def bind(**fields: str | None) -> Iterator[None]:
        """Layer ``fields`` over the current context until the block exits.

        Names outside ``CONTEXT_FIELDS`` and ``None`` values are ignored.
        """
        layered = dict(_bound.get())
        layered.update(
            (name, value)
            for name, value in fields.items()
            if name in CONTEXT_FIELDS and value is not None
        )
        token = _bound.set(layered)
        try:
            yield
        finally:
            _bound.reset(token)


_RECORD_ATTRS = frozenset(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}


def _to_json(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return value.isoformat()
    # UUIDs and anything else exotic
    return str(value)


def _exception_fields(exc: BaseException) -> dict[str, Any]:
    fields: dict[str, Any] = {"exc_type": type(exc).__name__, "exc_message": str(exc)}
    if isinstance(exc, CuttingKernelError):
        fields["exc_code"] = exc.code
        for name, value in vars(exc).items():
            if not name.startswith("_"):
                fields[f"exc_{name}"] = value
    return fields


class StructuredFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        payload.update(_bound.get())
        for key, value in vars(record).items():
            if key not in _RECORD_ATTRS:
                payload.setdefault(key, value)

        if record.exc_info and record.exc_info[1] is not None:
            payload.update(_exception_fields(record.exc_info[1]))
            payload["traceback"] = self.formatException(record.exc_info)

        return json.dumps(payload, default=_to_json)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{LOGGER_ROOT}.{name}")


def configure_logging(
    *,
    level: int | str = logging.INFO,
    handler: logging.Handler | None = None,
) -> None:
    """Install the JSON handler on ``cutting_kernel``.  Repeat calls are no-ops."""
    root = logging.getLogger(LOGGER_ROOT)
    if any(h.get_name() == _HANDLER_NAME for h in root.handlers):
        return
    handler = handler or logging.StreamHandler(sys.stderr)
    handler.set_name(_HANDLER_NAME)
    handler.setFormatter(StructuredFormatter())
    root.addHandler(handler)
    root.setLevel(level)
    root.propagate = False


def reset_logging() -> None:
    """Remove installed handlers so tests can configure afresh."""
    root = logging.getLogger(LOGGER_ROOT)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    root.setLevel(logging.NOTSET)
    root.propagate = True

"""
Pytest fixtures for the cutting kernel test suite.

Provides:
- In-memory store and orchestrator
- SQLite-backed store and orchestrator through SQLAlchemy
- Deterministic clock
- Captured structured logs

Environment Variables:
- CUTTING_TEST_DATABASE_URL: optional PostgreSQL URL.  Tests marked
  ``postgres`` are skipped unless it is set.
"""

import json
import logging
import os
from datetime import UTC, datetime
from io import StringIO

import pytest

from cutting_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session_factory,
    init_engine_from_url,
    reset_engine,
)
from cutting_kernel.domain.clock import DeterministicClock
from cutting_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from cutting_kernel.services.memory_plan_store import InMemoryPlanStore
from cutting_kernel.services.orchestrator import CutPlanOrchestrator
from cutting_kernel.services.sql_plan_store import SqlPlanStore

FIXED_NOW = datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture cutting_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs, orchestrator):
            orchestrator.plan(pieces=[1000])
            logs = captured_logs()
            assert any(r["message"] == "plan_completed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("cutting_kernel")
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "postgres: mark test as requiring PostgreSQL"
    )
    config.addinivalue_line(
        "markers", "slow_locks: mark test as potentially waiting for DB locks"
    )


def pytest_collection_modifyitems(config, items):
    if os.environ.get("CUTTING_TEST_DATABASE_URL"):
        return
    skip_pg = pytest.mark.skip(reason="CUTTING_TEST_DATABASE_URL not set")
    for item in items:
        if "postgres" in item.keywords:
            item.add_marker(skip_pg)


# =============================================================================
# Clock
# =============================================================================


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(FIXED_NOW)


# =============================================================================
# In-memory backend
# =============================================================================


@pytest.fixture
def memory_store() -> InMemoryPlanStore:
    return InMemoryPlanStore()


@pytest.fixture
def orchestrator(memory_store, clock) -> CutPlanOrchestrator:
    return CutPlanOrchestrator(memory_store, clock=clock)


# =============================================================================
# SQLite backend
# =============================================================================


@pytest.fixture
def sqlite_engine(tmp_path):
    """File-backed SQLite database, fresh per test.

    A file rather than ``:memory:`` so that each session (and each thread
    in the concurrency tests) gets its own connection.
    """
    engine = init_engine_from_url(f"sqlite:///{tmp_path / 'cutting.db'}")
    create_tables()
    yield engine
    drop_tables()
    reset_engine()


@pytest.fixture
def session_factory(sqlite_engine):
    return get_session_factory()


@pytest.fixture
def session(session_factory):
    sess = session_factory()
    yield sess
    sess.rollback()
    sess.close()


@pytest.fixture
def sql_store(session) -> SqlPlanStore:
    return SqlPlanStore(session)


@pytest.fixture
def sql_orchestrator(sql_store, clock) -> CutPlanOrchestrator:
    return CutPlanOrchestrator(sql_store, clock=clock)


@pytest.fixture(params=["memory", "sqlite"])
def any_orchestrator(request, clock) -> CutPlanOrchestrator:
    """The same orchestrator contract over both store backends."""
    if request.param == "memory":
        return CutPlanOrchestrator(InMemoryPlanStore(), clock=clock)
    sess = request.getfixturevalue("session")
    return CutPlanOrchestrator(SqlPlanStore(sess), clock=clock)


# =============================================================================
# PostgreSQL backend (opt-in)
# =============================================================================


@pytest.fixture
def pg_session_factory():
    """Session factory on CUTTING_TEST_DATABASE_URL with fresh tables."""
    init_engine_from_url(os.environ["CUTTING_TEST_DATABASE_URL"], pool_size=20)
    create_tables()
    yield get_session_factory()
    drop_tables()
    reset_engine()

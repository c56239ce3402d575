"""
Pytest fixtures for the staff payroll test suite.

Provides:
- Structured logging configuration and log capture
- A deterministic clock and default payroll config
- An in-memory SQLite session for the ledger ORM
"""

import json
import logging
from datetime import datetime
from io import StringIO

import pytest

from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
    reset_engine,
)
from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from payroll_modules.staff_pay.config import PayrollConfig

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
    Capture payroll_kernel logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            compute_monthly_payroll(snapshot, period)
            logs = captured_logs()
            assert any(r["message"] == "payroll_month_computed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("payroll_kernel")
    previous_level = root.level
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# Core fixtures
# =============================================================================


@pytest.fixture
def config() -> PayrollConfig:
    return PayrollConfig.with_defaults()


@pytest.fixture
def clock() -> DeterministicClock:
    return DeterministicClock(datetime(2025, 6, 15, 9, 0, 0))


@pytest.fixture
def db_session():
    """In-memory SQLite session with the ledger tables created."""
    init_engine_from_url("sqlite:///:memory:")
    create_tables()
    session = get_session()
    yield session
    session.close()
    drop_tables()
    reset_engine()


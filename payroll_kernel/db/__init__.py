"""Database infrastructure for the pay-record ledger (SQLAlchemy)."""

from payroll_kernel.db.base import Base, TrackedBase
from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_engine,
    get_session,
    init_engine_from_url,
    ledger_session,
    reset_engine,
)

__all__ = [
    "Base",
    "TrackedBase",
    "create_tables",
    "drop_tables",
    "get_engine",
    "get_session",
    "init_engine_from_url",
    "ledger_session",
    "reset_engine",
]

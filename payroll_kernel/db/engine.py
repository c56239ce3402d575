"""
Ledger database connection (``payroll_kernel.db.engine``).

The pay-record ledger is the only persistent state: salary records posted
by payroll runs, manual adjustments and recurring bonuses.  One engine per
process is configured from a URL; in-memory SQLite (tests, demos) is
pinned to a single shared connection so every session sees the same
tables.

Calling ``get_session()`` before ``init_engine_from_url()`` raises
``RuntimeError``.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from payroll_kernel.db.base import Base
from payroll_kernel.logging_config import get_logger

logger = get_logger("db.engine")

_engine: Engine | None = None
_sessions: sessionmaker[Session] | None = None


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (":memory:" in url or url.rstrip("/") == "sqlite:")


def init_engine_from_url(database_url: str, echo: bool = False) -> Engine:
    """Create the process-wide ledger engine and session factory."""
    global _engine, _sessions

    options: dict = {"echo": echo}
    if _is_memory_sqlite(database_url):
        options.update(poolclass=StaticPool, connect_args={"check_same_thread": False})
    else:
        options["pool_pre_ping"] = True

    _engine = create_engine(database_url, **options)
    _sessions = sessionmaker(bind=_engine, expire_on_commit=False)
    logger.info("ledger_engine_initialized", extra={"dialect": _engine.dialect.name})
    return _engine


def get_engine() -> Engine:
    if _engine is None:
        raise RuntimeError("Ledger engine not initialized; call init_engine_from_url() first")
    return _engine


def get_session() -> Session:
    if _sessions is None:
        raise RuntimeError("Ledger engine not initialized; call init_engine_from_url() first")
    return _sessions()


@contextmanager
def ledger_session() -> Iterator[Session]:
    """A session committed on success and rolled back on any error."""
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        logger.warning("ledger_transaction_rolled_back", exc_info=True)
        raise
    finally:
        session.close()


def create_tables() -> None:
    """Create the ledger tables."""
    # Importing the ORM registers its tables on Base.metadata
    import payroll_modules.staff_pay.orm  # noqa: F401

    Base.metadata.create_all(get_engine())


def drop_tables() -> None:
    Base.metadata.drop_all(get_engine())


def reset_engine() -> None:
    """Dispose the engine and forget the session factory."""
    global _engine, _sessions
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _sessions = None

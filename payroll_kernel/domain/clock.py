"""
Clock -- where "today" comes from.

Payroll answers depend on the date they are asked: holiday accrual grows
day by day and the default month to preview is the current one.  Engines
therefore take explicit dates; only the command layer asks a ``Clock``,
and only when the caller left the date out.

``SystemClock`` is the single place wall-clock time enters the system.
``DeterministicClock`` pins it for tests and replays.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone

from payroll_kernel.domain.periods import MonthPeriod


class Clock(ABC):
    """Injectable source of the current instant."""

    @abstractmethod
    def now(self) -> datetime: ...

    def today(self) -> date:
        return self.now().date()

    def current_month(self) -> MonthPeriod:
        """The payroll month containing today."""
        return MonthPeriod.containing(self.today())


class SystemClock(Clock):
    """Wall-clock time in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Pinned clock for tests.

    Returns the same instant until moved with ``advance()`` or
    ``set_time()``.  Defaults to noon UTC on 2025-01-01.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._instant = fixed_time or datetime(2025, 1, 1, 12, tzinfo=timezone.utc)

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        """Clock pinned to midday on ``day``."""
        return cls(datetime(day.year, day.month, day.day, 12, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._instant

    def set_time(self, time: datetime) -> None:
        self._instant = time

    def advance(self, days: int = 1) -> None:
        """Move forward by whole days (negative moves back)."""
        self._instant += timedelta(days=days)

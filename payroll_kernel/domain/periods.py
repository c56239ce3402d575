"""
Calendar periods (``payroll_kernel.domain.periods``).

Responsibility
--------------
Pure value objects for the two windows payroll reasons about:

* ``MonthPeriod`` -- the calendar month a payroll run covers.
* ``HolidayYear`` -- the fixed June 1 to May 31 entitlement window,
  independent of the calendar year.

Plus strict date parsing helpers that turn unparseable input into a typed
``InvalidDateError`` instead of a silently wrong answer.

Architecture position
---------------------
**Kernel domain layer** -- ZERO I/O, no clock reads.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from datetime import date, datetime, timedelta

from payroll_kernel.exceptions import InvalidDateError

HOLIDAY_YEAR_START_MONTH = 6


def parse_iso_date(value: object, field_name: str = "date") -> date:
    """Parse a date from a ``date``, ``datetime`` or ISO string.

    Raises:
        InvalidDateError: for None, empty strings, or unparseable values.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        try:
            return date.fromisoformat(text)
        except ValueError:
            pass
        try:
            return datetime.fromisoformat(text).date()
        except ValueError:
            pass
    raise InvalidDateError(value, field_name)


def parse_optional_date(value: object, field_name: str = "date") -> date | None:
    """Like ``parse_iso_date`` but None / empty string mean "no date"."""
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_iso_date(value, field_name)


def parse_iso_datetime(value: object, field_name: str = "timestamp") -> datetime:
    """Parse a timestamp; a bare date means midnight of that day."""
    if isinstance(value, datetime):
        return value
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)
    if isinstance(value, str) and value.strip():
        try:
            return datetime.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDateError(value, field_name)


def days_inclusive(start: date, end: date) -> int:
    """Number of calendar days from start to end, counting both ends."""
    return (end - start).days + 1


@dataclass(frozen=True, order=True)
class MonthPeriod:
    """A calendar month.

    Contract: frozen, ordered by (year, month).
    Guarantees: ``first_day`` <= ``last_day``; both fall in the month.
    """

    year: int
    month: int

    def __post_init__(self) -> None:
        if not 1 <= self.month <= 12:
            raise InvalidDateError(f"{self.year}-{self.month}", "month")

    @classmethod
    def containing(cls, value: object) -> MonthPeriod:
        """The month containing any date, datetime or ISO string."""
        day = parse_iso_date(value, "month")
        return cls(day.year, day.month)

    @property
    def first_day(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def last_day(self) -> date:
        if self.month == 12:
            return date(self.year, 12, 31)
        return date(self.year, self.month + 1, 1) - timedelta(days=1)

    @property
    def label(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"

    def days(self) -> Iterator[date]:
        """Every calendar day of the month, in order."""
        day = self.first_day
        last = self.last_day
        while day <= last:
            yield day
            day += timedelta(days=1)

    def contains(self, day: date) -> bool:
        return self.first_day <= day <= self.last_day

    def overlap_days(self, start: date, end: date) -> int:
        """Inclusive count of days of [start, end] that fall in this month."""
        lo = max(start, self.first_day)
        hi = min(end, self.last_day)
        if hi < lo:
            return 0
        return days_inclusive(lo, hi)

    def overlaps(self, start: date, end: date | None) -> bool:
        """True when [start, end] (end None = open-ended) touches the month."""
        if start > self.last_day:
            return False
        return end is None or end >= self.first_day

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class HolidayYear:
    """The fixed entitlement window, June 1 through May 31.

    Contract: frozen; ``start`` is always the 1st of the start month.
    """

    start: date
    end: date

    @classmethod
    def containing(
        cls, as_of: date, start_month: int = HOLIDAY_YEAR_START_MONTH,
    ) -> HolidayYear:
        """Window containing ``as_of``.

        From the start month onward the window opens this year; before it,
        the window opened last year.
        """
        first_year = as_of.year if as_of.month >= start_month else as_of.year - 1
        return cls._from_first_year(first_year, start_month)

    @classmethod
    def ending_in(
        cls, year: int, start_month: int = HOLIDAY_YEAR_START_MONTH,
    ) -> HolidayYear:
        """Window that closes during ``year`` (e.g. Jun 2024 - May 2025)."""
        return cls._from_first_year(year - 1, start_month)

    @classmethod
    def _from_first_year(cls, first_year: int, start_month: int) -> HolidayYear:
        start = date(first_year, start_month, 1)
        end = date(first_year + 1, start_month, 1) - timedelta(days=1)
        return cls(start=start, end=end)

    @property
    def total_days(self) -> int:
        """Days from ``start`` to ``end``, not counting ``end`` (364 or 365).

        This is the pro-rata denominator; days employed are counted
        inclusively against it.
        """
        return (self.end - self.start).days

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

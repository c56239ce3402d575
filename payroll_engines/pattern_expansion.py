"""
Recurring Pattern Expander (``payroll_engines.pattern_expansion``).

Responsibility
--------------
Expand weekly recurrence rules into concrete per-date *virtual* shifts for
one month, and derive the schedule aggregates built on them.

A pattern is active on a day when the day lies inside its validity window,
the day's weekday (0 = Sunday ... 6 = Saturday) is in its day set, and the
day is not in that pattern's exception set.  One virtual shift is emitted
per active pattern per day, so a day may carry several.  Days on which the
same staff member already has a concrete shift are skipped: the concrete
shift is the effective one for every day-based calculation.

Hours aggregation sums every shift independently.  Two patterns of the
same staff member that overlap in time on one day therefore add both
shifts' hours; ``overlapping_pattern_dates`` reports those days so the
caller can surface them instead of silently de-duplicating.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.  Deterministic:
output order follows day order, then input pattern order.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal

from payroll_kernel.domain.periods import MonthPeriod
from payroll_modules.staff_pay.models import (
    ConcreteShift,
    PatternException,
    RecurringShiftPattern,
)

_MINUTES_PER_DAY = 24 * 60


def sunday_first_weekday(day: date) -> int:
    """Weekday number with 0 = Sunday ... 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _minutes(t: time) -> int:
    return t.hour * 60 + t.minute


def _span_minutes(start: time, end: time) -> tuple[int, int]:
    """Start/end minute offsets; an end before the start runs past midnight."""
    lo, hi = _minutes(start), _minutes(end)
    if hi < lo:
        hi += _MINUTES_PER_DAY
    return lo, hi


@dataclass(frozen=True)
class VirtualShift:
    """A shift generated from a recurring pattern for one date."""
    staff_id: str
    pattern_id: str
    shift_date: date
    start_time: time
    end_time: time
    hourly_rate: Decimal | None
    currency: str
    is_overtime: bool = False

    @property
    def hours(self) -> Decimal:
        lo, hi = _span_minutes(self.start_time, self.end_time)
        return Decimal(hi - lo) / Decimal(60)


def exception_dates_by_pattern(
    exceptions: Iterable[PatternException],
) -> dict[str, frozenset[date]]:
    """Group exception dates under their pattern id."""
    grouped: dict[str, set[date]] = defaultdict(set)
    for ex in exceptions:
        grouped[ex.pattern_id].add(ex.exception_date)
    return {pid: frozenset(days) for pid, days in grouped.items()}


def pattern_occurs_on(
    pattern: RecurringShiftPattern,
    day: date,
    exception_dates: frozenset[date] = frozenset(),
) -> bool:
    """True when ``pattern`` generates a shift on ``day``."""
    if not pattern.is_active_on(day):
        return False
    if sunday_first_weekday(day) not in pattern.days_of_week:
        return False
    return day not in exception_dates


def concrete_shift_keys(shifts: Iterable[ConcreteShift]) -> frozenset[tuple[str, date]]:
    """(staff_id, date) pairs that have a concrete shift."""
    return frozenset((s.staff_id, s.shift_date) for s in shifts)


def expand_patterns(
    patterns: Iterable[RecurringShiftPattern],
    exceptions: Iterable[PatternException] | Mapping[str, frozenset[date]],
    period: MonthPeriod,
    *,
    concrete_shifts: Iterable[ConcreteShift] = (),
) -> tuple[VirtualShift, ...]:
    """Expand patterns into the month's virtual shifts.

    Args:
        patterns: Recurrence rules (any number of staff members).
        exceptions: Pattern exceptions, or a pre-built
            ``exception_dates_by_pattern`` mapping.
        period: Target month.
        concrete_shifts: Stored shifts; a (staff, date) with one
            suppresses every virtual shift for that staff on that date.

    Returns:
        Virtual shifts ordered by date, then by pattern input order.
    """
    pattern_list = list(patterns)
    if isinstance(exceptions, Mapping):
        exception_map = exceptions
    else:
        exception_map = exception_dates_by_pattern(exceptions)
    suppressed = concrete_shift_keys(concrete_shifts)

    virtual: list[VirtualShift] = []
    for day in period.days():
        for pattern in pattern_list:
            if (pattern.staff_id, day) in suppressed:
                continue
            if not pattern_occurs_on(
                pattern, day, exception_map.get(pattern.id, frozenset()),
            ):
                continue
            virtual.append(
                VirtualShift(
                    staff_id=pattern.staff_id,
                    pattern_id=pattern.id,
                    shift_date=day,
                    start_time=pattern.start_time,
                    end_time=pattern.end_time,
                    hourly_rate=pattern.hourly_rate,
                    currency=pattern.currency,
                    is_overtime=pattern.is_overtime,
                )
            )
    return tuple(virtual)


def scheduled_hours(
    concrete_shifts: Iterable[ConcreteShift],
    virtual_shifts: Iterable[VirtualShift],
) -> Decimal:
    """Total hours across all shifts, each shift counted independently."""
    total = sum((s.hours for s in concrete_shifts), Decimal("0"))
    total += sum((v.hours for v in virtual_shifts), Decimal("0"))
    return total


def overlapping_pattern_dates(
    virtual_shifts: Iterable[VirtualShift],
) -> tuple[date, ...]:
    """Dates on which one staff member has time-overlapping virtual shifts."""
    by_key: dict[tuple[str, date], list[VirtualShift]] = defaultdict(list)
    for v in virtual_shifts:
        by_key[(v.staff_id, v.shift_date)].append(v)

    flagged: set[date] = set()
    for (_, day), shifts in by_key.items():
        if len(shifts) < 2:
            continue
        spans = sorted(_span_minutes(s.start_time, s.end_time) for s in shifts)
        for (_, prev_end), (next_start, _) in zip(spans, spans[1:]):
            if next_start < prev_end:
                flagged.add(day)
                break
    return tuple(sorted(flagged))

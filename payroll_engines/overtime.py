"""
Overtime Accrual Resolver (``payroll_engines.overtime``).

Responsibility
--------------
Merge the three overtime sources for one staff member and one month:

1. Approved overtime-like ``StaffRequest`` rows overlapping the month.
   ``shift_swap`` requests count only when flagged as overtime cover.
   A request spanning several months contributes its ``days_requested``
   in proportion to the share of its inclusive day span inside the
   month, rounded half-up to a whole day.
2. Recurring patterns flagged ``is_overtime``: distinct calendar dates in
   the month on which any of them occurs.  A date covered by several
   overtime patterns counts once; a date with a concrete shift does not
   count.
3. Manual ``overtime`` pay records already posted for the month, added
   verbatim.

``calculated_overtime_pay = multiplier * (monthly_base / working_days) *
overtime_days`` covers sources 1 and 2; ``overtime_pay`` adds source 3.

Manual records may have been written as a delta against the calculated
figure by the adjustment workflow; this resolver only sums them.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from payroll_engines.pattern_expansion import (
    concrete_shift_keys,
    exception_dates_by_pattern,
    pattern_occurs_on,
)
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.periods import MonthPeriod, days_inclusive
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import (
    ConcreteShift,
    MonthlyPayRecord,
    PatternException,
    PayRecordType,
    RecurringShiftPattern,
    RequestType,
    StaffRequest,
    coerce_decimal,
)

logger = get_logger("engines.overtime")

_WHOLE_DAY = Decimal("1")


@dataclass(frozen=True)
class OvertimeRequestDetail:
    """How one approved request contributed to the month."""
    request_id: str
    request_type: str
    start_date: date
    end_date: date
    days_requested: Decimal
    prorated_days: Decimal


@dataclass(frozen=True)
class OvertimeAccrual:
    """Result of resolving overtime for one staff member and month."""
    overtime_days: Decimal
    request_days: Decimal
    pattern_days: int
    request_details: tuple[OvertimeRequestDetail, ...]
    overtime_daily_rate: Decimal
    calculated_overtime_pay: Decimal
    manual_overtime_pay: Decimal
    overtime_pay: Decimal


def requested_days(raw: object) -> Decimal:
    """Usable requested-day count; malformed, zero or negative gives 0."""
    days = coerce_decimal(raw)
    if days is None or days <= 0:
        return Decimal("0")
    return days


def is_overtime_request(request: StaffRequest, config: PayrollConfig) -> bool:
    """Approved and of an overtime-like type (or an overtime shift swap)."""
    if not request.is_approved:
        return False
    if request.request_type is RequestType.SHIFT_SWAP:
        return request.is_overtime
    return request.request_type.value in config.overtime_request_types


def prorate_request_days(request: StaffRequest, period: MonthPeriod) -> Decimal:
    """Share of ``days_requested`` that falls in ``period``."""
    days = requested_days(request.days_requested)
    if days == 0:
        return days
    total_span = days_inclusive(request.start_date, request.end_date)
    if total_span <= 0:
        return Decimal("0")
    inside = period.overlap_days(request.start_date, request.end_date)
    if inside == 0:
        return Decimal("0")
    if inside == total_span:
        return days
    share = days * Decimal(inside) / Decimal(total_span)
    return share.quantize(_WHOLE_DAY, rounding=ROUND_HALF_UP)


def overtime_pattern_dates(
    patterns: Iterable[RecurringShiftPattern],
    exceptions: Iterable[PatternException],
    period: MonthPeriod,
    concrete_shifts: Iterable[ConcreteShift] = (),
) -> tuple[date, ...]:
    """Distinct month dates on which an overtime pattern occurs."""
    overtime_patterns = [p for p in patterns if p.is_overtime]
    exception_map = exception_dates_by_pattern(exceptions)
    suppressed = concrete_shift_keys(concrete_shifts)

    dates: list[date] = []
    for day in period.days():
        for pattern in overtime_patterns:
            if (pattern.staff_id, day) in suppressed:
                continue
            if pattern_occurs_on(pattern, day, exception_map.get(pattern.id, frozenset())):
                dates.append(day)
                break
    return tuple(dates)


@traced_engine("overtime", "1.0", fingerprint_fields=("period", "monthly_base_salary"))
def resolve_overtime(
    *,
    requests: Iterable[StaffRequest],
    overtime_patterns: Iterable[RecurringShiftPattern],
    exceptions: Iterable[PatternException],
    manual_records: Iterable[MonthlyPayRecord],
    period: MonthPeriod,
    monthly_base_salary: Decimal,
    concrete_shifts: Iterable[ConcreteShift] = (),
    config: PayrollConfig | None = None,
) -> OvertimeAccrual:
    """Resolve overtime days and pay for one staff member and month.

    All collections are expected to belong to a single staff member.
    Pay records and requests outside ``period`` are ignored.
    """
    config = config or PayrollConfig.with_defaults()

    details: list[OvertimeRequestDetail] = []
    request_total = Decimal("0")
    for request in requests:
        if not is_overtime_request(request, config):
            continue
        if period.overlap_days(request.start_date, request.end_date) == 0:
            continue
        prorated = prorate_request_days(request, period)
        request_total += prorated
        details.append(
            OvertimeRequestDetail(
                request_id=request.id,
                request_type=request.request_type.value,
                start_date=request.start_date,
                end_date=request.end_date,
                days_requested=requested_days(request.days_requested),
                prorated_days=prorated,
            )
        )

    pattern_dates = overtime_pattern_dates(
        overtime_patterns, exceptions, period, concrete_shifts,
    )
    overtime_days = request_total + len(pattern_dates)

    manual_total = sum(
        (
            r.amount
            for r in manual_records
            if r.record_type is PayRecordType.OVERTIME and period.contains(r.pay_date)
        ),
        Decimal("0"),
    )

    daily_rate = monthly_base_salary / config.working_days_per_month
    calculated = config.overtime_multiplier * daily_rate * overtime_days

    if overtime_days or manual_total:
        logger.debug(
            "overtime_resolved",
            extra={
                "period": period.label,
                "request_days": str(request_total),
                "pattern_days": len(pattern_dates),
                "manual_overtime": str(manual_total),
            },
        )

    return OvertimeAccrual(
        overtime_days=overtime_days,
        request_days=request_total,
        pattern_days=len(pattern_dates),
        request_details=tuple(details),
        overtime_daily_rate=daily_rate,
        calculated_overtime_pay=calculated,
        manual_overtime_pay=manual_total,
        overtime_pay=manual_total + calculated,
    )

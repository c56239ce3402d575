"""
Unused-Holiday Payout Calculator (``payroll_engines.unused_holiday``).

Responsibility
--------------
In the holiday-year closing month (June payroll), pay out accrued but
untaken holiday from the window that just closed:

    window   = HolidayYear.ending_in(period.year)   # Jun 1 .. May 31
    taken    = sum(days_taken) of approved ``holiday`` absences starting in window
    accrued  = holiday allowance for the start date, as of window.end
    unused   = max(0, accrued - taken)
    payout   = (monthly_base / working_days) * unused

In every other month the result is inactive and all figures are zero.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_engines.holiday_allowance import calculate_holiday_allowance
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.periods import HolidayYear, MonthPeriod
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import HolidayAbsenceRecord

logger = get_logger("engines.unused_holiday")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class UnusedHolidayPayout:
    is_active: bool
    holiday_year: HolidayYear | None
    accrued_allowance: Decimal
    days_taken: Decimal
    unused_days: Decimal
    payout: Decimal

    @classmethod
    def inactive(cls) -> UnusedHolidayPayout:
        return cls(
            is_active=False,
            holiday_year=None,
            accrued_allowance=_ZERO,
            days_taken=_ZERO,
            unused_days=_ZERO,
            payout=_ZERO,
        )


def holiday_days_taken(
    absences: Iterable[HolidayAbsenceRecord],
    window: HolidayYear,
) -> Decimal:
    """Approved holiday days whose absence starts inside ``window``."""
    return sum(
        (
            a.days_taken
            for a in absences
            if a.counts_as_holiday_taken and window.contains(a.start_date)
        ),
        _ZERO,
    )


@traced_engine("unused_holiday", "1.0", fingerprint_fields=("period", "start_date"))
def calculate_unused_holiday_payout(
    *,
    period: MonthPeriod,
    start_date: date | None,
    absences: Iterable[HolidayAbsenceRecord],
    monthly_base_salary: Decimal,
    config: PayrollConfig | None = None,
) -> UnusedHolidayPayout:
    """Year-end payout of untaken holiday for one staff member."""
    config = config or PayrollConfig.with_defaults()
    if period.month != config.unused_holiday_payout_month:
        return UnusedHolidayPayout.inactive()

    window = HolidayYear.ending_in(period.year, config.holiday_year_start_month)
    allowance = calculate_holiday_allowance(
        start_date=start_date, as_of=window.end, config=config,
    )
    taken = holiday_days_taken(absences, window)
    unused = max(_ZERO, allowance.accrued_allowance - taken)
    payout = (monthly_base_salary / config.working_days_per_month) * unused

    logger.info(
        "unused_holiday_evaluated",
        extra={
            "period": period.label,
            "window_start": window.start.isoformat(),
            "window_end": window.end.isoformat(),
            "accrued": str(allowance.accrued_allowance),
            "taken": str(taken),
            "unused": str(unused),
        },
    )

    return UnusedHolidayPayout(
        is_active=True,
        holiday_year=window,
        accrued_allowance=allowance.accrued_allowance,
        days_taken=taken,
        unused_days=unused,
        payout=payout,
    )

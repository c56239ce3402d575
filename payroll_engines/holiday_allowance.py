"""
Holiday Allowance Calculator (``payroll_engines.holiday_allowance``).

Responsibility
--------------
Given an employment start date and an as-of date, compute the annual
holiday entitlement and the pro-rata accrual within the fixed June 1 to
May 31 holiday year.

Rules
-----
* No start date: flat default allowance, fully accrued, not pro-rata.
* ``years_employed`` is elapsed days / 365 (not calendar aware).
* Allowance steps from the default (15) to the increased figure (18) once
  ``years_employed`` reaches the step (1 year).
* Staff who started on or before the holiday-year start get the full
  allowance.  Later starters accrue
  ``allowance * min(days_employed / days_in_year, 1)``, rounded half-up to
  one decimal place, with both day counts inclusive.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads:
the caller supplies ``as_of``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.periods import HolidayYear, days_inclusive
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.config import PayrollConfig

logger = get_logger("engines.holiday_allowance")

DAYS_PER_YEAR = Decimal("365")
_ONE_DP = Decimal("0.1")


@dataclass(frozen=True)
class HolidayAllowance:
    """Entitlement snapshot for one staff member at one date."""
    annual_allowance: Decimal
    accrued_allowance: Decimal
    years_employed: Decimal
    is_pro_rata: bool
    holiday_year: HolidayYear | None = None


def years_employed_between(start_date: date, as_of: date) -> Decimal:
    """Elapsed days divided by 365."""
    return Decimal((as_of - start_date).days) / DAYS_PER_YEAR


@traced_engine("holiday_allowance", "1.0", fingerprint_fields=("start_date", "as_of"))
def calculate_holiday_allowance(
    start_date: date | None,
    as_of: date,
    config: PayrollConfig | None = None,
) -> HolidayAllowance:
    """Compute annual and accrued holiday allowance.

    Args:
        start_date: Employment start date, or None when HR has not set one.
        as_of: The date to evaluate at (the service supplies "today").
        config: Entitlement settings; defaults to ``PayrollConfig()``.

    Returns:
        HolidayAllowance.  ``accrued_allowance`` never exceeds
        ``annual_allowance`` and is never negative.
    """
    config = config or PayrollConfig.with_defaults()

    if start_date is None:
        return HolidayAllowance(
            annual_allowance=config.default_holiday_allowance,
            accrued_allowance=config.default_holiday_allowance,
            years_employed=Decimal("0"),
            is_pro_rata=False,
        )

    years_employed = years_employed_between(start_date, as_of)
    annual = (
        config.increased_holiday_allowance
        if years_employed >= config.allowance_step_years
        else config.default_holiday_allowance
    )

    holiday_year = HolidayYear.containing(as_of, config.holiday_year_start_month)

    if start_date <= holiday_year.start:
        return HolidayAllowance(
            annual_allowance=annual,
            accrued_allowance=annual,
            years_employed=years_employed,
            is_pro_rata=False,
            holiday_year=holiday_year,
        )

    # Started inside the current holiday year
    days_employed = max(days_inclusive(start_date, as_of), 0)
    fraction = min(
        Decimal(days_employed) / Decimal(holiday_year.total_days), Decimal("1"),
    )
    accrued = (annual * fraction).quantize(_ONE_DP, rounding=ROUND_HALF_UP)

    logger.debug(
        "holiday_allowance_pro_rata",
        extra={
            "start_date": start_date.isoformat(),
            "as_of": as_of.isoformat(),
            "days_employed": days_employed,
            "days_in_year": holiday_year.total_days,
            "accrued": str(accrued),
        },
    )

    return HolidayAllowance(
        annual_allowance=annual,
        accrued_allowance=accrued,
        years_employed=years_employed,
        is_pro_rata=True,
        holiday_year=holiday_year,
    )

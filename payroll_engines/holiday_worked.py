"""
Holiday-Worked Bonus Calculator (``payroll_engines.holiday_worked``).

Responsibility
--------------
Count distinct public-holiday dates in the month on which the staff
member has an effective shift, and price them at
``holiday_worked_multiplier`` (0.5) of the daily rate.

Concrete shifts are considered first; a virtual shift only counts when
its date has no concrete shift for the same staff member.  A holiday
date contributes once however many shifts fall on it.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import Decimal

from payroll_engines.pattern_expansion import VirtualShift
from payroll_engines.tracer import traced_engine
from payroll_kernel.domain.periods import MonthPeriod
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import ConcreteShift, PublicHoliday

logger = get_logger("engines.holiday_worked")


@dataclass(frozen=True)
class HolidayShift:
    shift_date: date
    holiday_name: str


@dataclass(frozen=True)
class HolidayWorkedBonus:
    holiday_overtime_bonus: Decimal
    holiday_overtime_days: int
    holiday_shifts: tuple[HolidayShift, ...]


def holiday_names_by_date(
    public_holidays: Iterable[PublicHoliday],
    default_name: str,
) -> dict[date, str]:
    """First name seen for each holiday date; blank names get the default."""
    names: dict[date, str] = {}
    for holiday in public_holidays:
        if holiday.holiday_date not in names:
            names[holiday.holiday_date] = holiday.name.strip() or default_name
    return names


@traced_engine("holiday_worked", "1.0", fingerprint_fields=("period", "monthly_base_salary"))
def calculate_holiday_worked_bonus(
    *,
    concrete_shifts: Iterable[ConcreteShift],
    virtual_shifts: Iterable[VirtualShift],
    public_holidays: Iterable[PublicHoliday],
    period: MonthPeriod,
    monthly_base_salary: Decimal,
    config: PayrollConfig | None = None,
) -> HolidayWorkedBonus:
    """Bonus for public holidays worked by one staff member in ``period``."""
    config = config or PayrollConfig.with_defaults()
    names = holiday_names_by_date(public_holidays, config.default_holiday_name)

    concrete = [s for s in concrete_shifts if period.contains(s.shift_date)]
    concrete_dates = {s.shift_date for s in concrete}

    worked: dict[date, str] = {}
    for shift in concrete:
        day = shift.shift_date
        if day in names and day not in worked:
            worked[day] = names[day]
    for shift in virtual_shifts:
        day = shift.shift_date
        if day in concrete_dates or not period.contains(day):
            continue
        if day in names and day not in worked:
            worked[day] = names[day]

    holiday_shifts = tuple(
        HolidayShift(shift_date=day, holiday_name=name)
        for day, name in sorted(worked.items())
    )
    days = len(holiday_shifts)
    daily_rate = monthly_base_salary / config.working_days_per_month
    bonus = Decimal(days) * daily_rate * config.holiday_worked_multiplier

    if days:
        logger.debug(
            "holiday_worked_bonus_computed",
            extra={
                "period": period.label,
                "holiday_days": days,
                "bonus": str(bonus),
            },
        )

    return HolidayWorkedBonus(
        holiday_overtime_bonus=bonus,
        holiday_overtime_days=days,
        holiday_shifts=holiday_shifts,
    )

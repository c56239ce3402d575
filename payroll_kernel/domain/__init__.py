"""
Pure domain layer.

Value objects and helpers with NO dependencies on:
- ORM (SQLAlchemy)
- Database
- Time/clock (except the SystemClock boundary)
- I/O
"""

from payroll_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from payroll_kernel.domain.currency import CurrencyInfo, CurrencyRegistry, format_amount
from payroll_kernel.domain.periods import (
    HOLIDAY_YEAR_START_MONTH,
    HolidayYear,
    MonthPeriod,
    days_inclusive,
    parse_iso_date,
    parse_iso_datetime,
    parse_optional_date,
)
from payroll_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "DeterministicClock",
    "SystemClock",
    "CurrencyInfo",
    "CurrencyRegistry",
    "format_amount",
    "HOLIDAY_YEAR_START_MONTH",
    "HolidayYear",
    "MonthPeriod",
    "days_inclusive",
    "parse_iso_date",
    "parse_iso_datetime",
    "parse_optional_date",
    "Guard",
    "Transition",
    "Workflow",
]

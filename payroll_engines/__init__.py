"""
Module: payroll_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    payroll calculators.  This is the import surface for higher layers
    (payroll_modules, payroll_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May import payroll_kernel and the staff_pay data model / config.
    MUST NOT import payroll_services or the staff_pay service layer.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      "As of" dates are passed in by the caller.
    - Decimal-only arithmetic: money and day counts use ``Decimal``.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``payroll_engines.tracer``), emitting PAYROLL_ENGINE_TRACE records.

Usage:
    from payroll_engines import PayrollSnapshot, compute_monthly_payroll
    from payroll_engines.holiday_allowance import calculate_holiday_allowance
"""

from payroll_kernel.logging_config import get_logger

logger = get_logger("engines")

from payroll_engines.aggregator import (
    PayrollMonthSummary,
    PayrollSnapshot,
    StaffPaySummary,
    compute_monthly_payroll,
    compute_staff_month_summary,
    normalize_monthly_salary,
)
from payroll_engines.currency_normalizer import ExchangeRateTable, format_amount, parse_rate
from payroll_engines.holiday_allowance import HolidayAllowance, calculate_holiday_allowance
from payroll_engines.holiday_worked import (
    HolidayShift,
    HolidayWorkedBonus,
    calculate_holiday_worked_bonus,
)
from payroll_engines.overtime import (
    OvertimeAccrual,
    OvertimeRequestDetail,
    prorate_request_days,
    resolve_overtime,
)
from payroll_engines.pattern_expansion import (
    VirtualShift,
    expand_patterns,
    overlapping_pattern_dates,
    scheduled_hours,
)
from payroll_engines.unused_holiday import (
    UnusedHolidayPayout,
    calculate_unused_holiday_payout,
)

__all__ = [
    "ExchangeRateTable",
    "HolidayAllowance",
    "HolidayShift",
    "HolidayWorkedBonus",
    "OvertimeAccrual",
    "OvertimeRequestDetail",
    "PayrollMonthSummary",
    "PayrollSnapshot",
    "StaffPaySummary",
    "UnusedHolidayPayout",
    "VirtualShift",
    "calculate_holiday_allowance",
    "calculate_holiday_worked_bonus",
    "calculate_unused_holiday_payout",
    "compute_monthly_payroll",
    "compute_staff_month_summary",
    "expand_patterns",
    "format_amount",
    "normalize_monthly_salary",
    "overlapping_pattern_dates",
    "parse_rate",
    "prorate_request_days",
    "resolve_overtime",
    "scheduled_hours",
]

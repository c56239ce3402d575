"""
Property-based tests for the payroll calculators.

Boundaries fuzzed here:
- Holiday allowance: accrual stays within [0, annual] for any dates
- Pattern expansion: every virtual shift matches its pattern's weekday
  and validity window, and never lands on a concrete-shift date
- Overtime proration: a request never contributes more days than asked
- Aggregator: total equals the sum of its rounded components, and
  re-running on the same snapshot gives the same answer
- Adjustment write path: calculated + manual + delta hits the override
"""

from datetime import date, timedelta
from decimal import Decimal

import pytest
from hypothesis import HealthCheck, given, settings
from hypothesis import strategies as st

from payroll_engines.aggregator import PayrollSnapshot, compute_monthly_payroll
from payroll_engines.holiday_allowance import calculate_holiday_allowance
from payroll_engines.overtime import prorate_request_days
from payroll_engines.pattern_expansion import expand_patterns, sunday_first_weekday
from payroll_kernel.domain.periods import MonthPeriod
from payroll_modules.staff_pay.models import PayFrequency, PayRecordType
from payroll_modules.staff_pay.reconciliation import reconcile_overtime_override
from tests.factories import (
    make_holiday,
    make_pattern,
    make_profile,
    make_record,
    make_request,
    make_shift,
)

pytestmark = pytest.mark.slow

_SUPPRESSED = [HealthCheck.function_scoped_fixture, HealthCheck.too_slow]

dates = st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31))
months = st.builds(MonthPeriod, st.integers(2022, 2028), st.integers(1, 12))
weekday_sets = st.frozensets(st.integers(0, 6), min_size=1, max_size=7)
amounts = st.decimals(
    min_value=Decimal("-5000"), max_value=Decimal("5000"), places=2,
    allow_nan=False, allow_infinity=False,
)
salaries = st.decimals(
    min_value=Decimal("1"), max_value=Decimal("500000"), places=2,
    allow_nan=False, allow_infinity=False,
)


class TestHolidayAllowanceProperties:

    @given(start=st.one_of(st.none(), dates), as_of=dates)
    @settings(max_examples=300, suppress_health_check=_SUPPRESSED)
    def test_accrual_bounded(self, start, as_of):
        result = calculate_holiday_allowance(start_date=start, as_of=as_of)
        assert Decimal("0") <= result.accrued_allowance <= result.annual_allowance
        assert result.annual_allowance in (Decimal("15"), Decimal("18"))


class TestPatternProperties:

    @given(days=weekday_sets, period=months, start=dates, length=st.integers(0, 400),
           concrete_offsets=st.lists(st.integers(0, 27), max_size=5))
    @settings(max_examples=200, suppress_health_check=_SUPPRESSED)
    def test_virtual_shifts_respect_pattern(self, days, period, start, length, concrete_offsets):
        pattern = make_pattern(set(days), start_date=start, end_date=start + timedelta(days=length))
        concrete = [make_shift(period.first_day + timedelta(days=o)) for o in concrete_offsets]
        concrete_dates = {s.shift_date for s in concrete}

        shifts = expand_patterns([pattern], [], period, concrete_shifts=concrete)

        for shift in shifts:
            assert period.contains(shift.shift_date)
            assert sunday_first_weekday(shift.shift_date) in days
            assert pattern.is_active_on(shift.shift_date)
            assert shift.shift_date not in concrete_dates
        assert len({s.shift_date for s in shifts}) == len(shifts)


class TestOvertimeProperties:

    @given(start=dates, length=st.integers(0, 90), days=st.integers(0, 60), period=months)
    @settings(max_examples=300, suppress_health_check=_SUPPRESSED)
    def test_prorated_days_never_exceed_request(self, start, length, days, period):
        request = make_request(start, start + timedelta(days=length), days)
        prorated = prorate_request_days(request, period)
        assert Decimal("0") <= prorated <= Decimal(days)
        if period.overlap_days(request.start_date, request.end_date) == 0:
            assert prorated == 0

    @given(calculated=amounts, existing=amounts, desired=amounts)
    @settings(suppress_health_check=_SUPPRESSED)
    def test_override_reaches_desired_total(self, calculated, existing, desired):
        delta = reconcile_overtime_override(calculated, existing, desired)
        assert calculated + existing + delta == desired


class TestAggregatorProperties:

    @given(
        salary=salaries,
        frequency=st.sampled_from(list(PayFrequency)),
        bonus=amounts,
        deduction=amounts,
        pattern_days=weekday_sets,
        period=months,
    )
    @settings(max_examples=150, suppress_health_check=_SUPPRESSED)
    def test_total_is_sum_of_components(
        self, salary, frequency, bonus, deduction, pattern_days, period,
    ):
        snapshot = PayrollSnapshot(
            profiles=(make_profile(base_salary=str(salary), pay_frequency=frequency),),
            pay_records=(
                make_record(PayRecordType.BONUS, str(bonus), period.first_day),
                make_record(PayRecordType.DEDUCTION, str(deduction), period.last_day),
            ),
            patterns=(make_pattern(set(pattern_days), start_date=date(2020, 1, 1)),),
            public_holidays=(make_holiday(period.first_day + timedelta(days=9)),),
            requests=(make_request(period.first_day, period.first_day, 1),),
        )

        first = compute_monthly_payroll(snapshot=snapshot, period=period)
        second = compute_monthly_payroll(snapshot=snapshot, period=period)
        assert first == second

        s = first.staff[0]
        assert s.total_pay == (
            s.monthly_base_salary + s.bonuses + s.overtime_pay + s.expenses
            + s.holiday_worked_bonus + s.unused_holiday_payout - s.deductions
        )
        assert s.holiday_worked.holiday_overtime_days <= 1
        assert s.total_pay.as_tuple().exponent == -2

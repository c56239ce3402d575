"""
Tests for the holiday-worked bonus.

2025-06-12 is a Thursday.  Base 2000 over 20 days with the 0.5
multiplier makes each worked holiday worth 50.
"""

from datetime import date
from decimal import Decimal

from payroll_engines.holiday_worked import (
    calculate_holiday_worked_bonus,
    holiday_names_by_date,
)
from payroll_engines.pattern_expansion import expand_patterns
from payroll_kernel.domain.periods import MonthPeriod
from payroll_modules.staff_pay.models import PublicHoliday
from tests.factories import make_holiday, make_pattern, make_shift

JUNE = MonthPeriod(2025, 6)
THURSDAY = 4
HOLIDAY = date(2025, 6, 12)


def _bonus(concrete=(), virtual=(), holidays=(make_holiday(HOLIDAY, "Democracy Day"),)):
    return calculate_holiday_worked_bonus(
        concrete_shifts=concrete,
        virtual_shifts=virtual,
        public_holidays=holidays,
        period=JUNE,
        monthly_base_salary=Decimal("2000"),
    )


class TestHolidayNames:

    def test_first_name_wins(self):
        names = holiday_names_by_date(
            [make_holiday(HOLIDAY, "First"), make_holiday(HOLIDAY, "Second")],
            "Public Holiday",
        )
        assert names == {HOLIDAY: "First"}

    def test_blank_name_gets_default(self):
        names = holiday_names_by_date([PublicHoliday(HOLIDAY, "  ")], "Public Holiday")
        assert names[HOLIDAY] == "Public Holiday"


class TestHolidayWorkedBonus:

    def test_virtual_shift_on_holiday(self):
        virtual = expand_patterns([make_pattern({THURSDAY})], [], JUNE)
        result = _bonus(virtual=virtual)

        assert result.holiday_overtime_days == 1
        assert result.holiday_overtime_bonus == Decimal("50")
        assert result.holiday_shifts[0].shift_date == HOLIDAY
        assert result.holiday_shifts[0].holiday_name == "Democracy Day"

    def test_concrete_shift_on_holiday(self):
        result = _bonus(concrete=[make_shift(HOLIDAY)])
        assert result.holiday_overtime_days == 1

    def test_concrete_and_virtual_same_day_not_double_counted(self):
        virtual = expand_patterns([make_pattern({THURSDAY})], [], JUNE)
        result = _bonus(concrete=[make_shift(HOLIDAY)], virtual=virtual)
        assert result.holiday_overtime_days == 1
        assert result.holiday_overtime_bonus == Decimal("50")

    def test_two_shifts_on_one_holiday_count_once(self):
        result = _bonus(concrete=[
            make_shift(HOLIDAY, start_hour=6, end_hour=10),
            make_shift(HOLIDAY, start_hour=18, end_hour=22),
        ])
        assert result.holiday_overtime_days == 1

    def test_two_holidays(self):
        holidays = (make_holiday(HOLIDAY, "Democracy Day"), make_holiday(date(2025, 6, 5), "Eid"))
        virtual = expand_patterns([make_pattern({THURSDAY})], [], JUNE)
        result = _bonus(virtual=virtual, holidays=holidays)

        assert result.holiday_overtime_days == 2
        assert result.holiday_overtime_bonus == Decimal("100")
        assert [s.shift_date for s in result.holiday_shifts] == [date(2025, 6, 5), HOLIDAY]

    def test_non_holiday_shifts_earn_nothing(self):
        result = _bonus(concrete=[make_shift(date(2025, 6, 13))])
        assert result.holiday_overtime_days == 0
        assert result.holiday_overtime_bonus == Decimal("0")

    def test_shift_outside_month_ignored(self):
        holidays = (make_holiday(date(2025, 7, 1), "July holiday"),)
        result = _bonus(concrete=[make_shift(date(2025, 7, 1))], holidays=holidays)
        assert result.holiday_overtime_days == 0

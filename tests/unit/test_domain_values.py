"""Tests for calendar periods, date parsing, the injectable clock and workflows."""

from datetime import date, datetime

import pytest

from payroll_kernel.domain.clock import DeterministicClock
from payroll_kernel.domain.periods import (
    HolidayYear,
    MonthPeriod,
    days_inclusive,
    parse_iso_date,
    parse_iso_datetime,
    parse_optional_date,
)
from payroll_kernel.domain.workflow import Guard, Transition, Workflow
from payroll_kernel.exceptions import InvalidDateError, InvalidTransitionError


class TestMonthPeriod:

    def test_bounds(self):
        feb = MonthPeriod(2024, 2)
        assert feb.first_day == date(2024, 2, 1)
        assert feb.last_day == date(2024, 2, 29)
        assert len(list(feb.days())) == 29

    def test_december(self):
        assert MonthPeriod(2025, 12).last_day == date(2025, 12, 31)

    def test_invalid_month(self):
        with pytest.raises(InvalidDateError):
            MonthPeriod(2025, 13)

    def test_containing(self):
        assert MonthPeriod.containing("2025-10-14") == MonthPeriod(2025, 10)
        assert MonthPeriod.containing(datetime(2025, 1, 31, 23, 59)) == MonthPeriod(2025, 1)

    def test_label_and_ordering(self):
        assert str(MonthPeriod(2025, 6)) == "2025-06"
        assert MonthPeriod(2024, 12) < MonthPeriod(2025, 1)

    def test_overlap_days(self):
        june = MonthPeriod(2025, 6)
        assert june.overlap_days(date(2025, 5, 25), date(2025, 6, 5)) == 5
        assert june.overlap_days(date(2025, 7, 1), date(2025, 7, 5)) == 0

    def test_overlaps_open_ended(self):
        june = MonthPeriod(2025, 6)
        assert june.overlaps(date(2024, 1, 1), None)
        assert june.overlaps(date(2025, 6, 30), date(2025, 6, 30))
        assert not june.overlaps(date(2025, 7, 1), None)
        assert not june.overlaps(date(2025, 1, 1), date(2025, 5, 31))


class TestDateParsing:

    def test_accepts_date_datetime_and_strings(self):
        assert parse_iso_date(date(2025, 1, 2)) == date(2025, 1, 2)
        assert parse_iso_date(datetime(2025, 1, 2, 8)) == date(2025, 1, 2)
        assert parse_iso_date(" 2025-01-02 ") == date(2025, 1, 2)
        assert parse_iso_date("2025-01-02T08:30:00") == date(2025, 1, 2)

    @pytest.mark.parametrize("raw", [None, "", "02/01/2025", "2025-02-30", 20250102])
    def test_rejects_garbage(self, raw):
        with pytest.raises(InvalidDateError) as exc_info:
            parse_iso_date(raw, "pay_date")
        assert exc_info.value.field_name == "pay_date"

    def test_optional_date(self):
        assert parse_optional_date(None) is None
        assert parse_optional_date("  ") is None
        with pytest.raises(InvalidDateError):
            parse_optional_date("soon")

    def test_datetime_from_bare_date(self):
        assert parse_iso_datetime("2025-01-02") == datetime(2025, 1, 2)

    def test_days_inclusive(self):
        assert days_inclusive(date(2025, 6, 1), date(2025, 6, 1)) == 1
        assert days_inclusive(date(2024, 6, 1), date(2025, 5, 31)) == 365


class TestDeterministicClock:

    def test_fixed_and_advance(self, clock):
        assert clock.today() == date(2025, 6, 15)
        clock.advance(20)
        assert clock.today() == date(2025, 7, 5)

    def test_set_time(self):
        clock = DeterministicClock()
        clock.set_time(datetime(2026, 1, 1))
        assert clock.today() == date(2026, 1, 1)

    def test_current_month(self):
        clock = DeterministicClock.on(date(2025, 12, 31))
        assert clock.current_month() == MonthPeriod(2025, 12)
        clock.advance()
        assert clock.current_month() == MonthPeriod(2026, 1)


class TestHolidayYear:

    def test_containing_before_and_after_june(self):
        assert HolidayYear.containing(date(2025, 5, 31)).start == date(2024, 6, 1)
        assert HolidayYear.containing(date(2025, 6, 1)).start == date(2025, 6, 1)
        assert HolidayYear.containing(date(2025, 6, 1)).end == date(2026, 5, 31)

    def test_ending_in(self):
        window = HolidayYear.ending_in(2025)
        assert (window.start, window.end) == (date(2024, 6, 1), date(2025, 5, 31))
        assert window.contains(date(2025, 2, 28))
        assert not window.contains(date(2025, 6, 1))

    def test_total_days_spans_leap_day(self):
        assert HolidayYear.ending_in(2024).total_days == 365
        assert HolidayYear.ending_in(2025).total_days == 364


class TestWorkflowDefinition:

    def _states(self):
        return ("pending", "ready", "paid")

    def test_unknown_initial_state(self):
        with pytest.raises(ValueError):
            Workflow("w", "", "draft", self._states(), ())

    def test_transition_to_unknown_state(self):
        with pytest.raises(ValueError):
            Workflow("w", "", "pending", self._states(),
                     (Transition("pending", "void", "cancel"),))

    def test_lookup(self):
        flow = Workflow("w", "", "pending", self._states(), (
            Transition("pending", "ready", "approve"),
            Transition("ready", "paid", "pay", posts_entry=True),
        ))
        assert flow.find_transition("ready", "pay").posts_entry
        assert flow.find_transition("paid", "pay") is None
        assert flow.actions_from("pending") == ("approve",)

    def test_duplicate_action_rejected(self):
        with pytest.raises(ValueError):
            Workflow("w", "", "pending", self._states(), (
                Transition("pending", "ready", "approve"),
                Transition("pending", "paid", "approve"),
            ))

    def test_apply_checks_guard(self):
        positive = Guard("positive", "amount above zero", check=lambda n: n > 0)
        flow = Workflow("w", "", "pending", self._states(), (
            Transition("pending", "ready", "approve", guard=positive),
        ))
        assert flow.apply("pending", "approve", subject_id="s-1", subject=5).to_state == "ready"
        with pytest.raises(InvalidTransitionError):
            flow.apply("pending", "approve", subject_id="s-1", subject=0)
        with pytest.raises(InvalidTransitionError):
            flow.apply("ready", "approve", subject_id="s-1", subject=5)

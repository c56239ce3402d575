"""
Tests for the Staff Pay module service.

Validates:
- Month preview over snapshot plus ledger
- Payroll run posts salary records for Ready staff only
- Revert returns a staff member to Pending
- Manual adjustments, overtime overrides and bonuses are re-read on preview
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from payroll_engines.aggregator import PayrollSnapshot
from payroll_kernel.domain.periods import MonthPeriod
from payroll_kernel.exceptions import (
    InvalidAdjustmentError,
    InvalidDateError,
    InvalidTransitionError,
    MissingAdjustmentFieldError,
    StaffNotReadyError,
)
from payroll_modules.staff_pay.models import PayRecordType, PayrollStatus, RecurringBonus
from payroll_modules.staff_pay.reconciliation import OVERTIME_OVERRIDE_DESCRIPTION
from payroll_modules.staff_pay.service import PayrollRunBoard, StaffPayService
from payroll_modules.staff_pay.stores import InMemoryPayRecordStore, PayRecordStore
from tests.factories import make_profile, make_request

OCTOBER = MonthPeriod(2025, 10)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def store() -> InMemoryPayRecordStore:
    return InMemoryPayRecordStore()


@pytest.fixture
def service(store, config, clock) -> StaffPayService:
    return StaffPayService(store, config=config, clock=clock)


@pytest.fixture
def snapshot() -> PayrollSnapshot:
    return PayrollSnapshot(
        profiles=(
            make_profile("staff-1"),
            make_profile("staff-2", base_salary="3000"),
            make_profile("staff-3", base_salary=None),
        ),
        requests=(make_request(date(2025, 10, 6), date(2025, 10, 7), 2),),
    )


# =============================================================================
# Preview
# =============================================================================


class TestPreview:

    def test_store_satisfies_protocol(self, store):
        assert isinstance(store, PayRecordStore)

    def test_preview_accepts_any_date_in_month(self, service, snapshot):
        summary = service.preview_month(snapshot, date(2025, 10, 15))
        assert summary.period == OCTOBER
        assert [s.staff_id for s in summary.staff] == ["staff-1", "staff-2"]
        assert summary.excluded_staff_ids == ("staff-3",)

    def test_preview_accepts_iso_string(self, service, snapshot):
        assert service.preview_month(snapshot, "2025-10-01").period == OCTOBER

    def test_preview_defaults_to_clock_month(self, service, snapshot):
        assert service.preview_month(snapshot).period == MonthPeriod(2025, 6)

    def test_holiday_allowance_uses_clock(self, service):
        allowance = service.holiday_allowance(make_profile(start_date=date(2024, 6, 15)))
        # Clock reads 2025-06-15: exactly 365 days employed
        assert allowance.annual_allowance == Decimal("18")


# =============================================================================
# Run / revert
# =============================================================================


class TestRunPayroll:

    def test_only_ready_staff_paid(self, service, store, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_ready(summary.summary_for("staff-1"))

        posted = service.run_payroll(summary, board)

        assert [r.staff_id for r in posted] == ["staff-1"]
        record = posted[0]
        assert record.record_type is PayRecordType.SALARY
        assert record.amount == Decimal("2000.00")
        assert record.pay_date == date(2025, 10, 31)
        assert record.period_start == date(2025, 10, 1)
        assert record.period_end == date(2025, 10, 31)
        assert record.description == "Salary 2025-10"
        assert store.records_for(OCTOBER) == posted

    def test_paid_after_recompute(self, service, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_ready(summary.summary_for("staff-1"))
        service.run_payroll(summary, board)

        refreshed = service.preview_month(snapshot, OCTOBER)
        assert board.status_of(refreshed.summary_for("staff-1")) is PayrollStatus.PAID
        assert board.status_of(refreshed.summary_for("staff-2")) is PayrollStatus.PENDING
        assert board.ready_staff_ids == frozenset()

    def test_nobody_ready_posts_nothing(self, service, store, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        assert service.run_payroll(summary, PayrollRunBoard(OCTOBER)) == ()
        assert store.records_for(OCTOBER) == ()

    def test_run_for_pending_staff_rejected(self, service, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        with pytest.raises(StaffNotReadyError) as exc_info:
            service.run_payroll_for(summary.summary_for("staff-1"), PayrollRunBoard(OCTOBER))
        assert exc_info.value.state == "pending"

    def test_run_for_single_ready_staff(self, service, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_all_ready(summary)

        record = service.run_payroll_for(
            summary.summary_for("staff-2"), board, pay_date=date(2025, 10, 28),
        )
        assert record.pay_date == date(2025, 10, 28)
        assert board.ready_staff_ids == frozenset({"staff-1"})

    def test_pay_date_outside_month_rejected(self, service, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_all_ready(summary)
        with pytest.raises(InvalidDateError):
            service.run_payroll(summary, board, pay_date=date(2025, 11, 1))

    def test_run_logged(self, service, snapshot, captured_logs):
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_all_ready(summary)
        service.run_payroll(summary, board)

        runs = [r for r in captured_logs() if r["message"] == "payroll_run_completed"]
        assert runs[0]["posted_count"] == 2


class TestRevertPayroll:

    def test_revert_returns_to_pending(self, service, store, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_all_ready(summary)
        service.run_payroll(summary, board)

        paid = service.preview_month(snapshot, OCTOBER)
        assert service.revert_payroll(paid.summary_for("staff-1"), board) == 1

        refreshed = service.preview_month(snapshot, OCTOBER)
        assert board.status_of(refreshed.summary_for("staff-1")) is PayrollStatus.PENDING
        assert board.status_of(refreshed.summary_for("staff-2")) is PayrollStatus.PAID
        assert [r.staff_id for r in store.records_for(OCTOBER)] == ["staff-2"]

    def test_revert_pending_rejected(self, service, snapshot):
        summary = service.preview_month(snapshot, OCTOBER)
        with pytest.raises(InvalidTransitionError) as exc_info:
            service.revert_payroll(summary.summary_for("staff-1"), PayrollRunBoard(OCTOBER))
        assert (exc_info.value.from_state, exc_info.value.action) == ("pending", "revert")

    def test_revert_ready_rejected_and_nothing_removed(self, service, store, snapshot):
        service.record_adjustment(
            staff_id="staff-1", record_type="bonus", amount="100",
            currency="GBP", pay_date=date(2025, 10, 3),
        )
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_ready(summary.summary_for("staff-1"))

        with pytest.raises(InvalidTransitionError) as exc_info:
            service.revert_payroll(summary.summary_for("staff-1"), board)

        assert exc_info.value.from_state == "ready"
        assert board.ready_staff_ids == frozenset({"staff-1"})
        assert len(store.records_for(OCTOBER, "staff-1")) == 1

    def test_revert_keeps_adjustments(self, service, store, snapshot):
        service.record_adjustment(
            staff_id="staff-1", record_type="bonus", amount="100",
            currency="GBP", pay_date=date(2025, 10, 3),
        )
        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_ready(summary.summary_for("staff-1"))
        service.run_payroll(summary, board)

        paid = service.preview_month(snapshot, OCTOBER)
        service.revert_payroll(paid.summary_for("staff-1"), board)
        kinds = [r.record_type for r in store.records_for(OCTOBER, "staff-1")]
        assert kinds == [PayRecordType.BONUS]


# =============================================================================
# Adjustments
# =============================================================================


class TestAdjustments:

    def test_adjustment_changes_next_preview(self, service, snapshot):
        before = service.preview_month(snapshot, OCTOBER).summary_for("staff-1").total_pay
        service.record_adjustment(
            staff_id="staff-1", record_type=PayRecordType.DEDUCTION, amount="45.50",
            currency="GBP", pay_date="2025-10-20", description="Uniform",
        )
        after = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")

        assert after.deductions == Decimal("45.50")
        assert after.total_pay == before - Decimal("45.50")

    def test_zero_adjustment_not_stored(self, service, store):
        result = service.record_adjustment(
            staff_id="staff-1", record_type="expense", amount="0",
            currency="GBP", pay_date=date(2025, 10, 3),
        )
        assert result is None
        assert store.records_for(OCTOBER) == ()

    def test_missing_field_rejected(self, service):
        with pytest.raises(MissingAdjustmentFieldError) as exc_info:
            service.record_adjustment(
                staff_id="staff-1", record_type="bonus", amount="10",
                currency=None, pay_date=date(2025, 10, 3),
            )
        assert exc_info.value.field_name == "currency"

    def test_unknown_kind_rejected(self, service):
        with pytest.raises(InvalidAdjustmentError):
            service.record_adjustment(
                staff_id="staff-1", record_type="tip", amount="10",
                currency="GBP", pay_date=date(2025, 10, 3),
            )

    def test_overtime_override_hits_desired_total(self, service, store, snapshot):
        staff = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")
        # 2 request days * 100 daily * 1.5
        assert staff.overtime.calculated_overtime_pay == Decimal("300")

        record = service.override_overtime(staff, "250")
        assert record.amount == Decimal("-50")
        assert record.description == OVERTIME_OVERRIDE_DESCRIPTION
        assert record.pay_date == date(2025, 10, 1)

        staff = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")
        assert staff.overtime_pay == Decimal("250.00")

        service.override_overtime(staff, Decimal("400"))
        staff = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")
        assert staff.overtime_pay == Decimal("400.00")
        assert staff.overtime.manual_overtime_pay == Decimal("100")

    def test_override_to_current_value_writes_nothing(self, service, store, snapshot):
        staff = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")
        assert service.override_overtime(staff, "300") is None
        assert store.records_for(OCTOBER) == ()

    def test_recurring_bonus_applies_to_later_months(self, service, store, snapshot):
        bonus = service.record_bonus(
            staff_id="staff-2", amount="75", currency="GBP",
            pay_date=date(2025, 10, 1), is_recurring=True, description="Allowance",
        )
        assert isinstance(bonus, RecurringBonus)
        assert store.recurring_bonuses("staff-2") == (bonus,)

        november = service.preview_month(snapshot, MonthPeriod(2025, 11))
        assert november.summary_for("staff-2").recurring_bonuses == Decimal("75.00")
        september = service.preview_month(snapshot, MonthPeriod(2025, 9))
        assert september.summary_for("staff-2").recurring_bonuses == Decimal("0.00")

    def test_one_off_bonus(self, service, store, snapshot):
        record = service.record_bonus(
            staff_id="staff-2", amount="75", currency="GBP",
            pay_date=date(2025, 10, 1), is_recurring=False,
        )
        assert record.record_type is PayRecordType.BONUS
        assert store.recurring_bonuses() == ()
        october = service.preview_month(snapshot, OCTOBER)
        assert october.summary_for("staff-2").one_off_bonuses == Decimal("75.00")

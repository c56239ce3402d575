"""
Staff Pay Module Service (``payroll_modules.staff_pay.service``).

Responsibility
--------------
The command layer around the pure payroll calculators: previews a month,
tracks which staff are Ready, runs payroll (posts ``salary`` records) for
Ready staff only, reverts a run, and writes manual pay adjustments.

Architecture position
---------------------
**Modules layer** -- thin glue.  ``StaffPayService`` delegates every
figure to ``payroll_engines`` and every write to a ``PayRecordStore``.
The computation never mutates state; callers re-run ``preview_month``
after each mutation to see its effect.

Invariants enforced
-------------------
* Status changes follow ``STAFF_PAYROLL_WORKFLOW``; anything else raises
  ``InvalidTransitionError``.
* Only Ready staff are included in a bulk payroll run.
* Zero-amount adjustments are never persisted.

Failure modes
-------------
* ``InvalidTransitionError`` / ``StaffNotReadyError`` for workflow misuse.
* ``InvalidDateError`` for a salary pay date outside the payroll month.
* ``MissingAdjustmentFieldError`` / ``InvalidAdjustmentError`` from the
  adjustment write path.
* Store errors propagate after the store rolls back.

Usage::

    service = StaffPayService(InMemoryPayRecordStore(), clock=clock)
    summary = service.preview_month(snapshot, date(2025, 6, 15))
    board = PayrollRunBoard(summary.period)
    board.mark_ready(summary.summary_for("staff-1"))
    service.run_payroll(summary, board)
    summary = service.preview_month(snapshot, date(2025, 6, 15))
"""

from __future__ import annotations

from dataclasses import replace
from datetime import date
from typing import Any
from uuid import uuid4

from payroll_engines.aggregator import (
    PayrollMonthSummary,
    PayrollSnapshot,
    StaffPaySummary,
    compute_monthly_payroll,
)
from payroll_engines.holiday_allowance import HolidayAllowance, calculate_holiday_allowance
from payroll_kernel.domain.clock import Clock, SystemClock
from payroll_kernel.domain.periods import MonthPeriod
from payroll_kernel.domain.workflow import Transition, Workflow
from payroll_kernel.exceptions import (
    InvalidDateError,
    InvalidTransitionError,
    StaffNotReadyError,
)
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import (
    MonthlyPayRecord,
    PayRecordType,
    PayrollStatus,
    RecurringBonus,
    StaffPayProfile,
)
from payroll_modules.staff_pay.reconciliation import (
    build_adjustment_record,
    build_overtime_override_record,
    plan_bonus_adjustment,
)
from payroll_modules.staff_pay.stores import PayRecordStore
from payroll_modules.staff_pay.workflows import (
    MARK_READY,
    REVERT,
    RUN_PAYROLL,
    STAFF_PAYROLL_WORKFLOW,
    UNMARK_READY,
)

logger = get_logger("modules.staff_pay.service")


class PayrollRunBoard:
    """
    Per-month payroll status board.

    Contract
    --------
    * Paid is derived from the summary (a salary record exists); Ready is
      held on the board; everything else is Pending.
    * Every status change is looked up in the workflow.
    """

    def __init__(self, period: MonthPeriod, workflow: Workflow = STAFF_PAYROLL_WORKFLOW):
        self.period = period
        self._workflow = workflow
        self._ready: set[str] = set()

    @property
    def ready_staff_ids(self) -> frozenset[str]:
        return frozenset(self._ready)

    def status_of(self, summary: StaffPaySummary) -> PayrollStatus:
        if summary.has_salary_record:
            return PayrollStatus.PAID
        if summary.staff_id in self._ready:
            return PayrollStatus.READY
        return PayrollStatus.PENDING

    def transition(self, summary: StaffPaySummary, action: str) -> Transition:
        """Validate ``action`` from the staff member's current status.

        Raises:
            InvalidTransitionError: when the workflow has no such transition,
                or its salary guard fails.
        """
        return self._workflow.apply(
            self.status_of(summary).value, action,
            subject_id=summary.staff_id, subject=summary,
        )

    def mark_ready(self, summary: StaffPaySummary) -> None:
        self.transition(summary, MARK_READY)
        self._ready.add(summary.staff_id)
        logger.info("staff_marked_ready", extra={"staff_id": summary.staff_id})

    def unmark_ready(self, summary: StaffPaySummary) -> None:
        self.transition(summary, UNMARK_READY)
        self._ready.discard(summary.staff_id)
        logger.info("staff_unmarked_ready", extra={"staff_id": summary.staff_id})

    def mark_all_ready(self, month: PayrollMonthSummary) -> tuple[str, ...]:
        """Mark every Pending staff member Ready; returns who changed."""
        changed = []
        for summary in month.staff:
            if self.status_of(summary) is PayrollStatus.PENDING:
                self.mark_ready(summary)
                changed.append(summary.staff_id)
        return tuple(changed)

    def revert(self, summary: StaffPaySummary) -> None:
        """Validate a revert of a Paid staff member back to Pending.

        Raises:
            InvalidTransitionError: unless the summary shows a salary record.
        """
        self.transition(summary, REVERT)

    def settle(self, staff_id: str) -> None:
        """Forget the Ready flag once payroll has been posted."""
        self._ready.discard(staff_id)


class StaffPayService:
    """
    Orchestrates staff payroll commands through engines and the ledger store.

    Guarantees
    ----------
    * Clock is injectable for deterministic testing; engines never read it.
    * Ledger records in the store shadow snapshot records with the same id.
    """

    def __init__(
        self,
        store: PayRecordStore,
        config: PayrollConfig | None = None,
        clock: Clock | None = None,
    ):
        self._store = store
        self._config = config or PayrollConfig.with_defaults()
        self._clock = clock or SystemClock()

    @property
    def config(self) -> PayrollConfig:
        return self._config

    # =========================================================================
    # Queries
    # =========================================================================

    def preview_month(
        self, snapshot: PayrollSnapshot, month: Any = None,
    ) -> PayrollMonthSummary:
        """Compute the month's payroll over the snapshot plus the ledger.

        ``month`` may be a ``MonthPeriod`` or any date in the month; it
        defaults to the clock's current month.
        """
        if month is None:
            period = self._clock.current_month()
        elif isinstance(month, MonthPeriod):
            period = month
        else:
            period = MonthPeriod.containing(month)
        merged = self._with_ledger(snapshot, period)
        with LogContext.bind(payroll_month=period.label):
            return compute_monthly_payroll(
                snapshot=merged, period=period, config=self._config,
            )

    def holiday_allowance(
        self, profile: StaffPayProfile, as_of: date | None = None,
    ) -> HolidayAllowance:
        return calculate_holiday_allowance(
            start_date=profile.start_date,
            as_of=as_of or self._clock.today(),
            config=self._config,
        )

    def _with_ledger(self, snapshot: PayrollSnapshot, period: MonthPeriod) -> PayrollSnapshot:
        ledger = self._store.records_for(period)
        bonuses = self._store.recurring_bonuses()
        if not ledger and not bonuses:
            return snapshot

        record_ids = {r.id for r in ledger}
        bonus_ids = {b.id for b in bonuses}
        return replace(
            snapshot,
            pay_records=tuple(r for r in snapshot.pay_records if r.id not in record_ids) + ledger,
            recurring_bonuses=(
                tuple(b for b in snapshot.recurring_bonuses if b.id not in bonus_ids) + bonuses
            ),
        )

    # =========================================================================
    # Payroll run / revert
    # =========================================================================

    def run_payroll(
        self,
        summary: PayrollMonthSummary,
        board: PayrollRunBoard,
        pay_date: date | None = None,
    ) -> tuple[MonthlyPayRecord, ...]:
        """Post a salary record for every Ready staff member.

        ``pay_date`` defaults to the last day of the month; it must fall
        inside the month so the record marks the staff member Paid.
        """
        pay_date = self._salary_pay_date(summary.period, pay_date)
        posted = []
        for staff in summary.staff:
            if board.status_of(staff) is not PayrollStatus.READY:
                continue
            posted.append(self._post_salary(staff, board, pay_date))

        logger.info(
            "payroll_run_completed",
            extra={
                "period": summary.period.label,
                "posted_count": len(posted),
                "skipped_count": len(summary.staff) - len(posted),
            },
        )
        return tuple(posted)

    def run_payroll_for(
        self,
        staff: StaffPaySummary,
        board: PayrollRunBoard,
        pay_date: date | None = None,
    ) -> MonthlyPayRecord:
        """Post the salary record for one staff member, who must be Ready."""
        status = board.status_of(staff)
        if status is not PayrollStatus.READY:
            raise StaffNotReadyError(staff.staff_id, status.value)
        return self._post_salary(staff, board, self._salary_pay_date(staff.period, pay_date))

    @staticmethod
    def _salary_pay_date(period: MonthPeriod, pay_date: date | None) -> date:
        if pay_date is None:
            return period.last_day
        if not period.contains(pay_date):
            raise InvalidDateError(pay_date, "pay_date")
        return pay_date

    def _post_salary(
        self, staff: StaffPaySummary, board: PayrollRunBoard, pay_date: date,
    ) -> MonthlyPayRecord:
        transition = board.transition(staff, RUN_PAYROLL)
        record = MonthlyPayRecord(
            id=str(uuid4()),
            staff_id=staff.staff_id,
            record_type=PayRecordType.SALARY,
            amount=staff.monthly_base_salary,
            currency=staff.currency,
            pay_date=pay_date,
            period_start=staff.period.first_day,
            period_end=staff.period.last_day,
            description=f"Salary {staff.period.label}",
        )
        if transition.posts_entry:
            self._store.add(record)
        board.settle(staff.staff_id)
        logger.info(
            "salary_record_posted",
            extra={
                "staff_id": staff.staff_id,
                "period": staff.period.label,
                "amount": str(record.amount),
                "currency": record.currency,
            },
        )
        return record

    def revert_payroll(self, staff: StaffPaySummary, board: PayrollRunBoard) -> int:
        """Delete the month's salary records, returning the staff to Pending.

        The board validates the revert before anything is removed.

        Raises:
            InvalidTransitionError: when the staff member is not Paid, or
                the salary record is not held in this service's ledger.
        """
        board.revert(staff)
        staff_id, period = staff.staff_id, staff.period
        salary_records = [
            r for r in self._store.records_for(period, staff_id)
            if r.record_type is PayRecordType.SALARY
        ]
        if not salary_records:
            raise InvalidTransitionError(staff_id, PayrollStatus.PAID.value, REVERT)

        for record in salary_records:
            self._store.remove(record.id)

        logger.info(
            "payroll_reverted",
            extra={
                "staff_id": staff_id,
                "period": period.label,
                "removed_count": len(salary_records),
            },
        )
        return len(salary_records)

    # =========================================================================
    # Manual adjustments
    # =========================================================================

    def record_adjustment(
        self,
        *,
        staff_id: str | None,
        record_type: PayRecordType | str | None,
        amount: Any,
        currency: str | None,
        pay_date: date | str | None,
        description: str = "",
    ) -> MonthlyPayRecord | None:
        """Validate and store a manual bonus/deduction/expense/overtime record."""
        record = build_adjustment_record(
            staff_id=staff_id,
            record_type=record_type,
            amount=amount,
            currency=currency,
            pay_date=pay_date,
            description=description,
        )
        if record is not None:
            self._store.add(record)
        return record

    def override_overtime(
        self,
        staff: StaffPaySummary,
        desired_total: Any,
        pay_date: date | None = None,
    ) -> MonthlyPayRecord | None:
        """Store the delta that makes the month's overtime equal ``desired_total``."""
        record = build_overtime_override_record(
            staff_id=staff.staff_id,
            calculated=staff.overtime.calculated_overtime_pay,
            existing_manual=staff.overtime.manual_overtime_pay,
            desired_total=desired_total,
            currency=staff.currency,
            pay_date=pay_date or staff.period.first_day,
        )
        if record is not None:
            self._store.add(record)
        return record

    def record_bonus(
        self,
        *,
        staff_id: str | None,
        amount: Any,
        currency: str | None,
        pay_date: date | str | None,
        is_recurring: bool,
        description: str = "",
        end_date: date | str | None = None,
    ) -> RecurringBonus | MonthlyPayRecord | None:
        planned = plan_bonus_adjustment(
            staff_id=staff_id,
            amount=amount,
            currency=currency,
            pay_date=pay_date,
            is_recurring=is_recurring,
            description=description,
            end_date=end_date,
        )
        if isinstance(planned, RecurringBonus):
            self._store.add_recurring_bonus(planned)
        elif planned is not None:
            self._store.add(planned)
        return planned


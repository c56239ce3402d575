"""
Payroll Aggregator (``payroll_engines.aggregator``).

Responsibility
--------------
Combine every calculator per staff member for one month into a pay
summary, and roll the summaries up into a month total in the reporting
currency::

    monthly_base = normalize(base_salary, pay_frequency)
    bonuses      = bonus records in month + recurring bonuses covering month
    total_pay    = monthly_base + bonuses + overtime + expenses
                   + holiday-worked bonus + unused-holiday payout
                   - deductions
    total_pay_in_reporting_currency = convert(total_pay, base_currency)

Each money component is rounded half-up to the pay currency's precision
before it is added, so payslip lines always sum to ``total_pay``.

Only staff with a positive base salary are paid; the others are listed
in ``PayrollMonthSummary.excluded_staff_ids``.

Architecture position
---------------------
**Engines layer** -- orchestrator over the pure calculators.  Takes one
immutable ``PayrollSnapshot``; never reads the clock or performs I/O.
Running payroll (posting the salary record) and reverting it belong to
``payroll_modules.staff_pay.service``.

Invariants enforced
-------------------
* Idempotent: equal snapshots, month and config give equal summaries.
* A concrete shift suppresses virtual shifts for the same staff and date
  in every day-based figure.
* Output ordering is by ``staff_id``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any

from payroll_engines.currency_normalizer import ExchangeRateTable
from payroll_engines.holiday_worked import HolidayWorkedBonus, calculate_holiday_worked_bonus
from payroll_engines.overtime import OvertimeAccrual, resolve_overtime
from payroll_engines.pattern_expansion import (
    exception_dates_by_pattern,
    expand_patterns,
    overlapping_pattern_dates,
    scheduled_hours,
)
from payroll_engines.tracer import traced_engine
from payroll_engines.unused_holiday import (
    UnusedHolidayPayout,
    calculate_unused_holiday_payout,
)
from payroll_kernel.domain.currency import CurrencyRegistry
from payroll_kernel.domain.periods import MonthPeriod
from payroll_kernel.logging_config import LogContext, get_logger
from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import (
    ConcreteShift,
    HolidayAbsenceRecord,
    MonthlyPayRecord,
    PatternException,
    PayFrequency,
    PayRecordType,
    PublicHoliday,
    RecurringBonus,
    RecurringShiftPattern,
    StaffPayProfile,
    StaffRequest,
)

logger = get_logger("engines.aggregator")

_ZERO = Decimal("0")


@dataclass(frozen=True)
class PayrollSnapshot:
    """Everything the aggregator reads, fetched up front by the caller."""

    profiles: tuple[StaffPayProfile, ...] = ()
    pay_records: tuple[MonthlyPayRecord, ...] = ()
    patterns: tuple[RecurringShiftPattern, ...] = ()
    pattern_exceptions: tuple[PatternException, ...] = ()
    concrete_shifts: tuple[ConcreteShift, ...] = ()
    absences: tuple[HolidayAbsenceRecord, ...] = ()
    requests: tuple[StaffRequest, ...] = ()
    recurring_bonuses: tuple[RecurringBonus, ...] = ()
    public_holidays: tuple[PublicHoliday, ...] = ()
    # Shipped fallback rates unless the caller supplies fetched ones
    exchange_rates: ExchangeRateTable = field(default_factory=ExchangeRateTable.from_defaults)

    @classmethod
    def from_rows(
        cls,
        *,
        profiles: Iterable[Mapping[str, Any]] = (),
        pay_records: Iterable[Mapping[str, Any]] = (),
        patterns: Iterable[Mapping[str, Any]] = (),
        pattern_exceptions: Iterable[Mapping[str, Any]] = (),
        concrete_shifts: Iterable[Mapping[str, Any]] = (),
        absences: Iterable[Mapping[str, Any]] = (),
        requests: Iterable[Mapping[str, Any]] = (),
        recurring_bonuses: Iterable[Mapping[str, Any]] = (),
        public_holidays: Iterable[Mapping[str, Any]] = (),
        exchange_rates: ExchangeRateTable | None = None,
    ) -> PayrollSnapshot:
        """Build a snapshot from raw store rows.

        Raises:
            InvalidDateError: when a row carries an unparseable date.
        """
        return cls(
            profiles=tuple(StaffPayProfile.from_row(r) for r in profiles),
            pay_records=tuple(MonthlyPayRecord.from_row(r) for r in pay_records),
            patterns=tuple(RecurringShiftPattern.from_row(r) for r in patterns),
            pattern_exceptions=tuple(PatternException.from_row(r) for r in pattern_exceptions),
            concrete_shifts=tuple(ConcreteShift.from_row(r) for r in concrete_shifts),
            absences=tuple(HolidayAbsenceRecord.from_row(r) for r in absences),
            requests=tuple(StaffRequest.from_row(r) for r in requests),
            recurring_bonuses=tuple(RecurringBonus.from_row(r) for r in recurring_bonuses),
            public_holidays=tuple(PublicHoliday.from_row(r) for r in public_holidays),
            exchange_rates=exchange_rates or ExchangeRateTable.from_defaults(),
        )

    def profile_for(self, staff_id: str) -> StaffPayProfile | None:
        for profile in self.profiles:
            if profile.staff_id == staff_id:
                return profile
        return None


@dataclass(frozen=True)
class StaffPaySummary:
    """One staff member's pay for one month."""

    staff_id: str
    period: MonthPeriod
    currency: str
    pay_frequency: PayFrequency
    monthly_base_salary: Decimal
    daily_rate: Decimal
    one_off_bonuses: Decimal
    recurring_bonuses: Decimal
    bonuses: Decimal
    overtime: OvertimeAccrual
    overtime_pay: Decimal
    expenses: Decimal
    deductions: Decimal
    holiday_worked: HolidayWorkedBonus
    holiday_worked_bonus: Decimal
    unused_holiday: UnusedHolidayPayout
    unused_holiday_payout: Decimal
    scheduled_hours: Decimal
    overlapping_pattern_dates: tuple[date, ...]
    total_pay: Decimal
    total_pay_in_reporting_currency: Decimal
    has_salary_record: bool


@dataclass(frozen=True)
class PayrollMonthSummary:
    """All paid staff for one month plus the reporting-currency total."""

    period: MonthPeriod
    reporting_currency: str
    staff: tuple[StaffPaySummary, ...]
    total_in_reporting_currency: Decimal
    excluded_staff_ids: tuple[str, ...] = ()

    def summary_for(self, staff_id: str) -> StaffPaySummary | None:
        for summary in self.staff:
            if summary.staff_id == staff_id:
                return summary
        return None


def normalize_monthly_salary(
    base_salary: Decimal,
    frequency: PayFrequency,
    config: PayrollConfig | None = None,
) -> Decimal:
    """Per-calendar-month equivalent of a salary figure."""
    config = config or PayrollConfig.with_defaults()
    if frequency is PayFrequency.ANNUALLY:
        return base_salary / config.months_per_year
    if frequency is PayFrequency.WEEKLY:
        return base_salary * config.weekly_to_monthly_factor
    if frequency is PayFrequency.BIWEEKLY:
        return base_salary * config.biweekly_to_monthly_factor
    return base_salary


def _sum_records(
    records: Iterable[MonthlyPayRecord], record_type: PayRecordType,
) -> Decimal:
    return sum((r.amount for r in records if r.record_type is record_type), _ZERO)


def compute_staff_month_summary(
    profile: StaffPayProfile,
    snapshot: PayrollSnapshot,
    period: MonthPeriod,
    config: PayrollConfig | None = None,
) -> StaffPaySummary:
    """Compute one staff member's pay for ``period``.

    The profile does not need a salary; ``compute_monthly_payroll`` is
    what excludes unsalaried staff.
    """
    config = config or PayrollConfig.with_defaults()
    staff_id = profile.staff_id
    currency = profile.base_currency

    def money(amount: Decimal) -> Decimal:
        return CurrencyRegistry.quantize(amount, currency)

    monthly_base = normalize_monthly_salary(
        profile.base_salary or _ZERO, profile.pay_frequency, config,
    )

    records = [
        r for r in snapshot.pay_records
        if r.staff_id == staff_id and period.contains(r.pay_date)
    ]
    patterns = [p for p in snapshot.patterns if p.staff_id == staff_id]
    pattern_ids = {p.id for p in patterns}
    exceptions = [e for e in snapshot.pattern_exceptions if e.pattern_id in pattern_ids]
    staff_shifts = [s for s in snapshot.concrete_shifts if s.staff_id == staff_id]
    month_shifts = [s for s in staff_shifts if period.contains(s.shift_date)]

    one_off = _sum_records(records, PayRecordType.BONUS)
    recurring = sum(
        (
            b.amount
            for b in snapshot.recurring_bonuses
            if b.staff_id == staff_id and period.overlaps(b.start_date, b.end_date)
        ),
        _ZERO,
    )

    overtime = resolve_overtime(
        requests=[r for r in snapshot.requests if r.staff_id == staff_id],
        overtime_patterns=[p for p in patterns if p.is_overtime],
        exceptions=exceptions,
        manual_records=records,
        period=period,
        monthly_base_salary=monthly_base,
        concrete_shifts=staff_shifts,
        config=config,
    )

    virtual = expand_patterns(
        patterns,
        exception_dates_by_pattern(exceptions),
        period,
        concrete_shifts=staff_shifts,
    )

    holiday_worked = calculate_holiday_worked_bonus(
        concrete_shifts=month_shifts,
        virtual_shifts=virtual,
        public_holidays=snapshot.public_holidays,
        period=period,
        monthly_base_salary=monthly_base,
        config=config,
    )

    unused = calculate_unused_holiday_payout(
        period=period,
        start_date=profile.start_date,
        absences=[a for a in snapshot.absences if a.staff_id == staff_id],
        monthly_base_salary=monthly_base,
        config=config,
    )

    base_amount = money(monthly_base)
    one_off_amount = money(one_off)
    recurring_amount = money(recurring)
    bonuses = one_off_amount + recurring_amount
    overtime_pay = money(overtime.overtime_pay)
    expenses = money(_sum_records(records, PayRecordType.EXPENSE))
    deductions = money(_sum_records(records, PayRecordType.DEDUCTION))
    holiday_bonus = money(holiday_worked.holiday_overtime_bonus)
    unused_payout = money(unused.payout)

    total = (
        base_amount + bonuses + overtime_pay + expenses
        + holiday_bonus + unused_payout - deductions
    )
    total_reporting = CurrencyRegistry.quantize(
        snapshot.exchange_rates.convert(total, currency),
        snapshot.exchange_rates.reporting_currency,
    )

    return StaffPaySummary(
        staff_id=staff_id,
        period=period,
        currency=currency,
        pay_frequency=profile.pay_frequency,
        monthly_base_salary=base_amount,
        daily_rate=money(monthly_base / config.working_days_per_month),
        one_off_bonuses=one_off_amount,
        recurring_bonuses=recurring_amount,
        bonuses=bonuses,
        overtime=overtime,
        overtime_pay=overtime_pay,
        expenses=expenses,
        deductions=deductions,
        holiday_worked=holiday_worked,
        holiday_worked_bonus=holiday_bonus,
        unused_holiday=unused,
        unused_holiday_payout=unused_payout,
        scheduled_hours=scheduled_hours(month_shifts, virtual),
        overlapping_pattern_dates=overlapping_pattern_dates(virtual),
        total_pay=total,
        total_pay_in_reporting_currency=total_reporting,
        has_salary_record=any(r.record_type is PayRecordType.SALARY for r in records),
    )


@traced_engine("payroll_aggregator", "1.0", fingerprint_fields=("period",))
def compute_monthly_payroll(
    snapshot: PayrollSnapshot,
    period: MonthPeriod,
    config: PayrollConfig | None = None,
) -> PayrollMonthSummary:
    """Summaries for every salaried staff member, sorted by ``staff_id``."""
    config = config or PayrollConfig.with_defaults()

    summaries: list[StaffPaySummary] = []
    excluded: list[str] = []
    for profile in sorted(snapshot.profiles, key=lambda p: p.staff_id):
        if not profile.has_salary:
            excluded.append(profile.staff_id)
            continue
        with LogContext.bind(staff_id=profile.staff_id, payroll_month=period.label):
            summaries.append(
                compute_staff_month_summary(profile, snapshot, period, config)
            )
            for day in summaries[-1].overlapping_pattern_dates:
                logger.warning(
                    "overlapping_pattern_shifts",
                    extra={"shift_date": day.isoformat()},
                )

    reporting_currency = snapshot.exchange_rates.reporting_currency
    total = sum((s.total_pay_in_reporting_currency for s in summaries), _ZERO)

    logger.info(
        "payroll_month_computed",
        extra={
            "period": period.label,
            "staff_count": len(summaries),
            "excluded_count": len(excluded),
            "total_in_reporting_currency": str(total),
            "reporting_currency": reporting_currency,
        },
    )

    return PayrollMonthSummary(
        period=period,
        reporting_currency=reporting_currency,
        staff=tuple(summaries),
        total_in_reporting_currency=total,
        excluded_staff_ids=tuple(excluded),
    )

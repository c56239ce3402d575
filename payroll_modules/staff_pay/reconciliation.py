"""
Pay Adjustment Reconciliation (``payroll_modules.staff_pay.reconciliation``).

Responsibility
--------------
The write path for manual edits made on top of the calculated payroll:

* An overtime *override* is stored as a delta record, so that
  ``calculated + existing manual + delta`` equals the figure the user
  typed.  The calculators stay untouched; they simply sum the new manual
  record next time they run.
* A bonus edit becomes either a ``RecurringBonus`` (repeats every month
  until its window closes) or a one-off ``bonus`` pay record.
* Zero-amount adjustments produce no record at all.

Architecture position
---------------------
**Modules layer** -- pure planning functions; persistence is done by
``StaffPayService`` through its ``PayRecordStore``.

Failure modes
-------------
* ``MissingAdjustmentFieldError`` when staff, kind, amount, currency or
  date are absent (or the amount is not a number).
* ``InvalidAdjustmentError`` when the record kind is unknown.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any
from uuid import uuid4

from payroll_kernel.domain.currency import CurrencyRegistry
from payroll_kernel.domain.periods import MonthPeriod, parse_optional_date
from payroll_kernel.exceptions import InvalidAdjustmentError, MissingAdjustmentFieldError
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.models import (
    MonthlyPayRecord,
    PayRecordType,
    RecurringBonus,
    coerce_decimal,
)

logger = get_logger("modules.staff_pay.reconciliation")

OVERTIME_OVERRIDE_DESCRIPTION = "Overtime override adjustment"


def reconcile_overtime_override(
    calculated: Decimal,
    existing_manual: Decimal,
    desired_total: Decimal,
) -> Decimal:
    """Delta to store so the overtime total becomes ``desired_total``."""
    return desired_total - calculated - existing_manual


def _require(value: Any, field_name: str) -> Any:
    if value is None or (isinstance(value, str) and not value.strip()):
        raise MissingAdjustmentFieldError(field_name)
    return value


def _parse_amount(raw: Any) -> Decimal:
    amount = coerce_decimal(_require(raw, "amount"))
    if amount is None:
        raise MissingAdjustmentFieldError("amount")
    return amount


def _parse_record_type(raw: Any) -> PayRecordType:
    if isinstance(raw, PayRecordType):
        return raw
    try:
        return PayRecordType(str(_require(raw, "record_type")).strip().lower())
    except ValueError:
        raise InvalidAdjustmentError("record_type", raw) from None


def _parse_pay_date(raw: Any) -> date:
    pay_date = parse_optional_date(_require(raw, "pay_date"), "pay_date")
    if pay_date is None:
        raise MissingAdjustmentFieldError("pay_date")
    return pay_date


def build_adjustment_record(
    *,
    staff_id: str | None,
    record_type: PayRecordType | str | None,
    amount: Any,
    currency: str | None,
    pay_date: date | str | None,
    description: str = "",
    record_id: str | None = None,
) -> MonthlyPayRecord | None:
    """Validate a manual adjustment and turn it into a ledger record.

    Returns:
        The record to store, or None when the amount is zero.
    """
    staff_id = str(_require(staff_id, "staff_id"))
    kind = _parse_record_type(record_type)
    value = _parse_amount(amount)
    code = CurrencyRegistry.normalize(_require(currency, "currency"))
    day = _parse_pay_date(pay_date)

    if value == 0:
        logger.info(
            "zero_adjustment_skipped",
            extra={"staff_id": staff_id, "record_type": kind.value},
        )
        return None

    month = MonthPeriod.containing(day)
    return MonthlyPayRecord(
        id=record_id or str(uuid4()),
        staff_id=staff_id,
        record_type=kind,
        amount=value,
        currency=code,
        pay_date=day,
        period_start=month.first_day,
        period_end=month.last_day,
        description=description,
    )


def build_overtime_override_record(
    *,
    staff_id: str,
    calculated: Decimal,
    existing_manual: Decimal,
    desired_total: Any,
    currency: str,
    pay_date: date | str,
) -> MonthlyPayRecord | None:
    """Overtime record that moves the month's overtime to ``desired_total``."""
    desired = _parse_amount(desired_total)
    delta = reconcile_overtime_override(calculated, existing_manual, desired)
    logger.info(
        "overtime_override_reconciled",
        extra={
            "staff_id": staff_id,
            "calculated": str(calculated),
            "existing_manual": str(existing_manual),
            "desired_total": str(desired),
            "delta": str(delta),
        },
    )
    return build_adjustment_record(
        staff_id=staff_id,
        record_type=PayRecordType.OVERTIME,
        amount=delta,
        currency=currency,
        pay_date=pay_date,
        description=OVERTIME_OVERRIDE_DESCRIPTION,
    )


def plan_bonus_adjustment(
    *,
    staff_id: str | None,
    amount: Any,
    currency: str | None,
    pay_date: date | str | None,
    is_recurring: bool,
    description: str = "",
    end_date: date | str | None = None,
    record_id: str | None = None,
) -> RecurringBonus | MonthlyPayRecord | None:
    """A recurring bonus or a one-off bonus record; None for zero."""
    if not is_recurring:
        return build_adjustment_record(
            staff_id=staff_id,
            record_type=PayRecordType.BONUS,
            amount=amount,
            currency=currency,
            pay_date=pay_date,
            description=description,
            record_id=record_id,
        )

    staff_id = str(_require(staff_id, "staff_id"))
    value = _parse_amount(amount)
    code = CurrencyRegistry.normalize(_require(currency, "currency"))
    start = _parse_pay_date(pay_date)
    if value == 0:
        logger.info("zero_recurring_bonus_skipped", extra={"staff_id": staff_id})
        return None

    return RecurringBonus(
        id=record_id or str(uuid4()),
        staff_id=staff_id,
        amount=value,
        currency=code,
        start_date=start,
        end_date=parse_optional_date(end_date, "end_date"),
        description=description,
    )

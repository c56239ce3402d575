"""
Staff Pay Domain Models (``payroll_modules.staff_pay.models``).

Responsibility
--------------
Frozen dataclass value objects for the nouns of staff payroll: pay
profiles, ledger pay records, recurring shift patterns and their
exceptions, concrete shifts, holiday/absence records, staff requests,
recurring bonuses and public holidays.

Each record offers ``from_row`` to build it from an already-fetched
mapping (the shape the HR store returns).  Row parsing is strict about
structure (unparseable dates raise ``InvalidDateError``) and lenient
about optional data (a malformed requested-day count becomes zero).

Architecture position
---------------------
**Modules layer** -- pure data definitions with ZERO I/O.  Consumed by
the engines and the ``StaffPayService`` command layer.

Invariants enforced
-------------------
* All models are ``frozen=True`` (immutable after construction).
* All monetary fields and day counts use ``Decimal`` -- NEVER ``float``.
* Weekday numbers run 0 (Sunday) to 6 (Saturday).
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, TypeVar

from payroll_kernel.domain.currency import CurrencyRegistry
from payroll_kernel.domain.periods import (
    parse_iso_date,
    parse_iso_datetime,
    parse_optional_date,
)
from payroll_kernel.exceptions import (
    InvalidDateError,
    InvalidPayFrequencyError,
    InvalidRecordValueError,
)
from payroll_kernel.logging_config import get_logger

logger = get_logger("modules.staff_pay.models")


def coerce_decimal(value: Any) -> Decimal | None:
    """Decimal from int/str/float/Decimal; None when absent or malformed."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _parse_time(value: Any, field_name: str) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str) and value.strip():
        try:
            return time.fromisoformat(value.strip())
        except ValueError:
            pass
    raise InvalidDateError(value, field_name)


E = TypeVar("E", bound=Enum)


def _parse_enum(enum_cls: type[E], raw: Any, field_name: str, default: E | None = None) -> E:
    """Enum member from its stored value; blank means ``default``.

    Raises:
        InvalidRecordValueError: for a value outside the enum, or a blank
            value with no default.
    """
    if isinstance(raw, enum_cls):
        return raw
    if (raw is None or (isinstance(raw, str) and not raw.strip())) and default is not None:
        return default
    try:
        return enum_cls(str(raw).strip().lower())
    except ValueError:
        raise InvalidRecordValueError(field_name, raw) from None


class PayFrequency(Enum):
    """How a staff member's base salary figure is expressed."""
    MONTHLY = "monthly"
    ANNUALLY = "annually"
    WEEKLY = "weekly"
    BIWEEKLY = "bi-weekly"

    @classmethod
    def parse(cls, value: Any) -> PayFrequency:
        if isinstance(value, cls):
            return value
        if value is None or value == "":
            return cls.MONTHLY
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise InvalidPayFrequencyError(value) from None


class PayRecordType(Enum):
    """Kinds of ledger entry."""
    SALARY = "salary"
    BONUS = "bonus"
    OVERTIME = "overtime"
    EXPENSE = "expense"
    DEDUCTION = "deduction"

    @property
    def is_positive(self) -> bool:
        return self is not PayRecordType.DEDUCTION


class AbsenceType(Enum):
    """Absence categories."""
    HOLIDAY = "holiday"
    SICK = "sick"
    PERSONAL = "personal"
    MATERNITY = "maternity"
    PATERNITY = "paternity"
    UNPAID = "unpaid"
    UNPAID_LEAVE = "unpaid_leave"
    OTHER = "other"


class ApprovalStatus(Enum):
    """Approval lifecycle shared by absences and requests."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class RequestType(Enum):
    """Staff request kinds."""
    OVERTIME = "overtime"
    OVERTIME_STANDARD = "overtime_standard"
    OVERTIME_DOUBLE_UP = "overtime_double_up"
    HOLIDAY = "holiday"
    HOLIDAY_PAID = "holiday_paid"
    HOLIDAY_UNPAID = "holiday_unpaid"
    SHIFT_SWAP = "shift_swap"


class PayrollStatus(Enum):
    """Per staff, per month payroll state."""
    PENDING = "pending"
    READY = "ready"
    PAID = "paid"


def _profile_frequency(row: Mapping[str, Any]) -> PayFrequency:
    # Free text in HR; an unrecognised value is an already-monthly figure
    raw = row.get("pay_frequency")
    try:
        return PayFrequency.parse(raw)
    except InvalidPayFrequencyError:
        logger.warning(
            "unknown_pay_frequency_treated_as_monthly",
            extra={
                "staff_id": str(row.get("user_id", row.get("staff_id"))),
                "pay_frequency": str(raw),
            },
        )
        return PayFrequency.MONTHLY


@dataclass(frozen=True)
class StaffPayProfile:
    """HR pay settings for one staff member (read-only to the engine)."""
    staff_id: str
    base_currency: str
    base_salary: Decimal | None
    pay_frequency: PayFrequency = PayFrequency.MONTHLY
    start_date: date | None = None
    display_name: str = ""

    @property
    def has_salary(self) -> bool:
        return self.base_salary is not None and self.base_salary > 0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> StaffPayProfile:
        return cls(
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            base_currency=CurrencyRegistry.normalize(row.get("base_currency") or "GBP"),
            base_salary=coerce_decimal(row.get("base_salary")),
            pay_frequency=_profile_frequency(row),
            start_date=parse_optional_date(row.get("start_date"), "start_date"),
            display_name=str(row.get("display_name") or ""),
        )


@dataclass(frozen=True)
class MonthlyPayRecord:
    """An append-only ledger entry."""
    id: str
    staff_id: str
    record_type: PayRecordType
    amount: Decimal
    currency: str
    pay_date: date
    period_start: date | None = None
    period_end: date | None = None
    description: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> MonthlyPayRecord:
        return cls(
            id=str(row["id"]),
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            record_type=_parse_enum(PayRecordType, row.get("record_type"), "record_type"),
            amount=coerce_decimal(row.get("amount")) or Decimal("0"),
            currency=CurrencyRegistry.normalize(row.get("currency") or "GBP"),
            pay_date=parse_iso_date(row.get("pay_date"), "pay_date"),
            period_start=parse_optional_date(row.get("period_start"), "period_start"),
            period_end=parse_optional_date(row.get("period_end"), "period_end"),
            description=str(row.get("description") or ""),
        )


@dataclass(frozen=True)
class RecurringShiftPattern:
    """A weekly recurrence rule that generates virtual shifts."""
    id: str
    staff_id: str
    days_of_week: frozenset[int]
    start_time: time
    end_time: time
    start_date: date
    end_date: date | None = None
    is_overtime: bool = False
    hourly_rate: Decimal | None = None
    currency: str = "GBP"
    client_name: str = ""

    def __post_init__(self):
        bad = [d for d in self.days_of_week if not 0 <= d <= 6]
        if bad:
            raise ValueError(f"days_of_week must be 0-6 (0 = Sunday), got {sorted(bad)}")

    def is_active_on(self, day: date) -> bool:
        """Inside the validity window (end date None = indefinite)."""
        if day < self.start_date:
            return False
        return self.end_date is None or day <= self.end_date

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> RecurringShiftPattern:
        return cls(
            id=str(row["id"]),
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            days_of_week=frozenset(int(d) for d in row.get("days_of_week") or ()),
            start_time=_parse_time(row.get("start_time"), "start_time"),
            end_time=_parse_time(row.get("end_time"), "end_time"),
            start_date=parse_iso_date(row.get("start_date"), "start_date"),
            end_date=parse_optional_date(row.get("end_date"), "end_date"),
            is_overtime=bool(row.get("is_overtime", False)),
            hourly_rate=coerce_decimal(row.get("hourly_rate")),
            currency=CurrencyRegistry.normalize(row.get("currency") or "GBP"),
            client_name=str(row.get("client_name") or ""),
        )


@dataclass(frozen=True)
class PatternException:
    """Suppresses one pattern occurrence on one date."""
    pattern_id: str
    exception_date: date
    exception_type: str = "holiday"

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PatternException:
        return cls(
            pattern_id=str(row["pattern_id"]),
            exception_date=parse_iso_date(row.get("exception_date"), "exception_date"),
            exception_type=str(row.get("exception_type") or "holiday"),
        )


@dataclass(frozen=True)
class ConcreteShift:
    """A stored shift; wins over any virtual shift on the same date."""
    id: str
    staff_id: str
    start_at: datetime
    end_at: datetime
    hourly_rate: Decimal | None = None
    currency: str = "GBP"

    @property
    def shift_date(self) -> date:
        return self.start_at.date()

    @property
    def hours(self) -> Decimal:
        seconds = int((self.end_at - self.start_at).total_seconds())
        return Decimal(max(seconds, 0)) / Decimal(3600)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ConcreteShift:
        return cls(
            id=str(row["id"]),
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            start_at=parse_iso_datetime(row.get("start_datetime"), "start_datetime"),
            end_at=parse_iso_datetime(row.get("end_datetime"), "end_datetime"),
            hourly_rate=coerce_decimal(row.get("hourly_rate")),
            currency=CurrencyRegistry.normalize(row.get("currency") or "GBP"),
        )


@dataclass(frozen=True)
class HolidayAbsenceRecord:
    """A recorded absence; ``days_taken`` allows half days."""
    id: str
    staff_id: str
    absence_type: AbsenceType
    start_date: date
    end_date: date
    days_taken: Decimal
    status: ApprovalStatus

    @property
    def counts_as_holiday_taken(self) -> bool:
        return (
            self.status is ApprovalStatus.APPROVED
            and self.absence_type is AbsenceType.HOLIDAY
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> HolidayAbsenceRecord:
        start = parse_iso_date(row.get("start_date"), "start_date")
        return cls(
            id=str(row["id"]),
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            absence_type=_parse_enum(
                AbsenceType, row.get("absence_type"), "absence_type", AbsenceType.OTHER,
            ),
            start_date=start,
            end_date=parse_optional_date(row.get("end_date"), "end_date") or start,
            days_taken=coerce_decimal(row.get("days_taken")) or Decimal("0"),
            status=_parse_enum(ApprovalStatus, row.get("status"), "status", ApprovalStatus.PENDING),
        )


@dataclass(frozen=True)
class StaffRequest:
    """An overtime, holiday or shift-swap request.

    ``days_requested`` is kept raw; the overtime resolver treats anything
    that is not a positive number as zero.
    """
    id: str
    staff_id: str
    request_type: RequestType
    start_date: date
    end_date: date
    days_requested: Any
    status: ApprovalStatus
    linked_holiday_id: str | None = None
    is_overtime: bool = False
    overtime_type: str | None = None

    @property
    def is_approved(self) -> bool:
        return self.status is ApprovalStatus.APPROVED

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> StaffRequest:
        start = parse_iso_date(row.get("start_date"), "start_date")
        linked = row.get("linked_holiday_id")
        return cls(
            id=str(row["id"]),
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            request_type=_parse_enum(RequestType, row.get("request_type"), "request_type"),
            start_date=start,
            end_date=parse_optional_date(row.get("end_date"), "end_date") or start,
            days_requested=row.get("days_requested"),
            status=_parse_enum(ApprovalStatus, row.get("status"), "status", ApprovalStatus.PENDING),
            linked_holiday_id=str(linked) if linked else None,
            is_overtime=bool(row.get("is_overtime", False)),
            overtime_type=row.get("overtime_type"),
        )


@dataclass(frozen=True)
class RecurringBonus:
    """A monthly bonus that repeats for as long as its window is open."""
    id: str
    staff_id: str
    amount: Decimal
    currency: str
    start_date: date
    end_date: date | None = None
    description: str = ""

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> RecurringBonus:
        return cls(
            id=str(row["id"]),
            staff_id=str(row["user_id"] if "user_id" in row else row["staff_id"]),
            amount=coerce_decimal(row.get("amount")) or Decimal("0"),
            currency=CurrencyRegistry.normalize(row.get("currency") or "GBP"),
            start_date=parse_iso_date(row.get("start_date"), "start_date"),
            end_date=parse_optional_date(row.get("end_date"), "end_date"),
            description=str(row.get("description") or ""),
        )


@dataclass(frozen=True)
class PublicHoliday:
    """A public holiday; estimated dates come from lunar calendars."""
    holiday_date: date
    name: str
    is_estimated: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> PublicHoliday:
        return cls(
            holiday_date=parse_iso_date(row.get("date"), "date"),
            name=str(row.get("name") or ""),
            is_estimated=bool(row.get("isEstimated", row.get("is_estimated", False))),
        )

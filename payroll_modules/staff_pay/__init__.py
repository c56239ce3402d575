"""
Staff Pay Module (``payroll_modules.staff_pay``).

Responsibility
--------------
Monthly staff pay: the data model the calculators read, the payroll
configuration, the Pending -> Ready -> Paid workflow, and (in
``service``) the command layer that runs and reverts payroll.

Architecture position
---------------------
**Modules layer** -- the engines import ``models`` and ``config`` from
here, so this package init deliberately stops short of ``service``,
``stores`` and ``orm``; import those directly.

Failure modes
-------------
* ``InvalidDateError`` when a store row carries an unparseable date.
* ``InvalidRecordValueError`` when a record type, absence type, status or
  request type is outside its fixed set.  An unknown pay frequency on a
  profile row is logged and treated as monthly; ``PayFrequency.parse``
  itself raises ``InvalidPayFrequencyError``.
"""

from payroll_modules.staff_pay.config import PayrollConfig
from payroll_modules.staff_pay.models import (
    AbsenceType,
    ApprovalStatus,
    ConcreteShift,
    HolidayAbsenceRecord,
    MonthlyPayRecord,
    PatternException,
    PayFrequency,
    PayrollStatus,
    PayRecordType,
    PublicHoliday,
    RecurringBonus,
    RecurringShiftPattern,
    RequestType,
    StaffPayProfile,
    StaffRequest,
)
from payroll_modules.staff_pay.workflows import STAFF_PAYROLL_WORKFLOW

__all__ = [
    "AbsenceType",
    "ApprovalStatus",
    "ConcreteShift",
    "HolidayAbsenceRecord",
    "MonthlyPayRecord",
    "PatternException",
    "PayFrequency",
    "PayrollStatus",
    "PayRecordType",
    "PublicHoliday",
    "RecurringBonus",
    "RecurringShiftPattern",
    "RequestType",
    "StaffPayProfile",
    "StaffRequest",
    "STAFF_PAYROLL_WORKFLOW",
    "PayrollConfig",
]

"""
Pay-record ledger stores (``payroll_modules.staff_pay.stores``).

Responsibility
--------------
Where posted salary records and manual adjustments live.  The command
layer talks to the ``PayRecordStore`` protocol; two implementations ship:

* ``InMemoryPayRecordStore`` -- dict-backed, for previews and tests.
* ``SqlPayRecordStore`` -- SQLAlchemy session over ``PayRecordModel`` and
  ``RecurringBonusModel``.

Failure modes
-------------
* SQL errors roll the session back and propagate.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from sqlalchemy import select
from sqlalchemy.orm import Session

from payroll_kernel.domain.periods import MonthPeriod
from payroll_kernel.logging_config import get_logger
from payroll_modules.staff_pay.models import MonthlyPayRecord, RecurringBonus
from payroll_modules.staff_pay.orm import PayRecordModel, RecurringBonusModel

logger = get_logger("modules.staff_pay.stores")


@runtime_checkable
class PayRecordStore(Protocol):
    """Append/remove access to the pay-record ledger."""

    def add(self, record: MonthlyPayRecord) -> None: ...

    def remove(self, record_id: str) -> bool: ...

    def records_for(
        self, period: MonthPeriod, staff_id: str | None = None,
    ) -> tuple[MonthlyPayRecord, ...]: ...

    def add_recurring_bonus(self, bonus: RecurringBonus) -> None: ...

    def recurring_bonuses(self, staff_id: str | None = None) -> tuple[RecurringBonus, ...]: ...


class InMemoryPayRecordStore:
    """Dict-backed ledger; insertion order is preserved."""

    def __init__(
        self,
        records: tuple[MonthlyPayRecord, ...] | list[MonthlyPayRecord] = (),
        bonuses: tuple[RecurringBonus, ...] | list[RecurringBonus] = (),
    ):
        self._records: dict[str, MonthlyPayRecord] = {r.id: r for r in records}
        self._bonuses: dict[str, RecurringBonus] = {b.id: b for b in bonuses}

    def add(self, record: MonthlyPayRecord) -> None:
        self._records[record.id] = record

    def remove(self, record_id: str) -> bool:
        return self._records.pop(record_id, None) is not None

    def records_for(
        self, period: MonthPeriod, staff_id: str | None = None,
    ) -> tuple[MonthlyPayRecord, ...]:
        return tuple(
            r for r in self._records.values()
            if period.contains(r.pay_date) and (staff_id is None or r.staff_id == staff_id)
        )

    def add_recurring_bonus(self, bonus: RecurringBonus) -> None:
        self._bonuses[bonus.id] = bonus

    def recurring_bonuses(self, staff_id: str | None = None) -> tuple[RecurringBonus, ...]:
        return tuple(
            b for b in self._bonuses.values()
            if staff_id is None or b.staff_id == staff_id
        )


class SqlPayRecordStore:
    """
    Ledger persisted through SQLAlchemy.

    Transaction boundary: each mutating call commits on success and rolls
    back on failure.
    """

    def __init__(self, session: Session, actor_id: str | None = None):
        self._session = session
        self._actor_id = actor_id

    def add(self, record: MonthlyPayRecord) -> None:
        try:
            self._session.add(PayRecordModel.from_dto(record, created_by=self._actor_id))
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info(
            "pay_record_persisted",
            extra={
                "record_id": record.id,
                "staff_id": record.staff_id,
                "record_type": record.record_type.value,
                "amount": str(record.amount),
            },
        )

    def remove(self, record_id: str) -> bool:
        try:
            model = self._session.get(PayRecordModel, record_id)
            if model is None:
                return False
            self._session.delete(model)
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info("pay_record_deleted", extra={"record_id": record_id})
        return True

    def records_for(
        self, period: MonthPeriod, staff_id: str | None = None,
    ) -> tuple[MonthlyPayRecord, ...]:
        stmt = (
            select(PayRecordModel)
            .where(PayRecordModel.pay_date >= period.first_day)
            .where(PayRecordModel.pay_date <= period.last_day)
            .order_by(PayRecordModel.pay_date, PayRecordModel.id)
        )
        if staff_id is not None:
            stmt = stmt.where(PayRecordModel.staff_id == staff_id)
        return tuple(m.to_dto() for m in self._session.scalars(stmt))

    def add_recurring_bonus(self, bonus: RecurringBonus) -> None:
        try:
            self._session.add(RecurringBonusModel.from_dto(bonus, created_by=self._actor_id))
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        logger.info(
            "recurring_bonus_persisted",
            extra={"bonus_id": bonus.id, "staff_id": bonus.staff_id},
        )

    def recurring_bonuses(self, staff_id: str | None = None) -> tuple[RecurringBonus, ...]:
        stmt = select(RecurringBonusModel).order_by(
            RecurringBonusModel.start_date, RecurringBonusModel.id,
        )
        if staff_id is not None:
            stmt = stmt.where(RecurringBonusModel.staff_id == staff_id)
        return tuple(m.to_dto() for m in self._session.scalars(stmt))

"""
Staff Pay ORM Persistence Models (``payroll_modules.staff_pay.orm``).

Responsibility:
    SQLAlchemy ORM models that persist the ledger DTOs defined in
    ``payroll_modules.staff_pay.models``: monthly pay records and
    recurring bonuses.  Each ORM class mirrors a DTO and provides
    ``to_dto()`` / ``from_dto()`` round-trip conversion.

Architecture position:
    **Modules layer** -- persistence companions to the pure DTO models.
    Inherits from ``TrackedBase`` (kernel DB base) which provides:
    id (string PK), created_at, created_by.

Invariants enforced:
    - Monetary fields use Decimal (maps to Numeric(38,9)) -- NEVER float.
    - Enum fields are stored as String(50) containing the enum .value.
"""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from payroll_kernel.db.base import TrackedBase

# ---------------------------------------------------------------------------
# PayRecordModel
# ---------------------------------------------------------------------------


class PayRecordModel(TrackedBase):
    """
    ORM model for ``MonthlyPayRecord`` -- one append-only ledger entry.

    Guarantees:
        - ``record_type`` stores the ``PayRecordType`` .value string.
        - ``amount`` is always Decimal (Numeric(38,9)).
    """

    __tablename__ = "staff_pay_records"

    staff_id: Mapped[str] = mapped_column(String(64), nullable=False)
    record_type: Mapped[str] = mapped_column(String(50), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    pay_date: Mapped[date] = mapped_column(Date, nullable=False)
    period_start: Mapped[date | None] = mapped_column(Date, nullable=True)
    period_end: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    __table_args__ = (
        Index("idx_staff_pay_record_staff_date", "staff_id", "pay_date"),
        Index("idx_staff_pay_record_type", "record_type"),
    )

    def to_dto(self):
        from payroll_modules.staff_pay.models import MonthlyPayRecord, PayRecordType
        return MonthlyPayRecord(
            id=self.id,
            staff_id=self.staff_id,
            record_type=PayRecordType(self.record_type),
            amount=self.amount,
            currency=self.currency,
            pay_date=self.pay_date,
            period_start=self.period_start,
            period_end=self.period_end,
            description=self.description,
        )

    @classmethod
    def from_dto(cls, dto, created_by: str | None = None) -> "PayRecordModel":
        return cls(
            id=dto.id,
            staff_id=dto.staff_id,
            record_type=dto.record_type.value if hasattr(dto.record_type, "value") else dto.record_type,
            amount=dto.amount,
            currency=dto.currency,
            pay_date=dto.pay_date,
            period_start=dto.period_start,
            period_end=dto.period_end,
            description=dto.description,
            created_by=created_by,
        )

    def __repr__(self) -> str:
        return (
            f"<PayRecordModel {self.staff_id}: {self.record_type} "
            f"{self.amount} {self.currency} on {self.pay_date}>"
        )


# ---------------------------------------------------------------------------
# RecurringBonusModel
# ---------------------------------------------------------------------------


class RecurringBonusModel(TrackedBase):
    """
    ORM model for ``RecurringBonus`` -- a monthly bonus with a validity window.

    Guarantees:
        - ``end_date`` NULL means the bonus recurs indefinitely.
    """

    __tablename__ = "staff_recurring_bonuses"

    staff_id: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(nullable=False)
    currency: Mapped[str] = mapped_column(String(3), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    description: Mapped[str] = mapped_column(String(500), default="", nullable=False)

    __table_args__ = (
        Index("idx_staff_recurring_bonus_staff", "staff_id"),
    )

    def to_dto(self):
        from payroll_modules.staff_pay.models import RecurringBonus
        return RecurringBonus(
            id=self.id,
            staff_id=self.staff_id,
            amount=self.amount,
            currency=self.currency,
            start_date=self.start_date,
            end_date=self.end_date,
            description=self.description,
        )

    @classmethod
    def from_dto(cls, dto, created_by: str | None = None) -> "RecurringBonusModel":
        return cls(
            id=dto.id,
            staff_id=dto.staff_id,
            amount=dto.amount,
            currency=dto.currency,
            start_date=dto.start_date,
            end_date=dto.end_date,
            description=dto.description,
            created_by=created_by,
        )

    def __repr__(self) -> str:
        return (
            f"<RecurringBonusModel {self.staff_id}: {self.amount} {self.currency} "
            f"from {self.start_date}>"
        )

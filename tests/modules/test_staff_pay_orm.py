"""
Tests for the staff pay ORM models and the SQL ledger store.

Uses the in-memory SQLite session from ``db_session``.  SQLite hands
Numeric columns back with nine decimal places, so amounts are compared
numerically.
"""

from datetime import date
from decimal import Decimal

import pytest

from payroll_engines.aggregator import PayrollSnapshot
from payroll_kernel.db.engine import ledger_session
from payroll_kernel.domain.periods import MonthPeriod
from payroll_modules.staff_pay.models import PayRecordType, PayrollStatus
from payroll_modules.staff_pay.orm import PayRecordModel, RecurringBonusModel
from payroll_modules.staff_pay.service import PayrollRunBoard, StaffPayService
from payroll_modules.staff_pay.stores import PayRecordStore, SqlPayRecordStore
from tests.factories import make_bonus, make_profile, make_record

OCTOBER = MonthPeriod(2025, 10)


@pytest.fixture
def sql_store(db_session) -> SqlPayRecordStore:
    return SqlPayRecordStore(db_session, actor_id="payroll-admin")


class TestPayRecordModel:

    def test_dto_round_trip(self, db_session):
        record = make_record(PayRecordType.EXPENSE, "12.40", date(2025, 10, 3))
        db_session.add(PayRecordModel.from_dto(record, created_by="admin"))
        db_session.commit()

        model = db_session.get(PayRecordModel, record.id)
        dto = model.to_dto()

        assert model.record_type == "expense"
        assert model.created_by == "admin"
        assert model.created_at is not None
        assert dto.record_type is PayRecordType.EXPENSE
        assert dto.amount == Decimal("12.40")
        assert dto.pay_date == date(2025, 10, 3)

    def test_recurring_bonus_round_trip(self, db_session):
        bonus = make_bonus("75", date(2025, 10, 1))
        db_session.add(RecurringBonusModel.from_dto(bonus))
        db_session.commit()

        dto = db_session.get(RecurringBonusModel, bonus.id).to_dto()
        assert dto.end_date is None
        assert dto.amount == Decimal("75")


class TestLedgerSession:

    def test_commits_on_success(self, db_session):
        record = make_record(PayRecordType.BONUS, "50", date(2025, 10, 2))
        with ledger_session() as session:
            session.add(PayRecordModel.from_dto(record))

        assert db_session.get(PayRecordModel, record.id) is not None

    def test_rolls_back_on_error(self, db_session):
        record = make_record(PayRecordType.BONUS, "50", date(2025, 10, 2))
        with pytest.raises(RuntimeError):
            with ledger_session() as session:
                session.add(PayRecordModel.from_dto(record))
                session.flush()
                raise RuntimeError("abort")

        assert db_session.get(PayRecordModel, record.id) is None


class TestSqlPayRecordStore:

    def test_satisfies_protocol(self, sql_store):
        assert isinstance(sql_store, PayRecordStore)

    def test_records_for_filters_month_and_staff(self, sql_store):
        inside = make_record(PayRecordType.BONUS, "10", date(2025, 10, 31))
        sql_store.add(inside)
        sql_store.add(make_record(PayRecordType.BONUS, "10", date(2025, 11, 1)))
        sql_store.add(make_record(PayRecordType.BONUS, "10", date(2025, 10, 5), staff_id="staff-2"))

        mine = sql_store.records_for(OCTOBER, "staff-1")
        assert [r.id for r in mine] == [inside.id]
        assert len(sql_store.records_for(OCTOBER)) == 2

    def test_remove(self, sql_store):
        record = make_record(PayRecordType.SALARY, "2000", date(2025, 10, 31))
        sql_store.add(record)

        assert sql_store.remove(record.id) is True
        assert sql_store.remove(record.id) is False
        assert sql_store.records_for(OCTOBER) == ()

    def test_duplicate_id_rolls_back(self, sql_store):
        record = make_record(PayRecordType.BONUS, "10", date(2025, 10, 5))
        sql_store.add(record)

        with pytest.raises(Exception):
            sql_store.add(record)
        # Session is usable after the rollback
        assert len(sql_store.records_for(OCTOBER)) == 1

    def test_recurring_bonuses(self, sql_store):
        sql_store.add_recurring_bonus(make_bonus("75", date(2025, 10, 1)))
        sql_store.add_recurring_bonus(make_bonus("20", date(2025, 9, 1), staff_id="staff-2"))

        assert len(sql_store.recurring_bonuses()) == 2
        assert [b.amount for b in sql_store.recurring_bonuses("staff-1")] == [Decimal("75")]


class TestServiceOnSqlStore:
    """End-to-end run and revert against the database ledger."""

    def test_run_and_revert(self, sql_store, config, clock):
        service = StaffPayService(sql_store, config=config, clock=clock)
        snapshot = PayrollSnapshot(profiles=(make_profile(),))

        summary = service.preview_month(snapshot, OCTOBER)
        board = PayrollRunBoard(OCTOBER)
        board.mark_ready(summary.summary_for("staff-1"))
        service.run_payroll(summary, board)

        paid = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")
        assert board.status_of(paid) is PayrollStatus.PAID
        assert paid.total_pay == Decimal("2000.00")

        service.revert_payroll(paid, board)
        pending = service.preview_month(snapshot, OCTOBER).summary_for("staff-1")
        assert board.status_of(pending) is PayrollStatus.PENDING

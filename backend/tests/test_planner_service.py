"""Tests for the forward overview."""

from datetime import date, timedelta
from decimal import Decimal

from app.models.recurring import Bill, BillStatus
from app.services import planner_service

from conftest import OWNER_ID, OTHER_OWNER_ID, make_bill, make_paycheck


TODAY = date(2024, 4, 1)


def days(n):
    return TODAY + timedelta(days=n)


class TestBuildOverview:
    """Test overview assembly."""

    def test_bills_within_horizon_sorted(self, db_session):
        """Bills at +10, +50 and +5 with a 40 day horizon yield +5 then +10."""
        b10 = make_bill(db_session, days(10), status=BillStatus.predicted)
        make_bill(db_session, days(50), status=BillStatus.predicted)
        b5 = make_bill(db_session, days(5), status=BillStatus.predicted)

        overview = planner_service.build_overview(db_session, OWNER_ID, horizon_days=40, today=TODAY)
        assert [b.id for b in overview.bills] == [b5.id, b10.id]
        assert overview.horizon_days == 40

    def test_only_open_bills(self, db_session):
        due = make_bill(db_session, days(1))
        make_bill(db_session, days(2), status=BillStatus.paid, paid_at=days(2))
        make_bill(db_session, days(3), status=BillStatus.skipped)
        make_bill(db_session, days(3), owner_id=OTHER_OWNER_ID)

        overview = planner_service.build_overview(db_session, OWNER_ID, today=TODAY)
        assert [b.id for b in overview.bills] == [due.id]

    def test_overdue_bills_included(self, db_session):
        overdue = make_bill(db_session, days(-3), amount="20.00")
        upcoming = make_bill(db_session, days(4), amount="5.50")

        overview = planner_service.build_overview(db_session, OWNER_ID, today=TODAY)
        assert [b.id for b in overview.bills] == [overdue.id, upcoming.id]
        assert overview.total_due == Decimal("25.50")
        assert overview.next_due_date == days(4)

    def test_next_due_falls_back_to_overdue(self, db_session):
        make_bill(db_session, days(-3))
        overview = planner_service.build_overview(db_session, OWNER_ID, today=TODAY)
        assert overview.next_due_date == days(-3)

    def test_recent_paychecks_newest_first(self, db_session):
        older = make_paycheck(db_session, days(-30))
        newer = make_paycheck(db_session, days(-2))
        make_paycheck(db_session, days(-120))

        overview = planner_service.build_overview(db_session, OWNER_ID, today=TODAY)
        assert [p.id for p in overview.recent_paychecks] == [newer.id, older.id]
        assert overview.last_paycheck.id == newer.id

    def test_empty(self, db_session):
        overview = planner_service.build_overview(db_session, OWNER_ID, today=TODAY)
        assert overview.bills == []
        assert overview.recent_paychecks == []
        assert overview.total_due == Decimal("0")
        assert overview.next_due_date is None
        assert overview.last_paycheck is None

    def test_read_only(self, db_session, monthly_series):
        make_bill(db_session, days(1), series_id=monthly_series.id)
        planner_service.build_overview(db_session, OWNER_ID, today=TODAY)

        assert db_session.query(Bill).count() == 1
        db_session.refresh(monthly_series)
        assert monthly_series.next_due == date(2024, 1, 15)


class TestClampHorizon:
    """Test horizon bounds."""

    def test_default(self):
        assert planner_service.clamp_horizon(None) == 40

    def test_bounds(self):
        assert planner_service.clamp_horizon(0) == 1
        assert planner_service.clamp_horizon(-5) == 1
        assert planner_service.clamp_horizon(500) == 120
        assert planner_service.clamp_horizon(60) == 60

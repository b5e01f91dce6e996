"""Tests for explicit bill operations."""

import pytest
from datetime import date
from decimal import Decimal

from app.exceptions import InvalidInputError, NotFoundError
from app.models.recurring import BillStatus
from app.models.transaction import Transaction
from app.services import bill_service

from conftest import OWNER_ID, OTHER_OWNER_ID, make_bill


class TestCreateBill:
    """Test bill creation."""

    def test_created_as_due(self, db_session):
        bill = bill_service.create_bill(db_session, OWNER_ID, {
            "name": "Internet", "amount": Decimal("59.99"), "due_date": date(2024, 2, 1),
        })
        assert bill.status == BillStatus.due
        assert bill.owner_id == OWNER_ID
        assert bill.currency == "USD"
        assert bill.paid_at is None
        assert bill.tx_id is None

    def test_inherits_series_name(self, db_session, monthly_series):
        bill = bill_service.create_bill(db_session, OWNER_ID, {"series_id": monthly_series.id})
        assert bill.series_id == monthly_series.id
        assert bill.name == "Electric"
        assert bill.merchant == "City Power"

    def test_foreign_series_not_found(self, db_session, monthly_series):
        with pytest.raises(NotFoundError):
            bill_service.create_bill(db_session, OTHER_OWNER_ID, {"series_id": monthly_series.id})

    def test_negative_amount_rejected(self, db_session):
        with pytest.raises(InvalidInputError):
            bill_service.create_bill(db_session, OWNER_ID, {"name": "Refund", "amount": -1})


class TestListBills:
    """Test bill listing filters."""

    def test_date_range_and_order(self, db_session):
        late = make_bill(db_session, date(2024, 3, 1), name="Late")
        early = make_bill(db_session, date(2024, 1, 1), name="Early")
        make_bill(db_session, date(2024, 6, 1), name="Out of range")

        bills = bill_service.list_bills(db_session, OWNER_ID, start=date(2024, 1, 1), end=date(2024, 3, 31))
        assert [b.id for b in bills] == [early.id, late.id]

    def test_status_filter(self, db_session):
        make_bill(db_session, date(2024, 1, 1), status=BillStatus.paid, paid_at=date(2024, 1, 1))
        due = make_bill(db_session, date(2024, 1, 2))
        predicted = make_bill(db_session, date(2024, 1, 3), status=BillStatus.predicted)

        statuses = bill_service.parse_status_csv("due, predicted")
        bills = bill_service.list_bills(db_session, OWNER_ID, statuses=statuses)
        assert [b.id for b in bills] == [due.id, predicted.id]

    def test_invalid_status_rejected(self):
        with pytest.raises(InvalidInputError):
            bill_service.parse_status_csv("due,overdue")

    def test_search_and_owner_scope(self, db_session):
        mine = make_bill(db_session, date(2024, 1, 1), name="Netflix")
        make_bill(db_session, date(2024, 1, 1), name="Netflix", owner_id=OTHER_OWNER_ID)
        make_bill(db_session, date(2024, 1, 1), name="Gym")

        bills = bill_service.list_bills(db_session, OWNER_ID, q="netf")
        assert [b.id for b in bills] == [mine.id]

    def test_account_filter_uses_linked_transaction(self, db_session, predicted_bill, ledger_transaction):
        bill_service.mark_bill(db_session, OWNER_ID, predicted_bill.id, BillStatus.paid, tx_id="agg-tx-001")
        make_bill(db_session, date(2024, 1, 20), name="Unlinked")

        assert [b.id for b in bill_service.list_bills(db_session, OWNER_ID, account_id="acct-1")] == [predicted_bill.id]
        assert bill_service.list_bills(db_session, OWNER_ID, account_id="acct-2") == []


class TestMarkBill:
    """Test bill status changes."""

    def test_mark_paid_links_existing_transaction(self, db_session, predicted_bill, ledger_transaction):
        bill = bill_service.mark_bill(
            db_session, OWNER_ID, predicted_bill.id, "paid",
            tx_id="agg-tx-001", paid_at=date(2024, 1, 16)
        )
        db_session.refresh(ledger_transaction)

        assert bill.status == BillStatus.paid
        assert bill.paid_at == date(2024, 1, 16)
        assert bill.tx_id == ledger_transaction.id
        assert ledger_transaction.matched_bill_id == bill.id
        assert ledger_transaction.matched_series_id == bill.series_id
        assert db_session.query(Transaction).count() == 1

    def test_mark_paid_without_tx(self, db_session, predicted_bill):
        bill = bill_service.mark_bill(db_session, OWNER_ID, predicted_bill.id, BillStatus.paid, amount="81.5")
        assert bill.status == BillStatus.paid
        assert bill.paid_at is not None
        assert bill.amount == Decimal("81.50")
        assert bill.tx_id is None

    def test_mark_skipped_releases_link(self, db_session, predicted_bill, ledger_transaction):
        bill_service.mark_bill(db_session, OWNER_ID, predicted_bill.id, BillStatus.paid, tx_id="agg-tx-001")
        bill = bill_service.mark_bill(db_session, OWNER_ID, predicted_bill.id, BillStatus.skipped)
        db_session.refresh(ledger_transaction)

        assert bill.status == BillStatus.skipped
        assert bill.paid_at is None
        assert bill.tx_id is None
        assert ledger_transaction.matched_bill_id is None
        assert ledger_transaction.match_confidence is None

    def test_mark_predicted_rejected(self, db_session, predicted_bill):
        with pytest.raises(InvalidInputError):
            bill_service.mark_bill(db_session, OWNER_ID, predicted_bill.id, "predicted")

    def test_mark_unknown_status_rejected(self, db_session, predicted_bill):
        with pytest.raises(InvalidInputError):
            bill_service.mark_bill(db_session, OWNER_ID, predicted_bill.id, "late")

    def test_mark_foreign_bill_not_found(self, db_session, predicted_bill):
        with pytest.raises(NotFoundError):
            bill_service.mark_bill(db_session, OTHER_OWNER_ID, predicted_bill.id, BillStatus.paid)


class TestSnoozeBill:
    """Test bill snoozing."""

    def test_snooze_moves_due_date(self, db_session, predicted_bill):
        bill = bill_service.snooze_bill(db_session, OWNER_ID, predicted_bill.id, 10)
        assert bill.due_date == date(2024, 1, 25)
        assert bill.status == BillStatus.predicted

    def test_snooze_clamped(self, db_session, predicted_bill):
        bill = bill_service.snooze_bill(db_session, OWNER_ID, predicted_bill.id, -4)
        assert bill.due_date == date(2024, 1, 16)

    def test_paid_bill_cannot_be_snoozed(self, db_session):
        bill = make_bill(db_session, date(2024, 1, 1), status=BillStatus.paid, paid_at=date(2024, 1, 1))
        with pytest.raises(InvalidInputError):
            bill_service.snooze_bill(db_session, OWNER_ID, bill.id, 5)

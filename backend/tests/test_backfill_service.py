"""Tests for idempotent link backfill."""

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy.exc import OperationalError

from app.models.recurring import BillStatus
from app.models.transaction import Transaction, TransactionType
from app.services import backfill_service, bill_service, reconciler

from conftest import OWNER_ID, OTHER_OWNER_ID, make_bill, make_paycheck


TODAY = date(2024, 6, 1)


def zero_summary():
    return {
        "bills_created": 0,
        "bills_linked": 0,
        "paychecks_created": 0,
        "paychecks_linked": 0,
        "failed": 0,
    }


class TestBackfillLinks:
    """Test creating and repairing ledger links."""

    def test_creates_missing_transactions(self, db_session):
        bill = make_bill(db_session, date(2024, 5, 1), status=BillStatus.paid, amount="45.00",
                         paid_at=date(2024, 5, 2), name="Water")
        hit = make_paycheck(db_session, date(2024, 5, 10))

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)

        assert summary.bills_created == 1
        assert summary.paychecks_created == 1
        assert summary.failed == 0

        db_session.refresh(bill)
        db_session.refresh(hit)
        bill_tx = db_session.get(Transaction, bill.tx_id)
        assert bill_tx.matched_bill_id == bill.id
        assert bill_tx.type == TransactionType.expense
        assert bill_tx.amount == Decimal("45.00")
        assert bill_tx.date == date(2024, 5, 2)

        hit_tx = db_session.get(Transaction, hit.tx_id)
        assert hit_tx.matched_paycheck_id == hit.id
        assert hit_tx.type == TransactionType.income

    def test_second_run_is_noop(self, db_session):
        make_bill(db_session, date(2024, 5, 1), status=BillStatus.paid, paid_at=date(2024, 5, 1))
        make_paycheck(db_session, date(2024, 5, 10))

        backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        count = db_session.query(Transaction).count()

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        assert summary.to_dict() == zero_summary()
        assert db_session.query(Transaction).count() == count

    def test_repairs_link_by_external_id(self, db_session, ledger_transaction):
        """A bill naming an aggregator id gets linked, not duplicated."""
        bill = make_bill(db_session, date(2024, 1, 15), status=BillStatus.paid,
                         paid_at=date(2024, 1, 16), tx_id="agg-tx-001")

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=date(2024, 2, 1))

        assert summary.bills_linked == 1
        assert summary.bills_created == 0
        db_session.refresh(bill)
        db_session.refresh(ledger_transaction)
        assert bill.tx_id == ledger_transaction.id
        assert ledger_transaction.matched_bill_id == bill.id
        assert db_session.query(Transaction).count() == 1

    def test_repairs_stale_series_reference(self, db_session, monthly_series, predicted_bill):
        result = reconciler.match_bill(
            db_session, OWNER_ID, "tx-1", amount=80, paid_on=date(2024, 1, 15), series_id=monthly_series.id
        )
        result.transaction.matched_series_id = None
        db_session.commit()

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=date(2024, 2, 1))

        assert summary.bills_linked == 1
        db_session.refresh(result.transaction)
        assert result.transaction.matched_series_id == monthly_series.id

    def test_matched_records_already_consistent(self, db_session, paycheck_series):
        reconciler.match_bill(db_session, OWNER_ID, "tx-1", amount=10, paid_on=date(2024, 5, 1))
        reconciler.match_paycheck(db_session, OWNER_ID, "pay-1", amount=1850,
                                  received_on=date(2024, 5, 3), series_id=paycheck_series.id)

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        assert summary.to_dict() == zero_summary()

    def test_window_and_owner_scope(self, db_session):
        make_bill(db_session, date(2023, 1, 1), status=BillStatus.paid, paid_at=date(2023, 1, 1))
        make_bill(db_session, date(2024, 5, 1), status=BillStatus.paid, paid_at=date(2024, 5, 1),
                  owner_id=OTHER_OWNER_ID)
        make_bill(db_session, date(2024, 5, 1), status=BillStatus.due)

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        assert summary.to_dict() == zero_summary()

        summary = backfill_service.backfill_links(db_session, OWNER_ID, days=600, today=TODAY)
        assert summary.bills_created == 1

    def test_account_id_applied_to_created_transactions(self, db_session):
        bill = make_bill(db_session, date(2024, 5, 1), status=BillStatus.paid, paid_at=date(2024, 5, 1))

        backfill_service.backfill_links(db_session, OWNER_ID, account_id="checking", today=TODAY)

        db_session.refresh(bill)
        assert db_session.get(Transaction, bill.tx_id).account_id == "checking"

    def test_failure_is_counted_and_batch_continues(self, db_session, monkeypatch):
        make_bill(db_session, date(2024, 5, 1), status=BillStatus.paid, paid_at=date(2024, 5, 1))
        make_bill(db_session, date(2024, 5, 2), status=BillStatus.paid, paid_at=date(2024, 5, 2))

        original = backfill_service.repair_record
        calls = {"n": 0}

        def flaky_repair(db, owner_id, kind, record, account_id=None):
            calls["n"] += 1
            if calls["n"] == 1:
                raise OperationalError("INSERT INTO transactions", {}, Exception("disk I/O error"))
            return original(db, owner_id, kind, record, account_id)

        monkeypatch.setattr(backfill_service, "repair_record", flaky_repair)

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        assert summary.failed == 1
        assert summary.bills_created == 1

        monkeypatch.setattr(backfill_service, "repair_record", original)
        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        assert summary.bills_created == 1
        assert summary.failed == 0


class TestLookupStrategies:
    """Test the ordered lookup."""

    def test_back_reference_wins(self, db_session, ledger_transaction):
        bill = make_bill(db_session, date(2024, 1, 15), status=BillStatus.paid,
                         paid_at=date(2024, 1, 16), tx_id="something-else")
        ledger_transaction.matched_bill_id = bill.id
        db_session.commit()

        found = backfill_service.find_linked_transaction(db_session, OWNER_ID, reconciler.BILL_LINK, bill)
        assert found.id == ledger_transaction.id

    def test_nothing_found(self, db_session):
        bill = make_bill(db_session, date(2024, 1, 15), status=BillStatus.paid, paid_at=date(2024, 1, 16))
        assert backfill_service.find_linked_transaction(db_session, OWNER_ID, reconciler.BILL_LINK, bill) is None


class TestSharedAndRelinkedTransactions:
    """Test that repeated runs converge when links were changed by hand."""

    def test_transaction_shared_by_two_bills(self, db_session, monthly_series):
        first = reconciler.match_bill(
            db_session, OWNER_ID, "agg-shared", amount=80,
            paid_on=date(2024, 5, 15), series_id=monthly_series.id
        )
        second = reconciler.match_bill(db_session, OWNER_ID, "agg-shared", amount=80, paid_on=date(2024, 5, 16))
        shared_id = second.transaction.id
        assert first.transaction.id == shared_id

        for _ in range(2):
            summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
            assert summary.to_dict() == zero_summary()

        transaction = db_session.get(Transaction, shared_id)
        assert transaction.matched_bill_id == second.record.id
        assert transaction.matched_series_id is None
        assert db_session.query(Transaction).count() == 1

    def test_remark_with_new_transaction_survives_backfill(self, db_session):
        result = reconciler.match_bill(db_session, OWNER_ID, "agg-A", amount=25, paid_on=date(2024, 5, 1))
        old_tx_id = result.transaction.id

        bill = bill_service.mark_bill(db_session, OWNER_ID, result.record.id, BillStatus.paid, tx_id="agg-B")
        new_tx_id = bill.tx_id
        assert new_tx_id != old_tx_id
        assert db_session.get(Transaction, old_tx_id).matched_bill_id is None

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=TODAY)
        assert summary.to_dict() == zero_summary()
        db_session.refresh(bill)
        assert bill.tx_id == new_tx_id
        assert db_session.get(Transaction, new_tx_id).matched_bill_id == bill.id

    def test_back_reference_prefers_record_tx_id(self, db_session, monthly_series, predicted_bill, monkeypatch):
        """After two racing matches the newer link is kept."""
        monkeypatch.setattr(reconciler, "find_open_bill", lambda db, owner_id, series_id, paid_on: predicted_bill)
        reconciler.match_bill(db_session, OWNER_ID, "race-1", amount=80, paid_on=date(2024, 1, 15), series_id=monthly_series.id)
        second = reconciler.match_bill(db_session, OWNER_ID, "race-2", amount=80, paid_on=date(2024, 1, 16), series_id=monthly_series.id)

        found = backfill_service.find_linked_transaction(db_session, OWNER_ID, reconciler.BILL_LINK, predicted_bill)
        assert found.id == second.transaction.id

        summary = backfill_service.backfill_links(db_session, OWNER_ID, today=date(2024, 2, 1))
        assert summary.to_dict() == zero_summary()
        db_session.refresh(predicted_bill)
        assert predicted_bill.tx_id == second.transaction.id

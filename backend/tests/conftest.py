"""Shared test fixtures."""

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from datetime import date
from decimal import Decimal
import uuid

from app.database import Base, get_db
from app.dependencies import OWNER_HEADER
from app.main import app
from app.models.recurring import RecurringSeries, Bill, PaycheckHit, SeriesKind, Cadence, BillStatus
from app.models.transaction import Transaction, TransactionType, TransactionSource


OWNER_ID = "user-1"
OTHER_OWNER_ID = "user-2"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh database for each test using in-memory SQLite."""
    # Use StaticPool to ensure all connections use the same in-memory database
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture(scope="function")
def client(db_session):
    """Create a test client authenticated as OWNER_ID with database override."""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app, headers={OWNER_HEADER: OWNER_ID}) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def monthly_series(db_session):
    """Monthly electric bill anchored on the 15th."""
    series = RecurringSeries(
        id=str(uuid.uuid4()),
        owner_id=OWNER_ID,
        kind=SeriesKind.bill,
        name="Electric",
        merchant="City Power",
        cadence=Cadence.monthly,
        day_of_month=15,
        amount_hint=Decimal("80.00"),
        active=True,
        last_seen=date(2023, 12, 15),
        next_due=date(2024, 1, 15),
    )
    db_session.add(series)
    db_session.commit()
    db_session.refresh(series)
    return series


@pytest.fixture
def paycheck_series(db_session):
    """Biweekly payroll series."""
    series = RecurringSeries(
        id=str(uuid.uuid4()),
        owner_id=OWNER_ID,
        kind=SeriesKind.paycheck,
        name="Payroll",
        merchant="Acme Corp",
        cadence=Cadence.biweekly,
        amount_hint=Decimal("1850.00"),
        active=True,
    )
    db_session.add(series)
    db_session.commit()
    db_session.refresh(series)
    return series


@pytest.fixture
def predicted_bill(db_session, monthly_series):
    """Predicted electric bill due 2024-01-15."""
    bill = Bill(
        id=str(uuid.uuid4()),
        owner_id=OWNER_ID,
        series_id=monthly_series.id,
        name="Electric",
        merchant="City Power",
        amount=Decimal("80.00"),
        currency="USD",
        due_date=date(2024, 1, 15),
        status=BillStatus.predicted,
    )
    db_session.add(bill)
    db_session.commit()
    db_session.refresh(bill)
    return bill


@pytest.fixture
def ledger_transaction(db_session):
    """Aggregator expense not yet linked to anything."""
    txn = Transaction(
        id=str(uuid.uuid4()),
        owner_id=OWNER_ID,
        type=TransactionType.expense,
        category="Utilities",
        amount=Decimal("82.10"),
        date=date(2024, 1, 16),
        description="CITY POWER AUTOPAY",
        source=TransactionSource.aggregator,
        account_id="acct-1",
        external_id="agg-tx-001",
    )
    db_session.add(txn)
    db_session.commit()
    db_session.refresh(txn)
    return txn


def make_paycheck(db_session, on_date, amount="1850.00", owner_id=OWNER_ID, series_id=None, tx_id=None):
    hit = PaycheckHit(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        series_id=series_id,
        amount=Decimal(amount),
        date=on_date,
        employer_name="Acme Corp",
        tx_id=tx_id,
    )
    db_session.add(hit)
    db_session.commit()
    db_session.refresh(hit)
    return hit


def make_bill(db_session, due_date, status=BillStatus.due, amount="10.00", owner_id=OWNER_ID,
              series_id=None, name="Bill", paid_at=None, tx_id=None):
    bill = Bill(
        id=str(uuid.uuid4()),
        owner_id=owner_id,
        series_id=series_id,
        name=name,
        amount=Decimal(amount) if amount is not None else None,
        currency="USD",
        due_date=due_date,
        status=status,
        paid_at=paid_at,
        tx_id=tx_id,
    )
    db_session.add(bill)
    db_session.commit()
    db_session.refresh(bill)
    return bill

"""create recurring series, bills, paycheck hits and transactions

Revision ID: 001
Revises: 
Create Date: 2026-10-19 09:00:00
"""

from alembic import op
import sqlalchemy as sa


revision = "001"
down_revision = None
branch_labels = None
depends_on = None

series_kind = sa.Enum("bill", "subscription", "paycheck", name="serieskind")
cadence = sa.Enum("weekly", "biweekly", "semimonthly", "monthly", "quarterly", "yearly", "unknown", name="cadence")
bill_status = sa.Enum("predicted", "due", "paid", "skipped", name="billstatus")
transaction_type = sa.Enum("income", "expense", name="transactiontype")
transaction_source = sa.Enum("manual", "aggregator", name="transactionsource")


def upgrade() -> None:
    op.create_table(
        "recurring_series",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False, index=True),
        sa.Column("kind", series_kind, nullable=False, index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("merchant", sa.String(255), nullable=True),
        sa.Column("cadence", cadence, nullable=False),
        sa.Column("day_of_month", sa.Integer, nullable=True),
        sa.Column("weekday", sa.Integer, nullable=True),
        sa.Column("amount_hint", sa.Numeric(12, 2), nullable=True),
        sa.Column("active", sa.Boolean, nullable=False, index=True),
        sa.Column("last_seen", sa.Date, nullable=True),
        sa.Column("next_due", sa.Date, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("idx_series_owner_kind_name", "recurring_series", ["owner_id", "kind", "name"])

    op.create_table(
        "bills",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False, index=True),
        sa.Column("series_id", sa.String(36), sa.ForeignKey("recurring_series.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("merchant", sa.String(255), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("due_date", sa.Date, nullable=True, index=True),
        sa.Column("status", bill_status, nullable=False, index=True),
        sa.Column("tx_id", sa.String(128), nullable=True, index=True),
        sa.Column("paid_at", sa.Date, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("idx_bill_owner_status_due", "bills", ["owner_id", "status", "due_date"])

    op.create_table(
        "paycheck_hits",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False, index=True),
        sa.Column("series_id", sa.String(36), sa.ForeignKey("recurring_series.id", ondelete="SET NULL"), nullable=True, index=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date, nullable=False, index=True),
        sa.Column("account_id", sa.String(64), nullable=True),
        sa.Column("employer_name", sa.String(255), nullable=True),
        sa.Column("tx_id", sa.String(128), nullable=True, index=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("idx_paycheck_owner_date", "paycheck_hits", ["owner_id", "date"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("owner_id", sa.String(64), nullable=False, index=True),
        sa.Column("type", transaction_type, nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date, nullable=False, index=True),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("source", transaction_source, nullable=False),
        sa.Column("account_id", sa.String(64), nullable=True, index=True),
        sa.Column("account_name", sa.String(255), nullable=True),
        sa.Column("external_id", sa.String(128), nullable=True),
        sa.Column("matched_bill_id", sa.String(36), nullable=True, index=True),
        sa.Column("matched_paycheck_id", sa.String(36), nullable=True, index=True),
        sa.Column("matched_series_id", sa.String(36), nullable=True, index=True),
        sa.Column("match_confidence", sa.Float, nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
        sa.Column("updated_at", sa.DateTime, nullable=False),
    )
    op.create_index("idx_transaction_owner_date", "transactions", ["owner_id", "date"])
    op.create_index("idx_transaction_owner_external", "transactions", ["owner_id", "external_id"])


def downgrade() -> None:
    op.drop_table("transactions")
    op.drop_table("paycheck_hits")
    op.drop_table("bills")
    op.drop_table("recurring_series")
    for enum_type in (transaction_source, transaction_type, bill_status, cadence, series_kind):
        enum_type.drop(op.get_bind(), checkfirst=True)

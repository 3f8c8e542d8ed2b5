"""create holdings and transactions tables

Revision ID: create_holdings_and_transactions
Revises:
Create Date: 2026-10-18 12:00:00.000000

"""

import sqlalchemy as sa

from alembic import op

# revision identifiers, used by Alembic.
revision = "create_holdings_and_transactions"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "holdings",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("ticker", sa.String(length=30), nullable=True),
        sa.Column("quantity", sa.Numeric(28, 10), nullable=False),
        sa.Column("average_price", sa.Numeric(28, 10), nullable=False),
        sa.Column("current_price", sa.Numeric(28, 10), nullable=False),
        sa.Column("invested_amount", sa.Numeric(28, 10), nullable=False),
        sa.Column("current_value", sa.Numeric(28, 10), nullable=False),
        sa.Column(
            "interest_rate", sa.Numeric(12, 6), nullable=True, comment="Effective annual rate (%)"
        ),
        sa.Column("purchase_date", sa.Date(), nullable=True),
        sa.Column("maturity_date", sa.Date(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("tags", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_holdings_user", "holdings", ["user_id"])
    op.create_index("idx_holdings_user_category", "holdings", ["user_id", "category"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.String(length=36), nullable=False),
        sa.Column("user_id", sa.String(length=64), nullable=False),
        sa.Column("holding_id", sa.String(length=36), nullable=True),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("category", sa.String(length=30), nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("ticker", sa.String(length=30), nullable=True),
        sa.Column("quantity", sa.Numeric(28, 10), nullable=False),
        sa.Column("price", sa.Numeric(28, 10), nullable=False),
        sa.Column("total", sa.Numeric(28, 10), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("profit_loss", sa.Numeric(28, 10), nullable=True),
        sa.Column("profit_loss_percent", sa.Numeric(18, 8), nullable=True),
        sa.Column("created_at", sa.DateTime(), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("idx_transactions_user", "transactions", ["user_id"])
    op.create_index("idx_transactions_holding", "transactions", ["holding_id"])
    op.create_index("idx_transactions_date", "transactions", ["date"])


def downgrade():
    op.drop_index("idx_transactions_date", table_name="transactions")
    op.drop_index("idx_transactions_holding", table_name="transactions")
    op.drop_index("idx_transactions_user", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("idx_holdings_user_category", table_name="holdings")
    op.drop_index("idx_holdings_user", table_name="holdings")
    op.drop_table("holdings")

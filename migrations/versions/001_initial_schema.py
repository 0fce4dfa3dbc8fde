"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-01 00:00:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.func.now(),
            onupdate=sa.func.now(),
        ),
    ]


def upgrade() -> None:
    # Categories table
    op.create_table(
        "categories",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(50), nullable=False),
        sa.Column("type", sa.String(10), nullable=False),  # income, expense
        sa.Column("icon", sa.String(50), default="category"),
        sa.Column("color", sa.String(7), default="#808080"),
        sa.Column("is_default", sa.Boolean(), default=False),
        *_timestamps(),
        sa.UniqueConstraint("owner_id", "name", "type", name="uq_categories_owner_name_type"),
    )
    op.create_index("ix_categories_owner_type", "categories", ["owner_id", "type"])

    # Income/expense ledger
    op.create_table(
        "transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(50), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("type", sa.String(10), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("description", sa.Text(), default=""),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
    )
    op.create_index("ix_transactions_owner_date", "transactions", ["owner_id", "date"])
    op.create_index(
        "ix_transactions_owner_type_date", "transactions", ["owner_id", "type", "date"]
    )
    op.create_index(
        "ix_transactions_owner_category_date",
        "transactions",
        ["owner_id", "category_id", "date"],
    )

    # Budgets table
    op.create_table(
        "budgets",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(50), nullable=False),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("categories.id", ondelete="RESTRICT"),
            nullable=False,
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("start_date", sa.Date(), nullable=False),
        sa.Column("end_date", sa.Date(), nullable=False),
        sa.Column("period_type", sa.String(10), default="monthly"),
        sa.Column("status", sa.String(10), default="upcoming"),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("savings_transferred", sa.Boolean(), default=False),
        sa.Column("savings_transfer_amount", sa.Numeric(12, 2), default=0),
        sa.Column("savings_transfer_date", sa.DateTime(timezone=True), nullable=True),
        sa.Column("notes", sa.String(500), default=""),
        *_timestamps(),
        sa.CheckConstraint("amount > 0", name="ck_budgets_amount_positive"),
        sa.CheckConstraint("end_date > start_date", name="ck_budgets_period"),
    )
    op.create_index("ix_budgets_owner_status", "budgets", ["owner_id", "status"])
    op.create_index("ix_budgets_owner_period", "budgets", ["owner_id", "start_date", "end_date"])
    op.create_index(
        "ix_budgets_owner_category_period",
        "budgets",
        ["owner_id", "category_id", "start_date", "end_date"],
    )
    op.create_index("ix_budgets_owner_cycle", "budgets", ["owner_id", "month", "year"])

    # One savings account per owner
    op.create_table(
        "savings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(50), unique=True, nullable=False),
        sa.Column("balance", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_deposits", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("total_withdrawals", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("last_transaction_date", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("balance >= 0", name="ck_savings_balance_non_negative"),
    )

    # Legacy month/year surplus transfers
    op.create_table(
        "savings_transferred_cycles",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "savings_id",
            sa.Integer(),
            sa.ForeignKey("savings.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("owner_id", sa.String(50), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("transferred_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("owner_id", "month", "year", name="uq_transferred_cycles_owner_cycle"),
    )

    # Savings audit log
    op.create_table(
        "savings_transactions",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("owner_id", sa.String(50), nullable=False),
        sa.Column("type", sa.String(10), nullable=False),  # credit, debit
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("source", sa.String(30), nullable=False),
        sa.Column("description", sa.String(500), default=""),
        sa.Column("cycle_month", sa.Integer(), nullable=True),
        sa.Column("cycle_year", sa.Integer(), nullable=True),
        sa.Column(
            "related_budget_id",
            sa.Integer(),
            sa.ForeignKey("budgets.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("balance_after", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("amount > 0", name="ck_savings_transactions_amount_positive"),
        sa.CheckConstraint("balance_after >= 0", name="ck_savings_transactions_balance_after"),
    )
    op.create_index(
        "ix_savings_transactions_owner_created", "savings_transactions", ["owner_id", "created_at"]
    )
    op.create_index(
        "ix_savings_transactions_owner_type_created",
        "savings_transactions",
        ["owner_id", "type", "created_at"],
    )
    op.create_index(
        "ix_savings_transactions_owner_source_created",
        "savings_transactions",
        ["owner_id", "source", "created_at"],
    )
    op.create_index(
        "ix_savings_transactions_owner_cycle",
        "savings_transactions",
        ["owner_id", "cycle_month", "cycle_year"],
    )

    # API tokens table for bearer token authentication
    op.create_table(
        "api_tokens",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("token_hash", sa.String(64), unique=True, nullable=False, index=True),
        sa.Column("owner_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("scope", sa.String(20), default="read"),  # read, write, admin
        sa.Column("is_active", sa.Boolean(), default=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("last_used_at", sa.DateTime(timezone=True), nullable=True),
    )


def downgrade() -> None:
    op.drop_table("api_tokens")
    op.drop_table("savings_transactions")
    op.drop_table("savings_transferred_cycles")
    op.drop_table("savings")
    op.drop_table("budgets")
    op.drop_table("transactions")
    op.drop_table("categories")

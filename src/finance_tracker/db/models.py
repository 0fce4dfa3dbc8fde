"""SQLAlchemy ORM models for finance-tracker."""

import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

# Two-decimal money everywhere
Money = Numeric(12, 2)


def utcnow() -> datetime.datetime:
    return datetime.datetime.now(datetime.timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""

    pass


class Category(Base):
    """Income or expense category owned by a user."""

    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # income, expense
    icon: Mapped[str] = mapped_column(String(50), default="category")
    color: Mapped[str] = mapped_column(String(7), default="#808080")
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        UniqueConstraint("owner_id", "name", "type", name="uq_categories_owner_name_type"),
        Index("ix_categories_owner_type", "owner_id", "type"),
    )


class Transaction(Base):
    """Income or expense ledger entry."""

    __tablename__ = "transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # income, expense
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    description: Mapped[str] = mapped_column(Text, default="")
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    category: Mapped[Category] = relationship(lazy="joined")

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),
        Index("ix_transactions_owner_date", "owner_id", "date"),
        Index("ix_transactions_owner_type_date", "owner_id", "type", "date"),
        Index("ix_transactions_owner_category_date", "owner_id", "category_id", "date"),
    )


class Budget(Base):
    """Spending limit for one expense category over a date window."""

    __tablename__ = "budgets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False)
    category_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("categories.id", ondelete="RESTRICT"), nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)

    # Period, inclusive on both ends
    start_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    end_date: Mapped[datetime.date] = mapped_column(Date, nullable=False)
    period_type: Mapped[str] = mapped_column(String(10), default="monthly")
    status: Mapped[str] = mapped_column(String(10), default="upcoming")

    # Legacy cycle, always derived from start_date
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)

    # Savings transfer tracking
    savings_transferred: Mapped[bool] = mapped_column(Boolean, default=False)
    savings_transfer_amount: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"))
    savings_transfer_date: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))

    notes: Mapped[str] = mapped_column(String(500), default="")
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    category: Mapped[Category] = relationship(lazy="joined")

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_budgets_amount_positive"),
        CheckConstraint("end_date > start_date", name="ck_budgets_period"),
        Index("ix_budgets_owner_status", "owner_id", "status"),
        Index("ix_budgets_owner_period", "owner_id", "start_date", "end_date"),
        Index(
            "ix_budgets_owner_category_period",
            "owner_id",
            "category_id",
            "start_date",
            "end_date",
        ),
        Index("ix_budgets_owner_cycle", "owner_id", "month", "year"),
    )


class Savings(Base):
    """The single savings account of an owner."""

    __tablename__ = "savings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    balance: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_deposits: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    total_withdrawals: Mapped[Decimal] = mapped_column(Money, default=Decimal("0"), nullable=False)
    last_transaction_date: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True))
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    transferred_cycles: Mapped[list["TransferredCycle"]] = relationship(
        back_populates="savings",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TransferredCycle.transferred_at",
    )

    __mapper_args__ = {"eager_defaults": True}

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_savings_balance_non_negative"),
    )

    def is_cycle_transferred(self, month: int, year: int) -> bool:
        """Check if a legacy budget cycle has already been transferred."""
        return self.find_cycle(month, year) is not None

    def find_cycle(self, month: int, year: int) -> "TransferredCycle | None":
        for cycle in self.transferred_cycles:
            if cycle.month == month and cycle.year == year:
                return cycle
        return None


class TransferredCycle(Base):
    """Legacy month/year surplus transfer already applied to savings."""

    __tablename__ = "savings_transferred_cycles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    savings_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("savings.id", ondelete="CASCADE"), nullable=False
    )
    # Duplicated from savings so the unique constraint is per owner
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False)
    month: Mapped[int] = mapped_column(Integer, nullable=False)
    year: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    transferred_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    savings: Mapped[Savings] = relationship(back_populates="transferred_cycles")

    __table_args__ = (
        UniqueConstraint("owner_id", "month", "year", name="uq_transferred_cycles_owner_cycle"),
    )


class SavingsTransaction(Base):
    """Append-only audit record of one savings deposit or withdrawal."""

    __tablename__ = "savings_transactions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False)
    type: Mapped[str] = mapped_column(String(10), nullable=False)  # credit, debit
    amount: Mapped[Decimal] = mapped_column(Money, nullable=False)
    source: Mapped[str] = mapped_column(String(30), nullable=False)
    description: Mapped[str] = mapped_column(String(500), default="")
    cycle_month: Mapped[int | None] = mapped_column(Integer)
    cycle_year: Mapped[int | None] = mapped_column(Integer)
    related_budget_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("budgets.id", ondelete="SET NULL")
    )
    balance_after: Mapped[Decimal] = mapped_column(Money, nullable=False)
    created_at: Mapped[datetime.datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_savings_transactions_amount_positive"),
        CheckConstraint("balance_after >= 0", name="ck_savings_transactions_balance_after"),
        Index("ix_savings_transactions_owner_created", "owner_id", "created_at"),
        Index("ix_savings_transactions_owner_type_created", "owner_id", "type", "created_at"),
        Index("ix_savings_transactions_owner_source_created", "owner_id", "source", "created_at"),
        Index("ix_savings_transactions_owner_cycle", "owner_id", "cycle_month", "cycle_year"),
    )

    @property
    def budget_cycle(self) -> dict | None:
        if self.cycle_month is None or self.cycle_year is None:
            return None
        return {"month": self.cycle_month, "year": self.cycle_year}

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.type == "debit" else self.amount


class APIToken(Base):
    """API tokens for HTTP API authentication; each token acts for one owner."""

    __tablename__ = "api_tokens"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    token_hash: Mapped[str] = mapped_column(String(64), unique=True, index=True, nullable=False)
    owner_id: Mapped[str] = mapped_column(String(50), nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    scope: Mapped[str] = mapped_column(String(20), default="read")  # read, write, admin
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    expires_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    last_used_at: Mapped[datetime.datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

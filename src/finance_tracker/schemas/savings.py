"""Savings request/response schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Literal

from pydantic import BaseModel, Field

from .budgets import Budget
from .common import BudgetCycle, Pagination, SavingsSource, SavingsTransactionType


class SavingsAccount(BaseModel):
    """The owner's savings account."""

    balance: str = Field(description="Current savings balance")
    total_deposits: str = Field(description="Lifetime credits")
    total_withdrawals: str = Field(description="Lifetime debits")
    last_transaction_date: datetime | None = Field(default=None, description="Last movement")

    @classmethod
    def from_model(cls, savings) -> "SavingsAccount":
        return cls(
            balance=str(savings.balance),
            total_deposits=str(savings.total_deposits),
            total_withdrawals=str(savings.total_withdrawals),
            last_transaction_date=savings.last_transaction_date,
        )


class SavingsTransaction(BaseModel):
    """One savings audit record."""

    id: int = Field(description="Record identifier")
    type: SavingsTransactionType = Field(description="credit or debit")
    amount: str = Field(description="Amount moved")
    source: SavingsSource = Field(description="Origin of the movement")
    description: str = Field(description="Human-readable description")
    budget_cycle: BudgetCycle | None = Field(default=None, description="Legacy month/year tag")
    related_budget_id: int | None = Field(default=None, description="Budget the movement belongs to")
    balance_after: str = Field(description="Savings balance right after this movement")
    created_at: datetime = Field(description="When the movement happened")

    @classmethod
    def from_model(cls, txn) -> "SavingsTransaction":
        return cls(
            id=txn.id,
            type=txn.type,
            amount=str(txn.amount),
            source=txn.source,
            description=txn.description,
            budget_cycle=txn.budget_cycle,
            related_budget_id=txn.related_budget_id,
            balance_after=str(txn.balance_after),
            created_at=txn.created_at,
        )


class SavingsOverview(BaseModel):
    """Savings account with recent activity."""

    savings: SavingsAccount = Field(description="Savings account")
    recent_transactions: list[SavingsTransaction] = Field(description="Latest movements")
    monthly_deposits: str = Field(description="Credits this calendar month")
    monthly_withdrawals: str = Field(description="Debits this calendar month")
    monthly_net: str = Field(description="Credits minus debits this month")

    @classmethod
    def from_overview(cls, overview) -> "SavingsOverview":
        return cls(
            savings=SavingsAccount.from_model(overview.savings),
            recent_transactions=[
                SavingsTransaction.from_model(t) for t in overview.recent_transactions
            ],
            monthly_deposits=str(overview.monthly_deposits),
            monthly_withdrawals=str(overview.monthly_withdrawals),
            monthly_net=str(overview.monthly_net),
        )


class SavingsTransactionList(BaseModel):
    """One page of savings history."""

    transactions: list[SavingsTransaction] = Field(description="Movements, newest first")
    pagination: Pagination = Field(description="Pagination details")

    @classmethod
    def from_page(cls, page) -> "SavingsTransactionList":
        return cls(
            transactions=[SavingsTransaction.from_model(t) for t in page.transactions],
            pagination=Pagination(
                page=page.page,
                limit=page.limit,
                total=page.total,
                pages=page.pages,
                has_more=page.has_more,
            ),
        )


class MonthlyTotal(BaseModel):
    """Savings total for one (year, month, type)."""

    year: int
    month: int
    type: SavingsTransactionType
    total: str


class SourceTotal(BaseModel):
    """Savings total and count for one (source, type)."""

    source: SavingsSource
    type: SavingsTransactionType
    total: str
    count: int


class TransferredCycle(BaseModel):
    """Legacy month/year surplus transfer already applied."""

    month: int
    year: int
    amount: str
    transferred_at: datetime


class SavingsStatistics(BaseModel):
    """Aggregate savings figures."""

    current_balance: str = Field(description="Current savings balance")
    total_deposits: str = Field(description="Lifetime credits")
    total_withdrawals: str = Field(description="Lifetime debits")
    net_savings: str = Field(description="Deposits minus withdrawals")
    transaction_count: int = Field(description="Number of movements")
    monthly_breakdown: list[MonthlyTotal] = Field(description="Recent monthly totals")
    source_breakdown: list[SourceTotal] = Field(description="Totals by source")
    transferred_cycles: list[TransferredCycle] = Field(description="Legacy months already transferred")

    @classmethod
    def from_statistics(cls, stats) -> "SavingsStatistics":
        return cls(
            current_balance=str(stats.savings.balance),
            total_deposits=str(stats.savings.total_deposits),
            total_withdrawals=str(stats.savings.total_withdrawals),
            net_savings=str(stats.net_savings),
            transaction_count=stats.transaction_count,
            monthly_breakdown=[
                MonthlyTotal(**{**row, "total": str(row["total"])})
                for row in stats.monthly_breakdown
            ],
            source_breakdown=[
                SourceTotal(**{**row, "total": str(row["total"])})
                for row in stats.source_breakdown
            ],
            transferred_cycles=[
                TransferredCycle(
                    month=c.month, year=c.year, amount=str(c.amount), transferred_at=c.transferred_at
                )
                for c in stats.savings.transferred_cycles
            ],
        )


# Sources a client may tag on a direct movement
DepositSource = Literal["budget_surplus", "manual", "goal_contribution", "interest"]
WithdrawSource = Literal["budget_overrun", "manual"]


class DepositRequest(BaseModel):
    """Request body for a direct deposit."""

    amount: Decimal = Field(description="Amount to deposit")
    source: DepositSource = Field(default="manual", description="Origin of the money")
    description: str = Field(default="", max_length=500, description="Optional description")
    budget_cycle: BudgetCycle | None = Field(default=None, description="Legacy month/year tag")


class WithdrawRequest(BaseModel):
    """Request body for a direct withdrawal."""

    amount: Decimal = Field(description="Amount to withdraw")
    source: WithdrawSource = Field(default="manual", description="Reason for the withdrawal")
    description: str = Field(default="", max_length=500, description="Optional description")
    budget_cycle: BudgetCycle | None = Field(default=None, description="Legacy month/year tag")


class ContributionRequest(BaseModel):
    """Request body for a manual contribution from the main balance."""

    amount: Decimal = Field(description="Amount to move into savings")
    description: str = Field(default="", max_length=500, description="Optional description")


class BudgetTransferRequest(BaseModel):
    """Request body for moving a budget's remainder into savings."""

    budget_id: int = Field(description="Budget identifier")


class BudgetOverrunRequest(BaseModel):
    """Request body for covering a budget's overrun from savings."""

    budget_id: int = Field(description="Budget identifier")
    amount: Decimal | None = Field(
        default=None, description="Amount to cover; defaults to the full overrun"
    )


class CycleTransferRequest(BaseModel):
    """Request body for the legacy month surplus transfer."""

    month: int = Field(ge=1, le=12, description="Month (1-12)")
    year: int = Field(ge=2000, le=2100, description="Year")


class CycleOverrunRequest(BaseModel):
    """Request body for the legacy month overrun coverage."""

    amount: Decimal = Field(description="Amount to cover")
    month: int = Field(ge=1, le=12, description="Month (1-12)")
    year: int = Field(ge=2000, le=2100, description="Year")


class BudgetRemaining(BaseModel):
    """Legacy month figures."""

    month: int
    year: int
    total_budget: str
    total_spent: str
    remaining: str
    is_over_budget: bool
    overrun_amount: str

    @classmethod
    def from_remaining(cls, remaining) -> "BudgetRemaining":
        return cls(
            month=remaining.month,
            year=remaining.year,
            total_budget=str(remaining.total_budget),
            total_spent=str(remaining.total_spent),
            remaining=str(remaining.remaining),
            is_over_budget=remaining.is_over_budget,
            overrun_amount=str(remaining.overrun_amount),
        )


class SavingsMovement(BaseModel):
    """Result of any money movement."""

    savings: SavingsAccount = Field(description="Savings account after the movement")
    transaction: SavingsTransaction = Field(description="Audit record written")
    budget: Budget | None = Field(default=None, description="Budget the movement belongs to")
    budget_summary: BudgetRemaining | None = Field(default=None, description="Legacy month figures")

    @classmethod
    def from_result(cls, result) -> "SavingsMovement":
        """Build from a savings or transfer result."""
        budget = getattr(result, "budget", None)
        summary = getattr(result, "budget_summary", None)
        return cls(
            savings=SavingsAccount.from_model(result.savings),
            transaction=SavingsTransaction.from_model(result.transaction),
            budget=Budget.from_spending(budget) if budget is not None else None,
            budget_summary=BudgetRemaining.from_remaining(summary) if summary is not None else None,
        )


class AvailableBalance(BaseModel):
    """Free money on the main balance."""

    available_balance: str = Field(description="Income minus expense minus savings, floored at 0")


class TransferStatus(BaseModel):
    """Whether a legacy month can transfer its surplus or cover its overrun."""

    budget_cycle: BudgetCycle
    budget_remaining: BudgetRemaining
    current_savings: str
    is_already_transferred: bool
    transferred_amount: str | None = None
    can_transfer_surplus: bool
    can_cover_overrun: bool

    @classmethod
    def from_status(cls, status) -> "TransferStatus":
        remaining = status.budget_remaining
        return cls(
            budget_cycle=BudgetCycle(month=remaining.month, year=remaining.year),
            budget_remaining=BudgetRemaining.from_remaining(remaining),
            current_savings=str(status.current_savings),
            is_already_transferred=status.is_already_transferred,
            transferred_amount=(
                str(status.transferred_amount) if status.transferred_amount is not None else None
            ),
            can_transfer_surplus=status.can_transfer_surplus,
            can_cover_overrun=status.can_cover_overrun,
        )

"""Shared enums and common schemas."""

from enum import Enum

from pydantic import BaseModel, Field


class CategoryType(str, Enum):
    """Category and ledger transaction direction."""

    INCOME = "income"
    EXPENSE = "expense"


class PeriodType(str, Enum):
    """How a budget period was chosen."""

    WEEKLY = "weekly"
    MONTHLY = "monthly"
    CUSTOM = "custom"


class BudgetStatus(str, Enum):
    """Budget lifecycle state."""

    UPCOMING = "upcoming"
    ACTIVE = "active"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SavingsTransactionType(str, Enum):
    """Direction of a savings movement."""

    CREDIT = "credit"
    DEBIT = "debit"


class SavingsSource(str, Enum):
    """Origin of a savings movement."""

    BUDGET_SURPLUS = "budget_surplus"
    BUDGET_REMAINDER = "budget_remainder"
    BUDGET_OVERRUN = "budget_overrun"
    MANUAL = "manual"
    GOAL_CONTRIBUTION = "goal_contribution"
    INTEREST = "interest"


class BudgetCycle(BaseModel):
    """Legacy (month, year) budget aggregation window."""

    month: int = Field(ge=1, le=12, description="Month (1-12)")
    year: int = Field(ge=2000, le=2100, description="Year")


class Pagination(BaseModel):
    """Pagination block for list responses."""

    page: int = Field(description="Current page (1-based)")
    limit: int = Field(description="Page size")
    total: int = Field(description="Total matching items")
    pages: int = Field(description="Total number of pages")
    has_more: bool = Field(description="Whether more pages follow")

"""Budget-related schemas."""

from datetime import date, datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from .common import BudgetStatus, PeriodType


class BudgetCategory(BaseModel):
    """Category summary embedded in a budget."""

    model_config = ConfigDict(from_attributes=True)

    id: int = Field(description="Category identifier")
    name: str = Field(description="Category name")
    icon: str | None = Field(default=None, description="Category icon")
    color: str | None = Field(default=None, description="Category color (hex)")


class BudgetCreate(BaseModel):
    """Request body for creating a budget.

    Either ``start_date``/``end_date`` or ``month``/``year`` is required;
    the date pair wins when both are given.
    """

    category_id: int = Field(description="Expense category identifier")
    amount: Decimal = Field(description="Spending limit for the period")
    start_date: date | None = Field(default=None, description="Period start (YYYY-MM-DD)")
    end_date: date | None = Field(default=None, description="Period end, inclusive (YYYY-MM-DD)")
    month: int | None = Field(default=None, ge=1, le=12, description="Legacy month (1-12)")
    year: int | None = Field(default=None, ge=2000, le=2100, description="Legacy year")
    period_type: PeriodType | None = Field(default=None, description="weekly, monthly or custom")
    notes: str = Field(default="", max_length=500, description="Free-form notes")


class BudgetUpdate(BaseModel):
    """Request body for a partial budget update."""

    category_id: int | None = Field(default=None, description="New expense category")
    amount: Decimal | None = Field(default=None, description="New spending limit")
    start_date: date | None = Field(default=None, description="New period start")
    end_date: date | None = Field(default=None, description="New period end, inclusive")
    month: int | None = Field(default=None, ge=1, le=12, description="Legacy month (1-12)")
    year: int | None = Field(default=None, ge=2000, le=2100, description="Legacy year")
    period_type: PeriodType | None = Field(default=None, description="weekly, monthly or custom")
    notes: str | None = Field(default=None, max_length=500, description="Free-form notes")


class Budget(BaseModel):
    """Budget merged with its live spending."""

    id: int = Field(description="Budget identifier")
    category: BudgetCategory = Field(description="Budgeted expense category")
    amount: str = Field(description="Spending limit")
    spent: str = Field(description="Expense recorded within the period")
    remaining: str = Field(description="Amount minus spent; negative when overspent")
    percentage: int = Field(description="Spent as a whole percentage of amount")
    is_over_budget: bool = Field(description="Whether spending exceeds the amount")
    start_date: date = Field(description="Period start")
    end_date: date = Field(description="Period end, inclusive")
    period_type: PeriodType = Field(description="weekly, monthly or custom")
    status: BudgetStatus = Field(description="upcoming, active, completed or cancelled")
    days_remaining: int = Field(description="Days left in the period, today included")
    total_days: int = Field(description="Length of the period in days")
    period_progress: int = Field(description="Elapsed share of the period (0-100)")
    month: int = Field(description="Legacy month derived from start date")
    year: int = Field(description="Legacy year derived from start date")
    savings_transferred: bool = Field(description="Whether the remainder went to savings")
    savings_transfer_amount: str = Field(description="Amount moved to savings")
    savings_transfer_date: datetime | None = Field(default=None, description="When it moved")
    notes: str = Field(default="", description="Free-form notes")
    created_at: datetime | None = Field(default=None, description="When the budget was created")
    updated_at: datetime | None = Field(default=None, description="When the budget last changed")

    @classmethod
    def from_spending(cls, item) -> "Budget":
        """Build from a budget merged with its spending."""
        b = item.budget
        return cls(
            id=b.id,
            category=BudgetCategory.model_validate(b.category),
            amount=str(b.amount),
            spent=str(item.spent),
            remaining=str(item.remaining),
            percentage=item.percentage,
            is_over_budget=item.is_over_budget,
            start_date=b.start_date,
            end_date=b.end_date,
            period_type=b.period_type,
            status=b.status,
            days_remaining=item.days_remaining,
            total_days=item.total_days,
            period_progress=item.period_progress,
            month=b.month,
            year=b.year,
            savings_transferred=b.savings_transferred,
            savings_transfer_amount=str(b.savings_transfer_amount),
            savings_transfer_date=b.savings_transfer_date,
            notes=b.notes or "",
            created_at=b.created_at,
            updated_at=b.updated_at,
        )


class BudgetList(BaseModel):
    """List of budgets."""

    budgets: list[Budget] = Field(description="Budgets ordered by period start")
    total: int = Field(description="Number of budgets returned")


class BudgetSummary(BaseModel):
    """Totals of a legacy month's budgets."""

    month: int = Field(description="Month (1-12)")
    year: int = Field(description="Year")
    total_budget: str = Field(description="Sum of budget amounts")
    total_spent: str = Field(description="Sum of spending")
    total_remaining: str = Field(description="Total budget minus total spent")
    overall_percentage: int = Field(description="Spent as a whole percentage of budget")
    budget_count: int = Field(description="Number of budgets")
    over_budget_count: int = Field(description="Number of overspent budgets")
    budgets: list[Budget] = Field(default_factory=list, description="Budgets of the month")

    @classmethod
    def from_summary(cls, summary) -> "BudgetSummary":
        return cls(
            month=summary.month,
            year=summary.year,
            total_budget=str(summary.total_budget),
            total_spent=str(summary.total_spent),
            total_remaining=str(summary.total_remaining),
            overall_percentage=summary.overall_percentage,
            budget_count=len(summary.budgets),
            over_budget_count=summary.over_budget_count,
            budgets=[Budget.from_spending(item) for item in summary.budgets],
        )


class PresetPeriod(BaseModel):
    """Suggested budget period."""

    key: str = Field(description="Preset identifier")
    label: str = Field(description="Display label")
    period_type: PeriodType = Field(description="weekly or monthly")
    start_date: date = Field(description="Period start")
    end_date: date = Field(description="Period end, inclusive")

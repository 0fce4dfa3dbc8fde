"""Budget lifecycle: creation, validation, status transitions and spending views."""

import logging
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Budget, Category
from ..db.repositories import BudgetRepository, CategoryRepository
from ..db.unit_of_work import atomic
from ..exceptions import (
    ImmutableBudgetError,
    InvalidAmountError,
    InvalidCategoryTypeError,
    InvalidPeriodError,
    NotFoundError,
    OverlappingBudgetError,
    TransferLockedError,
)
from ..schemas.common import BudgetStatus, CategoryType, PeriodType
from . import periods
from .ledger import LedgerQuery
from .money import to_money, whole_percent

logger = logging.getLogger(__name__)

_PERIOD_FIELDS = ("start_date", "end_date", "month", "year")


@dataclass
class BudgetSpending:
    """A budget merged with its live spending."""

    budget: Budget
    spent: Decimal
    today: date

    @property
    def remaining(self) -> Decimal:
        return self.budget.amount - self.spent

    @property
    def percentage(self) -> int:
        return whole_percent(self.spent, self.budget.amount)

    @property
    def is_over_budget(self) -> bool:
        return self.spent > self.budget.amount

    @property
    def overrun(self) -> Decimal:
        return max(self.spent - self.budget.amount, Decimal("0"))

    @property
    def days_remaining(self) -> int:
        b = self.budget
        return periods.days_remaining(b.start_date, b.end_date, b.status, self.today)

    @property
    def total_days(self) -> int:
        return (self.budget.end_date - self.budget.start_date).days + 1

    @property
    def period_progress(self) -> int:
        b = self.budget
        return periods.period_progress(b.start_date, b.end_date, b.status, self.today)


@dataclass
class MonthlyBudgetSummary:
    """Budgets of a legacy month with their totals."""

    month: int
    year: int
    budgets: list[BudgetSpending]

    @property
    def total_budget(self) -> Decimal:
        return sum((b.budget.amount for b in self.budgets), Decimal("0"))

    @property
    def total_spent(self) -> Decimal:
        return sum((b.spent for b in self.budgets), Decimal("0"))

    @property
    def total_remaining(self) -> Decimal:
        return self.total_budget - self.total_spent

    @property
    def overall_percentage(self) -> int:
        if self.total_budget <= 0:
            return 0
        return whole_percent(self.total_spent, self.total_budget)

    @property
    def over_budget_count(self) -> int:
        return sum(1 for b in self.budgets if b.is_over_budget)


class BudgetService:
    """Owns budgets: validation, overlap detection and lazy status refresh.

    Status is recomputed from the clock before every read that depends on
    it, so callers never observe a stale lifecycle state.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], date] = date.today):
        self.session = session
        self.clock = clock
        self.repo = BudgetRepository(session)
        self.categories = CategoryRepository(session)
        self.ledger = LedgerQuery(session)

    async def with_spending(self, budget: Budget) -> BudgetSpending:
        """Merge a budget with its live spending over its own period."""
        spent = await self.ledger.calculate_spending(
            budget.owner_id, budget.category_id, budget.start_date, budget.end_date
        )
        return BudgetSpending(budget=budget, spent=spent, today=self.clock())

    async def _expense_category(self, category_id: int, owner_id: str) -> Category:
        # Row lock serialises budget writes per category
        category = await self.categories.get_for_owner(category_id, owner_id, for_update=True)
        if category is None:
            raise NotFoundError("Category", category_id)
        if category.type != CategoryType.EXPENSE.value:
            raise InvalidCategoryTypeError(category_id, category.type)
        return category

    async def _ensure_no_overlap(
        self,
        owner_id: str,
        category_id: int,
        start_date: date,
        end_date: date,
        exclude_id: int | None = None,
    ) -> None:
        conflict = await self.repo.find_overlapping(
            owner_id, category_id, start_date, end_date, exclude_id=exclude_id
        )
        if conflict is not None:
            raise OverlappingBudgetError(conflict.id, conflict.start_date, conflict.end_date)

    async def create_or_update(
        self,
        owner_id: str,
        category_id: int,
        amount: Decimal,
        start_date: date | None = None,
        end_date: date | None = None,
        month: int | None = None,
        year: int | None = None,
        period_type: PeriodType | str | None = None,
        notes: str = "",
    ) -> BudgetSpending:
        """Create a budget for an expense category over a period.

        Any budget of the same category that is not cancelled and whose
        window intersects the new one is a conflict, including one with the
        identical window or one that has already completed.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)

        async with atomic(self.session):
            category = await self._expense_category(category_id, owner_id)
            period = periods.resolve_period(start_date, end_date, month, year, period_type)

            await self._ensure_no_overlap(
                owner_id, category.id, period.start_date, period.end_date
            )

            status = periods.status_for(period.start_date, period.end_date, self.clock())
            budget = await self.repo.add(
                Budget(
                    owner_id=owner_id,
                    category=category,
                    amount=amount,
                    start_date=period.start_date,
                    end_date=period.end_date,
                    period_type=period.period_type.value,
                    status=status.value,
                    month=period.start_date.month,
                    year=period.start_date.year,
                    savings_transferred=False,
                    savings_transfer_amount=Decimal("0"),
                    notes=notes,
                )
            )
            logger.info(
                f"Created budget {budget.id} for owner {owner_id}, category {category.name}, "
                f"{period.start_date} to {period.end_date} ({status.value})"
            )

        return await self.with_spending(budget)

    async def update(
        self, budget_id: int, owner_id: str, changes: Mapping[str, Any]
    ) -> BudgetSpending:
        """Apply partial changes to a budget.

        Accepted keys: ``amount``, ``category_id``, ``start_date``,
        ``end_date``, ``month``, ``year``, ``period_type``, ``notes``.
        """
        async with atomic(self.session):
            budget = await self.repo.get_for_owner(budget_id, owner_id, for_update=True)
            if budget is None:
                raise NotFoundError("Budget", budget_id)
            if budget.savings_transferred:
                raise ImmutableBudgetError(budget.id)

            if changes.get("amount") is not None:
                amount = to_money(changes["amount"])
                if amount <= 0:
                    raise InvalidAmountError(amount)
                budget.amount = amount

            category_changed = (
                changes.get("category_id") is not None
                and changes["category_id"] != budget.category_id
            )
            if category_changed:
                budget.category = await self._expense_category(changes["category_id"], owner_id)

            dates_changed = any(changes.get(field) is not None for field in _PERIOD_FIELDS)
            if dates_changed:
                if changes.get("month") is not None and changes.get("year") is not None:
                    start_date, end_date = periods.month_bounds(changes["month"], changes["year"])
                    budget.period_type = PeriodType.MONTHLY.value
                else:
                    start_date = changes.get("start_date") or budget.start_date
                    end_date = changes.get("end_date") or budget.end_date
                if end_date <= start_date:
                    raise InvalidPeriodError(start_date, end_date)
                budget.start_date = start_date
                budget.end_date = end_date
                budget.month = start_date.month
                budget.year = start_date.year

            if changes.get("period_type") is not None:
                budget.period_type = PeriodType(changes["period_type"]).value
            if changes.get("notes") is not None:
                budget.notes = changes["notes"]

            if dates_changed or category_changed:
                await self._ensure_no_overlap(
                    owner_id,
                    budget.category.id,
                    budget.start_date,
                    budget.end_date,
                    exclude_id=budget.id,
                )

            if dates_changed and budget.status != BudgetStatus.CANCELLED.value:
                budget.status = periods.status_for(
                    budget.start_date, budget.end_date, self.clock()
                ).value

            await self.session.flush()
            logger.info(f"Updated budget {budget.id} for owner {owner_id}")

        return await self.with_spending(budget)

    async def refresh_statuses(self, owner_id: str) -> tuple[int, int]:
        """Bring every budget of the owner up to date with the clock.

        Idempotent. Returns the number of budgets activated and completed.
        """
        async with atomic(self.session):
            activated, completed = await self.repo.refresh_statuses(owner_id, self.clock())
        if activated or completed:
            logger.info(
                f"Refreshed budget statuses for owner {owner_id}: "
                f"{activated} activated, {completed} completed"
            )
        return activated, completed

    async def get_by_id(self, budget_id: int, owner_id: str) -> BudgetSpending:
        """Get a single budget with spending info."""
        await self.refresh_statuses(owner_id)
        budget = await self.repo.get_for_owner(budget_id, owner_id)
        if budget is None:
            raise NotFoundError("Budget", budget_id)
        return await self.with_spending(budget)

    async def get_all(
        self,
        owner_id: str,
        status: BudgetStatus | str | None = None,
        month: int | None = None,
        year: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        include_all: bool = False,
    ) -> list[BudgetSpending]:
        """List budgets; without filters only upcoming and active ones."""
        await self.refresh_statuses(owner_id)

        statuses = None
        if status is not None:
            statuses = [BudgetStatus(status).value]
        elif not include_all and month is None and year is None and not (start_date or end_date):
            statuses = [BudgetStatus.UPCOMING.value, BudgetStatus.ACTIVE.value]

        budgets = await self.repo.get_all(
            owner_id,
            statuses=statuses,
            month=month,
            year=year,
            start_date=start_date,
            end_date=end_date,
        )
        return [await self.with_spending(b) for b in budgets]

    async def get_active_budgets(self, owner_id: str) -> list[BudgetSpending]:
        """Budgets whose period contains today."""
        return await self.get_all(owner_id, status=BudgetStatus.ACTIVE)

    async def get_ended_for_transfer(self, owner_id: str) -> list[BudgetSpending]:
        """Completed, not yet transferred budgets with money left over."""
        completed = await self.get_all(owner_id, status=BudgetStatus.COMPLETED)
        return [
            item
            for item in completed
            if not item.budget.savings_transferred and item.remaining > 0
        ]

    async def get_overrun_budgets(self, owner_id: str) -> list[BudgetSpending]:
        """Active budgets whose spending exceeds their amount."""
        active = await self.get_active_budgets(owner_id)
        return [item for item in active if item.is_over_budget]

    async def get_monthly_summary(self, owner_id: str, month: int, year: int) -> MonthlyBudgetSummary:
        """Budgets of a legacy month and their totals."""
        budgets = await self.get_all(owner_id, month=month, year=year)
        return MonthlyBudgetSummary(month=month, year=year, budgets=budgets)

    def get_preset_periods(self) -> list[dict]:
        """Common periods offered when creating a budget."""
        return periods.preset_periods(self.clock())

    async def delete(self, budget_id: int, owner_id: str) -> None:
        """Delete a budget that has not been transferred to savings."""
        async with atomic(self.session):
            budget = await self.repo.get_for_owner(budget_id, owner_id, for_update=True)
            if budget is None:
                raise NotFoundError("Budget", budget_id)
            if budget.savings_transferred:
                raise TransferLockedError(budget.id)
            await self.repo.delete(budget)
        logger.info(f"Deleted budget {budget_id} for owner {owner_id}")

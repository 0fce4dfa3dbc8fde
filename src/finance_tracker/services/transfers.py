"""Money movements between budgets, the main balance and savings."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ..db.models import Budget, Savings, SavingsTransaction
from ..db.repositories import BudgetRepository
from ..db.unit_of_work import atomic
from ..exceptions import (
    AlreadyTransferredError,
    InsufficientAvailableBalanceError,
    InsufficientSavingsError,
    InvalidAmountError,
    NotFoundError,
    NotOverrunError,
    NothingToTransferError,
)
from ..schemas.common import BudgetCycle, BudgetStatus, SavingsSource
from . import periods
from .budgets import BudgetService, BudgetSpending
from .ledger import LedgerQuery
from .money import to_money
from .savings import SavingsService

logger = logging.getLogger(__name__)


@dataclass
class BudgetRemaining:
    """Legacy month figures: all budgets of the month against all expenses."""

    month: int
    year: int
    total_budget: Decimal
    total_spent: Decimal

    @property
    def remaining(self) -> Decimal:
        return self.total_budget - self.total_spent

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0

    @property
    def overrun_amount(self) -> Decimal:
        return -self.remaining if self.remaining < 0 else Decimal("0")


@dataclass
class TransferResult:
    """Outcome of a transfer: savings state, audit record and budget context."""

    savings: Savings
    transaction: SavingsTransaction
    budget: BudgetSpending | None = None
    budget_summary: BudgetRemaining | None = None


@dataclass
class TransferStatus:
    """Whether a legacy month can transfer its surplus or cover its overrun."""

    budget_remaining: BudgetRemaining
    current_savings: Decimal
    is_already_transferred: bool
    transferred_amount: Decimal | None

    @property
    def can_transfer_surplus(self) -> bool:
        return self.budget_remaining.remaining > 0 and not self.is_already_transferred

    @property
    def can_cover_overrun(self) -> bool:
        return (
            self.budget_remaining.is_over_budget
            and self.current_savings >= self.budget_remaining.overrun_amount
        )


class TransferService:
    """Orchestrates surplus transfers, overrun coverage and manual contributions.

    Every workflow runs inside one transaction: reading the budget and its
    spending, checking sufficiency, moving the money and marking the budget
    either all apply or none do.
    """

    def __init__(self, session: AsyncSession, clock: Callable[[], date] = date.today):
        self.session = session
        self.clock = clock
        self.budgets = BudgetService(session, clock=clock)
        self.savings = SavingsService(session)
        self.ledger = LedgerQuery(session)
        self.budget_repo = BudgetRepository(session)

    async def _load_budget(self, owner_id: str, budget_id: int) -> Budget:
        budget = await self.budget_repo.get_for_owner(budget_id, owner_id, for_update=True)
        if budget is None:
            raise NotFoundError("Budget", budget_id)
        return budget

    def _describe(self, budget: Budget) -> str:
        return f"{budget.category.name} ({periods.format_period(budget.start_date, budget.end_date)})"

    async def transfer_budget_remainder(self, owner_id: str, budget_id: int) -> TransferResult:
        """Move what is left of a budget into savings and lock the budget.

        The deposit and the budget mark share one transaction; if marking
        fails the deposit is rolled back with it.
        """
        async with atomic(self.session):
            await self.budgets.refresh_statuses(owner_id)
            budget = await self._load_budget(owner_id, budget_id)
            if budget.savings_transferred:
                raise AlreadyTransferredError(budget.id, budget.savings_transfer_amount)

            spending = await self.budgets.with_spending(budget)
            if spending.remaining <= 0:
                raise NothingToTransferError(spending.remaining)

            result = await self.savings.deposit(
                owner_id,
                spending.remaining,
                SavingsSource.BUDGET_REMAINDER,
                f"Budget remainder from {self._describe(budget)}",
                related_budget_id=budget.id,
            )

            budget.savings_transferred = True
            budget.savings_transfer_amount = result.transaction.amount
            budget.savings_transfer_date = datetime.now(timezone.utc)
            await self.session.flush()

        logger.info(
            f"Transferred remainder {result.transaction.amount} of budget {budget.id} "
            f"to savings for owner {owner_id}"
        )
        return TransferResult(
            savings=result.savings, transaction=result.transaction, budget=spending
        )

    async def cover_budget_overrun_by_id(
        self, owner_id: str, budget_id: int, amount: Decimal | None = None
    ) -> TransferResult:
        """Withdraw from savings to cover a budget's overspend.

        Covers the full overrun unless a smaller ``amount`` is requested.
        """
        if amount is not None:
            amount = to_money(amount)
            if amount <= 0:
                raise InvalidAmountError(amount)

        async with atomic(self.session):
            budget = await self._load_budget(owner_id, budget_id)
            spending = await self.budgets.with_spending(budget)
            overrun = spending.spent - budget.amount
            if overrun <= 0:
                raise NotOverrunError(budget.id, spending.spent, budget.amount)

            cover_amount = min(amount, overrun) if amount is not None else overrun

            savings = await self.savings.repo.get_or_create(owner_id, for_update=True)
            if savings.balance < cover_amount:
                raise InsufficientSavingsError(savings.balance, cover_amount)

            result = await self.savings.withdraw(
                owner_id,
                cover_amount,
                SavingsSource.BUDGET_OVERRUN,
                f"Overrun coverage for {self._describe(budget)}",
                related_budget_id=budget.id,
            )

        logger.info(
            f"Covered {cover_amount} of budget {budget.id} overrun from savings for owner {owner_id}"
        )
        return TransferResult(
            savings=result.savings, transaction=result.transaction, budget=spending
        )

    async def get_available_balance(self, owner_id: str) -> Decimal:
        """Lifetime income minus lifetime expense minus what is already saved."""
        savings = await self.savings.get_or_create(owner_id)
        income = await self.ledger.total_income(owner_id)
        expenses = await self.ledger.total_expenses(owner_id)
        return to_money(max(income - expenses - savings.balance, Decimal("0")))

    async def manual_contribution(
        self, owner_id: str, amount: Decimal, description: str = ""
    ) -> TransferResult:
        """Move free money from the main balance into savings."""
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)

        async with atomic(self.session):
            # Lock first so concurrent contributions see each other's balance
            await self.savings.repo.get_or_create(owner_id, for_update=True)
            available = await self.get_available_balance(owner_id)
            if amount > available:
                raise InsufficientAvailableBalanceError(available, amount)

            result = await self.savings.deposit(
                owner_id,
                amount,
                SavingsSource.MANUAL,
                description or "Manual savings contribution",
            )

        return TransferResult(savings=result.savings, transaction=result.transaction)

    async def calculate_budget_remaining(self, owner_id: str, month: int, year: int) -> BudgetRemaining:
        """Sum of the month's budgets against the month's total expense."""
        start_date, end_date = periods.month_bounds(month, year)
        budgets = await self.budget_repo.get_all(owner_id, month=month, year=year)
        total_budget = sum(
            (b.amount for b in budgets if b.status != BudgetStatus.CANCELLED.value),
            Decimal("0"),
        )
        total_spent = await self.ledger.total_expenses(owner_id, start_date, end_date)
        return BudgetRemaining(
            month=month, year=year, total_budget=total_budget, total_spent=total_spent
        )

    async def transfer_budget_surplus(self, owner_id: str, month: int, year: int) -> TransferResult:
        """Legacy monthly flow: move the month's unspent budget into savings once."""
        async with atomic(self.session):
            summary = await self.calculate_budget_remaining(owner_id, month, year)
            if summary.remaining <= 0:
                raise NothingToTransferError(summary.remaining)

            result = await self.savings.deposit(
                owner_id,
                summary.remaining,
                SavingsSource.BUDGET_SURPLUS,
                f"Budget surplus from {periods.month_name(month)} {year}",
                budget_cycle=BudgetCycle(month=month, year=year),
            )

        return TransferResult(
            savings=result.savings, transaction=result.transaction, budget_summary=summary
        )

    async def cover_budget_overrun(
        self, owner_id: str, amount: Decimal, month: int, year: int
    ) -> TransferResult:
        """Legacy monthly flow: withdraw a given amount to cover the month's overspend."""
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)

        async with atomic(self.session):
            savings = await self.savings.repo.get_or_create(owner_id, for_update=True)
            if savings.balance < amount:
                raise InsufficientSavingsError(savings.balance, amount)

            result = await self.savings.withdraw(
                owner_id,
                amount,
                SavingsSource.BUDGET_OVERRUN,
                f"Budget overrun coverage for {periods.month_name(month)} {year}",
                budget_cycle=BudgetCycle(month=month, year=year),
            )

        return TransferResult(savings=result.savings, transaction=result.transaction)

    async def get_transfer_status(self, owner_id: str, month: int, year: int) -> TransferStatus:
        """Read-only view used to decide whether to offer a legacy transfer."""
        savings = await self.savings.get_or_create(owner_id)
        remaining = await self.calculate_budget_remaining(owner_id, month, year)
        cycle = savings.find_cycle(month, year)

        return TransferStatus(
            budget_remaining=remaining,
            current_savings=savings.balance,
            is_already_transferred=cycle is not None,
            transferred_amount=cycle.amount if cycle is not None else None,
        )

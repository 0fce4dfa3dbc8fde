"""Savings ledger: the owner's savings account and its audit log."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import settings
from ..db.models import Savings, SavingsTransaction, TransferredCycle
from ..db.repositories import SavingsRepository
from ..db.unit_of_work import atomic
from ..exceptions import DuplicateTransferError, InsufficientBalanceError, InvalidAmountError
from ..schemas.common import BudgetCycle, SavingsSource, SavingsTransactionType
from .money import to_money

logger = logging.getLogger(__name__)


def default_description(
    source: SavingsSource | str,
    type: SavingsTransactionType | str,
    budget_cycle: BudgetCycle | None = None,
) -> str:
    """Description used when the caller does not supply one."""
    cycle = f" for {budget_cycle.month}/{budget_cycle.year}" if budget_cycle else ""
    is_credit = SavingsTransactionType(type) is SavingsTransactionType.CREDIT

    descriptions = {
        SavingsSource.BUDGET_SURPLUS: f"Budget surplus transfer{cycle}",
        SavingsSource.BUDGET_REMAINDER: "Budget remainder transfer",
        SavingsSource.BUDGET_OVERRUN: f"Budget overrun coverage{cycle}",
        SavingsSource.MANUAL: "Manual deposit" if is_credit else "Manual withdrawal",
        SavingsSource.GOAL_CONTRIBUTION: "Savings goal contribution",
        SavingsSource.INTEREST: "Interest earned",
    }
    return descriptions.get(SavingsSource(source), "Savings transaction")


@dataclass
class SavingsResult:
    """Savings account state after a movement, with its audit record."""

    savings: Savings
    transaction: SavingsTransaction


@dataclass
class SavingsOverview:
    """Savings account with recent activity."""

    savings: Savings
    recent_transactions: list[SavingsTransaction]
    monthly_deposits: Decimal
    monthly_withdrawals: Decimal

    @property
    def monthly_net(self) -> Decimal:
        return self.monthly_deposits - self.monthly_withdrawals


@dataclass
class TransactionPage:
    """One page of savings history, newest first."""

    transactions: list[SavingsTransaction]
    page: int
    limit: int
    total: int

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit) if self.limit else 0

    @property
    def has_more(self) -> bool:
        return self.page * self.limit < self.total


@dataclass
class SavingsStatistics:
    """Aggregate figures over the savings history."""

    savings: Savings
    transaction_count: int
    monthly_breakdown: list[dict] = field(default_factory=list)
    source_breakdown: list[dict] = field(default_factory=list)

    @property
    def net_savings(self) -> Decimal:
        return self.savings.total_deposits - self.savings.total_withdrawals


def _months_ago(moment: datetime, months: int) -> datetime:
    month_index = moment.year * 12 + (moment.month - 1) - months
    year, month = divmod(month_index, 12)
    return moment.replace(year=year, month=month + 1, day=1, hour=0, minute=0, second=0, microsecond=0)


class SavingsService:
    """Deposit and withdraw primitives over the owner's savings account.

    Each movement locks the savings row, updates the balance and counters,
    and appends exactly one audit record inside a single transaction, so
    ``balance == total_deposits - total_withdrawals`` holds after every
    commit and after every rollback.
    """

    def __init__(self, session: AsyncSession):
        self.session = session
        self.repo = SavingsRepository(session)

    async def get_or_create(self, owner_id: str) -> Savings:
        """Get or create the owner's savings account."""
        return await self.repo.get_or_create(owner_id)

    async def deposit(
        self,
        owner_id: str,
        amount: Decimal,
        source: SavingsSource | str,
        description: str = "",
        budget_cycle: BudgetCycle | None = None,
        related_budget_id: int | None = None,
    ) -> SavingsResult:
        """Add money to savings.

        A legacy ``budget_surplus`` deposit tagged with a cycle is accepted
        once per (month, year); the unique constraint on transferred cycles
        rejects a concurrent second writer that slipped past the check.
        """
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)
        source = SavingsSource(source)
        tracks_cycle = source is SavingsSource.BUDGET_SURPLUS and budget_cycle is not None

        async with atomic(self.session):
            savings = await self.repo.get_or_create(owner_id, for_update=True)

            if tracks_cycle and savings.is_cycle_transferred(budget_cycle.month, budget_cycle.year):
                raise DuplicateTransferError(budget_cycle.month, budget_cycle.year)

            now = datetime.now(timezone.utc)
            savings.balance += amount
            savings.total_deposits += amount
            savings.last_transaction_date = now

            if tracks_cycle:
                savings.transferred_cycles.append(
                    TransferredCycle(
                        owner_id=owner_id,
                        month=budget_cycle.month,
                        year=budget_cycle.year,
                        amount=amount,
                        transferred_at=now,
                    )
                )

            transaction = await self.repo.add_transaction(
                self._record(
                    owner_id,
                    SavingsTransactionType.CREDIT,
                    amount,
                    source,
                    description,
                    budget_cycle,
                    related_budget_id,
                    savings.balance,
                    now,
                )
            )

            try:
                await self.session.flush()
            except IntegrityError as exc:
                if tracks_cycle:
                    raise DuplicateTransferError(budget_cycle.month, budget_cycle.year) from exc
                raise

        logger.info(
            f"Deposited {amount} to savings of owner {owner_id} ({source.value}), "
            f"balance {savings.balance}"
        )
        return SavingsResult(savings=savings, transaction=transaction)

    async def withdraw(
        self,
        owner_id: str,
        amount: Decimal,
        source: SavingsSource | str,
        description: str = "",
        budget_cycle: BudgetCycle | None = None,
        related_budget_id: int | None = None,
    ) -> SavingsResult:
        """Take money out of savings; the balance never goes negative."""
        amount = to_money(amount)
        if amount <= 0:
            raise InvalidAmountError(amount)
        source = SavingsSource(source)

        async with atomic(self.session):
            savings = await self.repo.get_or_create(owner_id, for_update=True)

            if savings.balance < amount:
                raise InsufficientBalanceError(savings.balance, amount)

            now = datetime.now(timezone.utc)
            savings.balance -= amount
            savings.total_withdrawals += amount
            savings.last_transaction_date = now

            transaction = await self.repo.add_transaction(
                self._record(
                    owner_id,
                    SavingsTransactionType.DEBIT,
                    amount,
                    source,
                    description,
                    budget_cycle,
                    related_budget_id,
                    savings.balance,
                    now,
                )
            )
            await self.session.flush()

        logger.info(
            f"Withdrew {amount} from savings of owner {owner_id} ({source.value}), "
            f"balance {savings.balance}"
        )
        return SavingsResult(savings=savings, transaction=transaction)

    @staticmethod
    def _record(
        owner_id: str,
        type: SavingsTransactionType,
        amount: Decimal,
        source: SavingsSource,
        description: str,
        budget_cycle: BudgetCycle | None,
        related_budget_id: int | None,
        balance_after: Decimal,
        created_at: datetime,
    ) -> SavingsTransaction:
        return SavingsTransaction(
            owner_id=owner_id,
            type=type.value,
            amount=amount,
            source=source.value,
            description=description or default_description(source, type, budget_cycle),
            cycle_month=budget_cycle.month if budget_cycle else None,
            cycle_year=budget_cycle.year if budget_cycle else None,
            related_budget_id=related_budget_id,
            balance_after=balance_after,
            created_at=created_at,
        )

    async def get_savings(self, owner_id: str) -> SavingsOverview:
        """Savings account with its latest movements and this month's totals."""
        savings = await self.repo.get_or_create(owner_id)
        recent = await self.repo.get_transactions(owner_id, limit=settings.savings_recent_count)

        start_of_month = _months_ago(datetime.now(timezone.utc), 0)
        totals = await self.repo.totals_by_type(owner_id, since=start_of_month)

        return SavingsOverview(
            savings=savings,
            recent_transactions=list(recent),
            monthly_deposits=totals.get(SavingsTransactionType.CREDIT.value, Decimal("0")),
            monthly_withdrawals=totals.get(SavingsTransactionType.DEBIT.value, Decimal("0")),
        )

    async def get_transactions(
        self,
        owner_id: str,
        page: int = 1,
        limit: int | None = None,
        type: SavingsTransactionType | str | None = None,
        source: SavingsSource | str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> TransactionPage:
        """Paginated savings history with optional filters."""
        page = max(page, 1)
        limit = limit or settings.savings_history_page_size
        filters = {
            "type": SavingsTransactionType(type).value if type else None,
            "source": SavingsSource(source).value if source else None,
            "start_date": start_date,
            "end_date": end_date,
        }

        total = await self.repo.count_transactions(owner_id, **filters)
        transactions = await self.repo.get_transactions(
            owner_id, limit=limit, offset=(page - 1) * limit, **filters
        )
        return TransactionPage(
            transactions=list(transactions), page=page, limit=limit, total=total
        )

    async def get_statistics(self, owner_id: str) -> SavingsStatistics:
        """Totals, monthly and per-source breakdowns of the savings history."""
        savings = await self.repo.get_or_create(owner_id)
        since = _months_ago(datetime.now(timezone.utc), settings.savings_statistics_months)

        return SavingsStatistics(
            savings=savings,
            transaction_count=await self.repo.count_transactions(owner_id),
            monthly_breakdown=await self.repo.monthly_breakdown(owner_id, since=since),
            source_breakdown=await self.repo.source_breakdown(owner_id),
        )

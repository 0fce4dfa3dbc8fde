"""Repository layer for database operations."""

from collections.abc import Sequence
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import Select, extract, func, select, update
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..schemas.common import BudgetStatus
from .models import (
    APIToken,
    Budget,
    Category,
    Savings,
    SavingsTransaction,
    Transaction,
)

_NON_TERMINAL = (BudgetStatus.UPCOMING.value, BudgetStatus.ACTIVE.value)


class BaseRepository:
    """Base repository with common operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _insert(self, model):
        """Dialect-specific INSERT supporting ON CONFLICT clauses."""
        if self.session.get_bind().dialect.name == "sqlite":
            return sqlite_insert(model)
        return pg_insert(model)


class CategoryRepository(BaseRepository):
    """Repository for categories."""

    async def create(
        self,
        owner_id: str,
        name: str,
        type: str,
        icon: str = "category",
        color: str = "#808080",
        is_default: bool = False,
    ) -> Category:
        """Create a category."""
        category = Category(
            owner_id=owner_id,
            name=name,
            type=type,
            icon=icon,
            color=color,
            is_default=is_default,
        )
        self.session.add(category)
        await self.session.flush()
        return category

    async def get_for_owner(
        self, category_id: int, owner_id: str, for_update: bool = False
    ) -> Category | None:
        """Get a category by ID if it belongs to the owner."""
        query = select(Category).where(
            Category.id == category_id, Category.owner_id == owner_id
        )
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_all(self, owner_id: str, type: str | None = None) -> Sequence[Category]:
        """Get all categories of an owner, defaults first."""
        query = (
            select(Category)
            .where(Category.owner_id == owner_id)
            .order_by(Category.is_default.desc(), Category.name)
        )
        if type:
            query = query.where(Category.type == type)
        result = await self.session.execute(query)
        return result.scalars().all()


class TransactionRepository(BaseRepository):
    """Repository for income and expense ledger entries."""

    async def create(
        self,
        owner_id: str,
        category_id: int,
        type: str,
        amount: Decimal,
        date: date,
        description: str = "",
    ) -> Transaction:
        """Record a ledger entry."""
        transaction = Transaction(
            owner_id=owner_id,
            category_id=category_id,
            type=type,
            amount=amount,
            date=date,
            description=description,
        )
        self.session.add(transaction)
        await self.session.flush()
        return transaction

    async def sum_amount(
        self,
        owner_id: str,
        type: str,
        category_id: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> Decimal:
        """Sum amounts of one transaction type, dates inclusive."""
        query = select(func.sum(Transaction.amount)).where(
            Transaction.owner_id == owner_id,
            Transaction.type == type,
        )
        if category_id is not None:
            query = query.where(Transaction.category_id == category_id)
        if start_date:
            query = query.where(Transaction.date >= start_date)
        if end_date:
            query = query.where(Transaction.date <= end_date)

        result = await self.session.execute(query)
        return result.scalar() or Decimal("0")


class BudgetRepository(BaseRepository):
    """Repository for budgets."""

    async def add(self, budget: Budget) -> Budget:
        """Persist a new budget."""
        self.session.add(budget)
        await self.session.flush()
        return budget

    async def delete(self, budget: Budget) -> None:
        """Delete a budget."""
        await self.session.delete(budget)
        await self.session.flush()

    async def get_for_owner(
        self, budget_id: int, owner_id: str, for_update: bool = False
    ) -> Budget | None:
        """Get a budget by ID if it belongs to the owner."""
        query = select(Budget).where(Budget.id == budget_id, Budget.owner_id == owner_id)
        if for_update:
            query = query.with_for_update(of=Budget)
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one_or_none()

    async def get_all(
        self,
        owner_id: str,
        statuses: Sequence[str] | None = None,
        month: int | None = None,
        year: int | None = None,
        start_date: date | None = None,
        end_date: date | None = None,
        category_id: int | None = None,
    ) -> Sequence[Budget]:
        """Get budgets with filters, ordered by period start."""
        query: Select = (
            select(Budget)
            .where(Budget.owner_id == owner_id)
            .order_by(Budget.start_date, Budget.id)
        )

        if statuses:
            query = query.where(Budget.status.in_(statuses))
        if month is not None:
            query = query.where(Budget.month == month)
        if year is not None:
            query = query.where(Budget.year == year)
        # Windows intersecting [start_date, end_date]
        if start_date:
            query = query.where(Budget.end_date >= start_date)
        if end_date:
            query = query.where(Budget.start_date <= end_date)
        if category_id is not None:
            query = query.where(Budget.category_id == category_id)

        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalars().unique().all()

    async def find_overlapping(
        self,
        owner_id: str,
        category_id: int,
        start_date: date,
        end_date: date,
        exclude_id: int | None = None,
    ) -> Budget | None:
        """Find a budget of the category whose window intersects the given one.

        Only cancelled budgets are ignored. A completed budget still owns its
        window, so the same spending is never budgeted or transferred twice.
        """
        query = (
            select(Budget)
            .where(
                Budget.owner_id == owner_id,
                Budget.category_id == category_id,
                Budget.status != BudgetStatus.CANCELLED.value,
                Budget.start_date <= end_date,
                Budget.end_date >= start_date,
            )
            .order_by(Budget.start_date)
            .limit(1)
        )
        if exclude_id is not None:
            query = query.where(Budget.id != exclude_id)
        result = await self.session.execute(query)
        return result.scalars().first()

    async def refresh_statuses(self, owner_id: str, today: date) -> tuple[int, int]:
        """Move budgets forward through their lifecycle.

        Returns the number of budgets activated and completed.
        """
        activated = await self.session.execute(
            update(Budget)
            .where(
                Budget.owner_id == owner_id,
                Budget.status == BudgetStatus.UPCOMING.value,
                Budget.start_date <= today,
                Budget.end_date >= today,
            )
            .values(status=BudgetStatus.ACTIVE.value)
        )
        completed = await self.session.execute(
            update(Budget)
            .where(
                Budget.owner_id == owner_id,
                Budget.status.in_(_NON_TERMINAL),
                Budget.end_date < today,
            )
            .values(status=BudgetStatus.COMPLETED.value)
        )
        return activated.rowcount or 0, completed.rowcount or 0


class SavingsRepository(BaseRepository):
    """Repository for savings accounts and their audit log."""

    async def get_or_create(self, owner_id: str, for_update: bool = False) -> Savings:
        """Get the owner's savings account, creating it on first access.

        Creation is an upsert on the unique owner key, so concurrent first
        access never produces two accounts. ``for_update`` locks the row for
        the rest of the transaction.
        """
        stmt = self._insert(Savings).values(
            owner_id=owner_id,
            balance=Decimal("0"),
            total_deposits=Decimal("0"),
            total_withdrawals=Decimal("0"),
        )
        stmt = stmt.on_conflict_do_nothing(index_elements=["owner_id"])
        await self.session.execute(stmt)

        query = select(Savings).where(Savings.owner_id == owner_id)
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query.execution_options(populate_existing=True))
        return result.scalar_one()

    async def add_transaction(self, transaction: SavingsTransaction) -> SavingsTransaction:
        """Append an audit record."""
        self.session.add(transaction)
        return transaction

    def _transactions_query(
        self,
        owner_id: str,
        type: str | None = None,
        source: str | None = None,
        start_date: datetime | None = None,
        end_date: datetime | None = None,
    ) -> Select:
        query = select(SavingsTransaction).where(SavingsTransaction.owner_id == owner_id)
        if type:
            query = query.where(SavingsTransaction.type == type)
        if source:
            query = query.where(SavingsTransaction.source == source)
        if start_date:
            query = query.where(SavingsTransaction.created_at >= start_date)
        if end_date:
            query = query.where(SavingsTransaction.created_at <= end_date)
        return query

    async def get_transactions(
        self,
        owner_id: str,
        limit: int = 20,
        offset: int = 0,
        **filters,
    ) -> Sequence[SavingsTransaction]:
        """Get audit records newest first."""
        query = (
            self._transactions_query(owner_id, **filters)
            .order_by(SavingsTransaction.created_at.desc(), SavingsTransaction.id.desc())
            .offset(offset)
            .limit(limit)
        )
        result = await self.session.execute(query)
        return result.scalars().all()

    async def count_transactions(self, owner_id: str, **filters) -> int:
        """Count audit records matching filters."""
        subquery = self._transactions_query(owner_id, **filters).subquery()
        result = await self.session.execute(select(func.count()).select_from(subquery))
        return result.scalar() or 0

    async def totals_by_type(self, owner_id: str, since: datetime) -> dict[str, Decimal]:
        """Sum credits and debits recorded since a point in time."""
        result = await self.session.execute(
            select(SavingsTransaction.type, func.sum(SavingsTransaction.amount))
            .where(
                SavingsTransaction.owner_id == owner_id,
                SavingsTransaction.created_at >= since,
            )
            .group_by(SavingsTransaction.type)
        )
        return {row[0]: row[1] or Decimal("0") for row in result.all()}

    async def monthly_breakdown(self, owner_id: str, since: datetime) -> list[dict]:
        """Totals per (year, month, type) since a point in time."""
        year_col = extract("year", SavingsTransaction.created_at)
        month_col = extract("month", SavingsTransaction.created_at)
        result = await self.session.execute(
            select(
                year_col.label("year"),
                month_col.label("month"),
                SavingsTransaction.type,
                func.sum(SavingsTransaction.amount).label("total"),
            )
            .where(
                SavingsTransaction.owner_id == owner_id,
                SavingsTransaction.created_at >= since,
            )
            .group_by(year_col, month_col, SavingsTransaction.type)
            .order_by(year_col, month_col)
        )
        return [
            {
                "year": int(row.year),
                "month": int(row.month),
                "type": row.type,
                "total": row.total,
            }
            for row in result.all()
        ]

    async def source_breakdown(self, owner_id: str) -> list[dict]:
        """Totals and counts per (source, type) over the whole history."""
        result = await self.session.execute(
            select(
                SavingsTransaction.source,
                SavingsTransaction.type,
                func.sum(SavingsTransaction.amount).label("total"),
                func.count().label("count"),
            )
            .where(SavingsTransaction.owner_id == owner_id)
            .group_by(SavingsTransaction.source, SavingsTransaction.type)
            .order_by(SavingsTransaction.source, SavingsTransaction.type)
        )
        return [dict(row._mapping) for row in result.all()]


class APITokenRepository(BaseRepository):
    """Repository for API tokens."""

    async def create(
        self,
        token_hash: str,
        owner_id: str,
        name: str,
        scope: str = "read",
        expires_at: datetime | None = None,
    ) -> APIToken:
        """Create a new API token."""
        token = APIToken(
            token_hash=token_hash,
            owner_id=owner_id,
            name=name,
            scope=scope,
            is_active=True,
            expires_at=expires_at,
        )
        self.session.add(token)
        await self.session.flush()
        return token

    async def get_by_hash(self, token_hash: str) -> APIToken | None:
        """Get an active, unexpired API token by its hash."""
        result = await self.session.execute(
            select(APIToken).where(
                APIToken.token_hash == token_hash,
                APIToken.is_active == True,  # noqa: E712
            )
        )
        token = result.scalar_one_or_none()

        # Check expiration
        if token and token.expires_at and token.expires_at < datetime.now(token.expires_at.tzinfo):
            return None

        return token

    async def get_all(self, include_inactive: bool = False) -> Sequence[APIToken]:
        """Get all API tokens."""
        query = select(APIToken).order_by(APIToken.created_at.desc())
        if not include_inactive:
            query = query.where(APIToken.is_active == True)  # noqa: E712
        result = await self.session.execute(query)
        return result.scalars().all()

    async def update_last_used(self, token_id: int) -> None:
        """Update the last_used_at timestamp for a token."""
        await self.session.execute(
            update(APIToken)
            .where(APIToken.id == token_id)
            .values(last_used_at=func.now())
        )

    async def revoke(self, token_id: int) -> bool:
        """Revoke (deactivate) an API token."""
        result = await self.session.execute(
            update(APIToken)
            .where(APIToken.id == token_id)
            .values(is_active=False)
        )
        return (result.rowcount or 0) > 0

"""Read-only aggregation over the income/expense ledger."""

from datetime import date
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from ..db.repositories import TransactionRepository
from ..schemas.common import CategoryType


class LedgerQuery:
    """Live sums over recorded transactions. Nothing is cached."""

    def __init__(self, session: AsyncSession):
        self.repo = TransactionRepository(session)

    async def calculate_spending(
        self, owner_id: str, category_id: int, start_date: date, end_date: date
    ) -> Decimal:
        """Total expense for a category within [start_date, end_date]."""
        return await self.repo.sum_amount(
            owner_id,
            CategoryType.EXPENSE.value,
            category_id=category_id,
            start_date=start_date,
            end_date=end_date,
        )

    async def total_expenses(
        self, owner_id: str, start_date: date | None = None, end_date: date | None = None
    ) -> Decimal:
        """Total expense across all categories, optionally within a window."""
        return await self.repo.sum_amount(
            owner_id, CategoryType.EXPENSE.value, start_date=start_date, end_date=end_date
        )

    async def total_income(self, owner_id: str) -> Decimal:
        """Lifetime income."""
        return await self.repo.sum_amount(owner_id, CategoryType.INCOME.value)

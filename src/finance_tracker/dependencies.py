"""Service factories for FastAPI dependency injection."""

from collections.abc import Callable
from datetime import date
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .db.engine import get_db
from .services import BudgetService, SavingsService, TransferService


def get_clock() -> Callable[[], date]:
    """Source of today's date; overridden in tests."""
    return date.today


async def get_budget_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Callable[[], date], Depends(get_clock)],
) -> BudgetService:
    return BudgetService(session, clock=clock)


async def get_savings_service(
    session: Annotated[AsyncSession, Depends(get_db)],
) -> SavingsService:
    return SavingsService(session)


async def get_transfer_service(
    session: Annotated[AsyncSession, Depends(get_db)],
    clock: Annotated[Callable[[], date], Depends(get_clock)],
) -> TransferService:
    return TransferService(session, clock=clock)

"""Shared fixtures: a throwaway SQLite database and seeded owner data."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from finance_tracker.db.models import Base
from finance_tracker.db.repositories import CategoryRepository, TransactionRepository

OWNER = "owner-1"
OTHER_OWNER = "owner-2"
TODAY = date(2024, 2, 15)


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock():
    return lambda: TODAY


async def _category(session, name, type):
    category = await CategoryRepository(session).create(OWNER, name, type)
    await session.commit()
    # Detached, so a rollback in a test does not expire it
    session.expunge(category)
    return category


@pytest.fixture
async def groceries(session):
    return await _category(session, "Groceries", "expense")


@pytest.fixture
async def dining(session):
    return await _category(session, "Dining", "expense")


@pytest.fixture
async def salary(session):
    return await _category(session, "Salary", "income")


@pytest.fixture
def record(session):
    """Record a ledger entry and commit it."""

    async def _record(category, amount, day, owner_id=OWNER):
        txn = await TransactionRepository(session).create(
            owner_id, category.id, category.type, Decimal(str(amount)), day
        )
        await session.commit()
        return txn

    return _record

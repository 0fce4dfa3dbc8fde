"""Tests for the savings ledger."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import event, func, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from finance_tracker.db.models import Base, Savings
from finance_tracker.db.repositories import SavingsRepository
from finance_tracker.exceptions import (
    DuplicateTransferError,
    InsufficientBalanceError,
    InvalidAmountError,
)
from finance_tracker.schemas.common import BudgetCycle
from finance_tracker.services.savings import SavingsService

from .conftest import OTHER_OWNER, OWNER


@pytest.fixture
def service(session):
    return SavingsService(session)


def assert_consistent(savings):
    assert savings.balance == savings.total_deposits - savings.total_withdrawals
    assert savings.balance >= 0


async def test_account_is_created_on_first_access(service):
    savings = await service.get_or_create(OWNER)
    again = await service.get_or_create(OWNER)

    assert savings.id == again.id
    assert savings.balance == Decimal("0")
    assert_consistent(savings)


@pytest.fixture
async def writers(tmp_path):
    """Session factory whose transactions take the SQLite write lock up front.

    A second writer then waits for the first to commit instead of failing
    on a lock upgrade.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'writers.db'}", connect_args={"timeout": 30}
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _autocommit_driver(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _begin_immediate(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


async def test_concurrent_first_access_creates_one_account(writers):
    async def first_access():
        async with writers() as session:
            savings = await SavingsRepository(session).get_or_create(OWNER)
            await session.commit()
            return savings.id

    ids = await asyncio.gather(first_access(), first_access())

    async with writers() as session:
        count = await session.scalar(
            select(func.count()).select_from(Savings).where(Savings.owner_id == OWNER)
        )
    assert count == 1
    assert ids[0] == ids[1]


async def test_accounts_are_per_owner(service):
    await service.deposit(OWNER, Decimal("10"), "manual")
    other = await service.get_or_create(OTHER_OWNER)
    assert other.balance == Decimal("0")


async def test_deposit_withdraw_round_trip(service):
    deposited = await service.deposit(OWNER, Decimal("100.00"), "manual", "paycheck")
    withdrawn = await service.withdraw(OWNER, Decimal("100.00"), "manual")

    assert withdrawn.savings.balance == Decimal("0")
    assert withdrawn.savings.total_deposits == Decimal("100.00")
    assert withdrawn.savings.total_withdrawals == Decimal("100.00")
    assert_consistent(withdrawn.savings)

    assert deposited.transaction.type == "credit"
    assert deposited.transaction.balance_after == Decimal("100.00")
    assert deposited.transaction.description == "paycheck"
    assert withdrawn.transaction.type == "debit"
    assert withdrawn.transaction.balance_after == Decimal("0")
    assert withdrawn.transaction.description == "Manual withdrawal"

    page = await service.get_transactions(OWNER)
    assert [t.signed_amount for t in page.transactions] == [Decimal("-100.00"), Decimal("100.00")]


async def test_amounts_are_rounded_to_cents(service):
    result = await service.deposit(OWNER, Decimal("10.005"), "interest")
    assert result.transaction.amount == Decimal("10.01")
    assert result.savings.balance == Decimal("10.01")


@pytest.mark.parametrize("amount", [Decimal("0"), Decimal("-5"), Decimal("0.004")])
async def test_non_positive_amounts_are_rejected(service, amount):
    with pytest.raises(InvalidAmountError):
        await service.deposit(OWNER, amount, "manual")
    with pytest.raises(InvalidAmountError):
        await service.withdraw(OWNER, amount, "manual")


async def test_withdraw_never_overdraws(service):
    await service.deposit(OWNER, Decimal("20"), "manual")

    with pytest.raises(InsufficientBalanceError) as exc_info:
        await service.withdraw(OWNER, Decimal("20.01"), "manual")
    assert exc_info.value.context == {"available": "20.00", "required": "20.01"}

    savings = await service.get_or_create(OWNER)
    assert savings.balance == Decimal("20.00")
    assert_consistent(savings)


async def test_failed_audit_write_rolls_back_balance(service, monkeypatch):
    await service.deposit(OWNER, Decimal("50"), "manual")

    async def broken_add_transaction(self, transaction):
        raise RuntimeError("storage failure")

    monkeypatch.setattr(SavingsRepository, "add_transaction", broken_add_transaction)
    with pytest.raises(RuntimeError):
        await service.deposit(OWNER, Decimal("30"), "manual")
    with pytest.raises(RuntimeError):
        await service.withdraw(OWNER, Decimal("10"), "manual")
    monkeypatch.undo()

    savings = await service.get_or_create(OWNER)
    assert savings.balance == Decimal("50.00")
    assert savings.total_deposits == Decimal("50.00")
    assert savings.total_withdrawals == Decimal("0")
    assert_consistent(savings)
    assert (await service.get_transactions(OWNER)).total == 1


async def test_surplus_cycle_is_accepted_once(service):
    cycle = BudgetCycle(month=1, year=2024)
    first = await service.deposit(OWNER, Decimal("40"), "budget_surplus", budget_cycle=cycle)
    assert first.transaction.budget_cycle == {"month": 1, "year": 2024}
    assert first.transaction.description == "Budget surplus transfer for 1/2024"

    with pytest.raises(DuplicateTransferError):
        await service.deposit(OWNER, Decimal("40"), "budget_surplus", budget_cycle=cycle)

    savings = await service.get_or_create(OWNER)
    assert savings.balance == Decimal("40.00")
    assert [(c.month, c.year) for c in savings.transferred_cycles] == [(1, 2024)]


async def test_cycle_race_is_caught_by_unique_constraint(service, monkeypatch):
    cycle = BudgetCycle(month=2, year=2024)
    await service.deposit(OWNER, Decimal("25"), "budget_surplus", budget_cycle=cycle)

    # A concurrent writer that read the cycle list before the first commit
    monkeypatch.setattr(Savings, "is_cycle_transferred", lambda self, month, year: False)
    with pytest.raises(DuplicateTransferError):
        await service.deposit(OWNER, Decimal("25"), "budget_surplus", budget_cycle=cycle)
    monkeypatch.undo()

    savings = await service.get_or_create(OWNER)
    assert savings.balance == Decimal("25.00")
    assert_consistent(savings)


async def test_other_sources_ignore_cycles(service):
    cycle = BudgetCycle(month=3, year=2024)
    await service.deposit(OWNER, Decimal("5"), "manual", budget_cycle=cycle)
    await service.deposit(OWNER, Decimal("5"), "manual", budget_cycle=cycle)

    savings = await service.get_or_create(OWNER)
    assert savings.balance == Decimal("10.00")
    assert savings.transferred_cycles == []


async def test_transaction_history_pagination_and_filters(service):
    for amount in ("10", "20", "30"):
        await service.deposit(OWNER, Decimal(amount), "manual")
    await service.withdraw(OWNER, Decimal("5"), "budget_overrun")

    first = await service.get_transactions(OWNER, page=1, limit=3)
    assert first.total == 4
    assert first.pages == 2
    assert first.has_more is True
    assert first.transactions[0].amount == Decimal("5.00")

    second = await service.get_transactions(OWNER, page=2, limit=3)
    assert [t.amount for t in second.transactions] == [Decimal("10.00")]
    assert second.has_more is False

    debits = await service.get_transactions(OWNER, type="debit")
    assert debits.total == 1
    assert debits.transactions[0].source == "budget_overrun"


async def test_overview_and_statistics(service):
    await service.deposit(OWNER, Decimal("100"), "manual")
    await service.deposit(OWNER, Decimal("50"), "interest")
    await service.withdraw(OWNER, Decimal("30"), "manual")

    overview = await service.get_savings(OWNER)
    assert overview.savings.balance == Decimal("120.00")
    assert len(overview.recent_transactions) == 3
    assert overview.monthly_deposits == Decimal("150.00")
    assert overview.monthly_withdrawals == Decimal("30.00")
    assert overview.monthly_net == Decimal("120.00")

    stats = await service.get_statistics(OWNER)
    assert stats.transaction_count == 3
    assert stats.net_savings == Decimal("120.00")
    by_source = {(row["source"], row["type"]): row for row in stats.source_breakdown}
    assert by_source[("manual", "credit")]["total"] == Decimal("100.00")
    assert by_source[("manual", "debit")]["count"] == 1
    assert sum(row["total"] for row in stats.monthly_breakdown) == Decimal("180.00")

"""Tests for transfers between budgets, the main balance and savings."""

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.db.repositories import SavingsRepository
from finance_tracker.exceptions import (
    AlreadyTransferredError,
    DuplicateTransferError,
    ImmutableBudgetError,
    InsufficientAvailableBalanceError,
    InsufficientSavingsError,
    InvalidAmountError,
    NotFoundError,
    NotOverrunError,
    NothingToTransferError,
    OverlappingBudgetError,
)
from finance_tracker.services.budgets import BudgetService
from finance_tracker.services.transfers import TransferService

from .conftest import OWNER


@pytest.fixture
def transfers(session, clock):
    return TransferService(session, clock=clock)


@pytest.fixture
def budgets(session, clock):
    return BudgetService(session, clock=clock)


async def balance_of(transfers):
    savings = await transfers.savings.get_or_create(OWNER)
    assert savings.balance == savings.total_deposits - savings.total_withdrawals
    return savings.balance


class TestBudgetRemainder:
    @pytest.fixture
    async def january(self, session, groceries, record):
        # Created mid-January, so it starts out active
        during = BudgetService(session, clock=lambda: date(2024, 1, 10))
        item = await during.create_or_update(
            OWNER, groceries.id, Decimal("300"), date(2024, 1, 1), date(2024, 1, 31)
        )
        await record(groceries, "100.00", date(2024, 1, 3))
        await record(groceries, "150.00", date(2024, 1, 20))
        return item.budget.id

    async def test_scenario_b(self, transfers, budgets, january):
        result = await transfers.transfer_budget_remainder(OWNER, january)

        assert result.transaction.amount == Decimal("50.00")
        assert result.transaction.source == "budget_remainder"
        assert result.transaction.related_budget_id == january
        assert result.transaction.description == (
            "Budget remainder from Groceries (Jan 1 - Jan 31, 2024)"
        )
        assert result.savings.balance == Decimal("50.00")

        budget = result.budget.budget
        assert budget.status == "completed"
        assert budget.savings_transferred is True
        assert budget.savings_transfer_amount == Decimal("50.00")
        assert budget.savings_transfer_date is not None

        assert await budgets.get_ended_for_transfer(OWNER) == []

    async def test_second_transfer_is_rejected(self, transfers, january):
        await transfers.transfer_budget_remainder(OWNER, january)

        with pytest.raises(AlreadyTransferredError) as exc_info:
            await transfers.transfer_budget_remainder(OWNER, january)
        assert exc_info.value.context["transferred_amount"] == "50.00"
        assert await balance_of(transfers) == Decimal("50.00")

    async def test_same_window_cannot_be_transferred_twice(
        self, transfers, budgets, groceries, january
    ):
        await transfers.transfer_budget_remainder(OWNER, january)

        with pytest.raises(OverlappingBudgetError):
            await budgets.create_or_update(
                OWNER, groceries.id, Decimal("300"), date(2024, 1, 1), date(2024, 1, 31)
            )
        assert await balance_of(transfers) == Decimal("50.00")

    async def test_transferred_budget_is_immutable(self, transfers, budgets, january):
        await transfers.transfer_budget_remainder(OWNER, january)
        with pytest.raises(ImmutableBudgetError):
            await budgets.update(january, OWNER, {"amount": Decimal("500")})

    async def test_fully_spent_budget_has_nothing_to_transfer(
        self, transfers, budgets, groceries, january, record
    ):
        await record(groceries, "50.00", date(2024, 1, 31))

        with pytest.raises(NothingToTransferError):
            await transfers.transfer_budget_remainder(OWNER, january)
        assert (await budgets.get_by_id(january, OWNER)).budget.savings_transferred is False
        assert await balance_of(transfers) == Decimal("0")

    async def test_failure_leaves_budget_and_savings_untouched(
        self, transfers, budgets, january, monkeypatch
    ):
        async def broken_add_transaction(self, transaction):
            raise RuntimeError("storage failure")

        monkeypatch.setattr(SavingsRepository, "add_transaction", broken_add_transaction)
        with pytest.raises(RuntimeError):
            await transfers.transfer_budget_remainder(OWNER, january)
        monkeypatch.undo()

        assert (await budgets.get_by_id(january, OWNER)).budget.savings_transferred is False
        assert await balance_of(transfers) == Decimal("0")

    async def test_unknown_budget(self, transfers):
        with pytest.raises(NotFoundError):
            await transfers.transfer_budget_remainder(OWNER, 999)


class TestBudgetOverrun:
    @pytest.fixture
    async def overspent(self, budgets, dining, record):
        item = await budgets.create_or_update(
            OWNER, dining.id, Decimal("100"), date(2024, 2, 1), date(2024, 2, 29)
        )
        await record(dining, "150.00", date(2024, 2, 10))
        return item.budget.id

    async def test_scenario_c(self, transfers, budgets, overspent):
        await transfers.savings.deposit(OWNER, Decimal("80"), "manual")

        overrun = await budgets.get_overrun_budgets(OWNER)
        assert [(i.budget.id, i.overrun) for i in overrun] == [(overspent, Decimal("50.00"))]

        result = await transfers.cover_budget_overrun_by_id(OWNER, overspent)

        assert result.transaction.amount == Decimal("50.00")
        assert result.transaction.type == "debit"
        assert result.transaction.source == "budget_overrun"
        assert result.transaction.related_budget_id == overspent
        assert result.savings.balance == Decimal("30.00")
        assert await balance_of(transfers) == Decimal("30.00")

    @pytest.mark.parametrize("requested,covered", [("20", "20.00"), ("70", "50.00")])
    async def test_requested_amount_is_capped_at_overrun(
        self, transfers, overspent, requested, covered
    ):
        await transfers.savings.deposit(OWNER, Decimal("100"), "manual")

        result = await transfers.cover_budget_overrun_by_id(OWNER, overspent, Decimal(requested))
        assert result.transaction.amount == Decimal(covered)

    async def test_scenario_d(self, transfers, overspent):
        await transfers.savings.deposit(OWNER, Decimal("20"), "manual")

        with pytest.raises(InsufficientSavingsError) as exc_info:
            await transfers.cover_budget_overrun_by_id(OWNER, overspent)

        assert exc_info.value.message == "Insufficient savings. Available: 20.00, Required: 50.00"
        assert await balance_of(transfers) == Decimal("20.00")

    async def test_budget_within_limit(self, transfers, budgets, groceries, record):
        item = await budgets.create_or_update(
            OWNER, groceries.id, Decimal("100"), date(2024, 2, 1), date(2024, 2, 29)
        )
        budget_id = item.budget.id
        await record(groceries, "100.00", date(2024, 2, 2))

        with pytest.raises(NotOverrunError):
            await transfers.cover_budget_overrun_by_id(OWNER, budget_id)

    async def test_invalid_amount(self, transfers, overspent):
        with pytest.raises(InvalidAmountError):
            await transfers.cover_budget_overrun_by_id(OWNER, overspent, Decimal("0"))


class TestManualContribution:
    @pytest.fixture
    async def ledger(self, salary, groceries, record):
        await record(salary, "1000.00", date(2024, 1, 1))
        await record(groceries, "300.00", date(2024, 1, 5))

    async def test_available_balance_excludes_savings(self, transfers, ledger):
        assert await transfers.get_available_balance(OWNER) == Decimal("700.00")

        result = await transfers.manual_contribution(OWNER, Decimal("200"))
        assert result.transaction.source == "manual"
        assert result.transaction.description == "Manual savings contribution"
        assert result.savings.balance == Decimal("200.00")
        assert await transfers.get_available_balance(OWNER) == Decimal("500.00")

    async def test_cannot_contribute_more_than_available(self, transfers, ledger):
        with pytest.raises(InsufficientAvailableBalanceError) as exc_info:
            await transfers.manual_contribution(OWNER, Decimal("700.01"))

        assert exc_info.value.context["available"] == "700.00"
        assert await balance_of(transfers) == Decimal("0")

    async def test_available_balance_is_never_negative(self, transfers, groceries, record):
        await record(groceries, "50.00", date(2024, 1, 5))
        assert await transfers.get_available_balance(OWNER) == Decimal("0")

    async def test_invalid_amount(self, transfers, ledger):
        with pytest.raises(InvalidAmountError):
            await transfers.manual_contribution(OWNER, Decimal("-1"))


class TestLegacyMonth:
    @pytest.fixture
    async def january(self, budgets, groceries, dining, record):
        await budgets.create_or_update(OWNER, groceries.id, Decimal("300"), month=1, year=2024)
        await budgets.create_or_update(OWNER, dining.id, Decimal("100"), month=1, year=2024)
        await record(groceries, "200.00", date(2024, 1, 10))
        await record(dining, "50.00", date(2024, 1, 12))
        await record(dining, "999.00", date(2024, 2, 1))

    async def test_remaining_for_month(self, transfers, january):
        remaining = await transfers.calculate_budget_remaining(OWNER, 1, 2024)
        assert remaining.total_budget == Decimal("400.00")
        assert remaining.total_spent == Decimal("250.00")
        assert remaining.remaining == Decimal("150.00")
        assert remaining.is_over_budget is False

    async def test_surplus_transfer_is_idempotent(self, transfers, january):
        before = await transfers.get_transfer_status(OWNER, 1, 2024)
        assert before.can_transfer_surplus is True
        assert before.is_already_transferred is False

        result = await transfers.transfer_budget_surplus(OWNER, 1, 2024)
        assert result.transaction.amount == Decimal("150.00")
        assert result.transaction.description == "Budget surplus from January 2024"
        assert result.transaction.budget_cycle == {"month": 1, "year": 2024}
        assert result.budget_summary.remaining == Decimal("150.00")

        with pytest.raises(DuplicateTransferError):
            await transfers.transfer_budget_surplus(OWNER, 1, 2024)
        assert await balance_of(transfers) == Decimal("150.00")

        after = await transfers.get_transfer_status(OWNER, 1, 2024)
        assert after.is_already_transferred is True
        assert after.transferred_amount == Decimal("150.00")
        assert after.can_transfer_surplus is False

    async def test_month_without_budgets(self, transfers, january):
        with pytest.raises(NothingToTransferError):
            await transfers.transfer_budget_surplus(OWNER, 3, 2024)

    async def test_overrun_coverage(self, transfers, budgets, groceries, record):
        await budgets.create_or_update(OWNER, groceries.id, Decimal("100"), month=2, year=2024)
        await record(groceries, "150.00", date(2024, 2, 5))
        await transfers.savings.deposit(OWNER, Decimal("60"), "manual")

        status = await transfers.get_transfer_status(OWNER, 2, 2024)
        assert status.budget_remaining.overrun_amount == Decimal("50.00")
        assert status.can_cover_overrun is True
        assert status.can_transfer_surplus is False

        result = await transfers.cover_budget_overrun(OWNER, Decimal("50"), 2, 2024)
        assert result.transaction.budget_cycle == {"month": 2, "year": 2024}
        assert result.savings.balance == Decimal("10.00")

        with pytest.raises(InsufficientSavingsError):
            await transfers.cover_budget_overrun(OWNER, Decimal("50"), 2, 2024)
        assert await balance_of(transfers) == Decimal("10.00")

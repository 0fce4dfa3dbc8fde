"""Pydantic schemas for the finance-tracker API."""

from .budgets import Budget, BudgetCategory, BudgetCreate, BudgetList, BudgetSummary, BudgetUpdate, PresetPeriod
from .common import (
    BudgetCycle,
    BudgetStatus,
    CategoryType,
    Pagination,
    PeriodType,
    SavingsSource,
    SavingsTransactionType,
)
from .savings import (
    AvailableBalance,
    BudgetOverrunRequest,
    BudgetTransferRequest,
    ContributionRequest,
    CycleOverrunRequest,
    CycleTransferRequest,
    DepositRequest,
    SavingsAccount,
    SavingsMovement,
    SavingsOverview,
    SavingsStatistics,
    SavingsTransaction,
    SavingsTransactionList,
    TransferStatus,
    TransferredCycle,
    WithdrawRequest,
)

__all__ = [
    # Common
    "BudgetCycle",
    "BudgetStatus",
    "CategoryType",
    "Pagination",
    "PeriodType",
    "SavingsSource",
    "SavingsTransactionType",
    # Budgets
    "Budget",
    "BudgetCategory",
    "BudgetCreate",
    "BudgetList",
    "BudgetSummary",
    "BudgetUpdate",
    "PresetPeriod",
    # Savings
    "AvailableBalance",
    "BudgetOverrunRequest",
    "BudgetTransferRequest",
    "ContributionRequest",
    "CycleOverrunRequest",
    "CycleTransferRequest",
    "DepositRequest",
    "SavingsAccount",
    "SavingsMovement",
    "SavingsOverview",
    "SavingsStatistics",
    "SavingsTransaction",
    "SavingsTransactionList",
    "TransferStatus",
    "TransferredCycle",
    "WithdrawRequest",
]

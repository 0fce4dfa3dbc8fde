"""Domain services: ledger queries, budgets, savings and transfers."""

from .budgets import BudgetService, BudgetSpending, MonthlyBudgetSummary
from .ledger import LedgerQuery
from .savings import SavingsService, default_description
from .transfers import BudgetRemaining, TransferResult, TransferService, TransferStatus

__all__ = [
    "BudgetRemaining",
    "BudgetService",
    "BudgetSpending",
    "LedgerQuery",
    "MonthlyBudgetSummary",
    "SavingsService",
    "TransferResult",
    "TransferService",
    "TransferStatus",
    "default_description",
]

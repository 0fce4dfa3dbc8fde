"""Database module for finance-tracker."""

from .models import (
    APIToken,
    Base,
    Budget,
    Category,
    Savings,
    SavingsTransaction,
    Transaction,
    TransferredCycle,
)
from .unit_of_work import atomic

__all__ = [
    "atomic",
    "Base",
    "APIToken",
    "Budget",
    "Category",
    "Savings",
    "SavingsTransaction",
    "Transaction",
    "TransferredCycle",
]

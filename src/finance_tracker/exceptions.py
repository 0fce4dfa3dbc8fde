"""Business errors and their HTTP exception handlers."""

import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class FinanceTrackerError(Exception):
    """Base exception for recoverable business-rule violations.

    Keyword arguments are kept as ``context`` and returned to the client
    alongside the message, so a caller can render a precise explanation.
    """

    code = "error"

    def __init__(self, message: str, status_code: int = 400, **context: Any):
        self.message = message
        self.status_code = status_code
        self.context = context
        super().__init__(message)


class NotFoundError(FinanceTrackerError):
    """Referenced entity does not exist or belongs to another owner."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        super().__init__(
            f"{entity} not found", status_code=404, entity=entity, id=entity_id
        )


class InvalidCategoryTypeError(FinanceTrackerError):
    """Budget attempted against a non-expense category."""

    code = "invalid_category_type"

    def __init__(self, category_id: int, category_type: str):
        super().__init__(
            "Budgets can only be set for expense categories",
            category_id=category_id,
            category_type=category_type,
        )


class MissingPeriodError(FinanceTrackerError):
    """Neither a date range nor a month/year pair was supplied."""

    code = "missing_period"

    def __init__(self):
        super().__init__("Either startDate/endDate or month/year is required")


class InvalidPeriodError(FinanceTrackerError):
    """Period end is not after its start."""

    code = "invalid_period"

    def __init__(self, start_date: Any, end_date: Any):
        super().__init__(
            "End date must be after start date",
            start_date=str(start_date),
            end_date=str(end_date),
        )


class OverlappingBudgetError(FinanceTrackerError):
    """A non-terminal budget already covers part of the requested window."""

    code = "overlapping_budget"

    def __init__(self, budget_id: int, start_date: Any, end_date: Any):
        super().__init__(
            f"A budget for this category already exists from {start_date} to {end_date}",
            conflicting_budget_id=budget_id,
            conflicting_start_date=str(start_date),
            conflicting_end_date=str(end_date),
        )


class ImmutableBudgetError(FinanceTrackerError):
    """Budget was already transferred to savings and can no longer be edited."""

    code = "immutable"

    def __init__(self, budget_id: int):
        super().__init__(
            "Cannot modify a budget whose remainder has been transferred to savings",
            budget_id=budget_id,
        )


class TransferLockedError(FinanceTrackerError):
    """Budget was already transferred to savings and can no longer be deleted."""

    code = "transfer_locked"

    def __init__(self, budget_id: int):
        super().__init__(
            "Cannot delete a budget whose remainder has been transferred to savings",
            budget_id=budget_id,
        )


class AlreadyTransferredError(FinanceTrackerError):
    """Budget remainder has already been moved to savings."""

    code = "already_transferred"

    def __init__(self, budget_id: int, amount: Any):
        super().__init__(
            "Budget remainder has already been transferred to savings",
            budget_id=budget_id,
            transferred_amount=str(amount),
        )


class InvalidAmountError(FinanceTrackerError):
    """Non-positive amount supplied to a money-moving operation."""

    code = "invalid_amount"

    def __init__(self, amount: Any):
        super().__init__("Amount must be greater than 0", amount=str(amount))


class InsufficientBalanceError(FinanceTrackerError):
    """Savings balance cannot cover a withdrawal."""

    code = "insufficient_balance"

    def __init__(self, available: Any, required: Any):
        super().__init__(
            "Insufficient savings balance",
            available=str(available),
            required=str(required),
        )


class InsufficientSavingsError(FinanceTrackerError):
    """Savings balance cannot cover a budget overrun."""

    code = "insufficient_savings"

    def __init__(self, available: Any, required: Any):
        super().__init__(
            f"Insufficient savings. Available: {available:.2f}, Required: {required:.2f}",
            available=str(available),
            required=str(required),
        )


class InsufficientAvailableBalanceError(FinanceTrackerError):
    """Main balance has not enough free money for a manual contribution."""

    code = "insufficient_available_balance"

    def __init__(self, available: Any, required: Any):
        super().__init__(
            f"Insufficient available balance. Available: {available:.2f}, Required: {required:.2f}",
            available=str(available),
            required=str(required),
        )


class DuplicateTransferError(FinanceTrackerError):
    """Legacy budget cycle has already been transferred."""

    code = "duplicate_transfer"

    def __init__(self, month: int, year: int):
        super().__init__(
            f"Budget surplus for {month}/{year} has already been transferred to savings",
            month=month,
            year=year,
        )


class NothingToTransferError(FinanceTrackerError):
    """No positive remainder to move into savings."""

    code = "nothing_to_transfer"

    def __init__(self, remaining: Any):
        super().__init__(
            "No remaining budget to transfer. Budget is either fully spent or overspent.",
            remaining=str(remaining),
        )


class NotOverrunError(FinanceTrackerError):
    """Budget spending does not exceed its amount."""

    code = "not_overrun"

    def __init__(self, budget_id: int, spent: Any, amount: Any):
        super().__init__(
            "Budget is not over its limit",
            budget_id=budget_id,
            spent=str(spent),
            amount=str(amount),
        )


async def finance_tracker_error_handler(request: Request, exc: FinanceTrackerError) -> JSONResponse:
    """Handle business-rule errors."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code, **exc.context},
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.exception(f"Unhandled error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error"},
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register all exception handlers with the FastAPI app."""
    app.add_exception_handler(FinanceTrackerError, finance_tracker_error_handler)
    app.add_exception_handler(Exception, generic_exception_handler)

"""Savings endpoints."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..auth.dependencies import require_scope
from ..dependencies import get_savings_service, get_transfer_service
from ..schemas.common import SavingsSource, SavingsTransactionType
from ..schemas.savings import (
    AvailableBalance,
    BudgetOverrunRequest,
    BudgetTransferRequest,
    ContributionRequest,
    CycleOverrunRequest,
    CycleTransferRequest,
    DepositRequest,
    SavingsMovement,
    SavingsOverview,
    SavingsStatistics,
    SavingsTransactionList,
    TransferStatus,
    WithdrawRequest,
)
from ..services.savings import SavingsService
from ..services.transfers import TransferService

router = APIRouter(prefix="/savings", tags=["Savings"])


@router.get("", response_model=SavingsOverview)
async def get_savings(
    service: Annotated[SavingsService, Depends(get_savings_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> SavingsOverview:
    """Savings account with recent movements and this month's totals."""
    return SavingsOverview.from_overview(await service.get_savings(owner_id))


@router.get("/available-balance", response_model=AvailableBalance)
async def get_available_balance(
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> AvailableBalance:
    """Free money on the main balance that can be contributed to savings."""
    available = await service.get_available_balance(owner_id)
    return AvailableBalance(available_balance=str(available))


@router.get("/transfer-status", response_model=TransferStatus)
async def get_transfer_status(
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
    month: int | None = Query(default=None, ge=1, le=12, description="Month, defaults to current"),
    year: int | None = Query(default=None, ge=2000, le=2100, description="Year, defaults to current"),
) -> TransferStatus:
    """Whether a legacy month can transfer its surplus or cover its overrun."""
    today = service.clock()
    status = await service.get_transfer_status(owner_id, month or today.month, year or today.year)
    return TransferStatus.from_status(status)


@router.get("/transactions", response_model=SavingsTransactionList)
async def get_transactions(
    service: Annotated[SavingsService, Depends(get_savings_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
    page: int = Query(default=1, ge=1, description="Page number (1-based)"),
    limit: int | None = Query(default=None, ge=1, le=100, description="Page size"),
    type: SavingsTransactionType | None = Query(default=None, description="credit or debit"),
    source: SavingsSource | None = Query(default=None, description="Filter by source"),
    start_date: datetime | None = Query(default=None, description="Recorded on or after"),
    end_date: datetime | None = Query(default=None, description="Recorded on or before"),
) -> SavingsTransactionList:
    """Paginated savings history, newest first."""
    result = await service.get_transactions(
        owner_id,
        page=page,
        limit=limit,
        type=type,
        source=source,
        start_date=start_date,
        end_date=end_date,
    )
    return SavingsTransactionList.from_page(result)


@router.get("/statistics", response_model=SavingsStatistics)
async def get_statistics(
    service: Annotated[SavingsService, Depends(get_savings_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> SavingsStatistics:
    """Totals with monthly and per-source breakdowns."""
    return SavingsStatistics.from_statistics(await service.get_statistics(owner_id))


@router.post("/deposit", response_model=SavingsMovement)
async def deposit(
    request: DepositRequest,
    service: Annotated[SavingsService, Depends(get_savings_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Add money to savings."""
    result = await service.deposit(
        owner_id,
        request.amount,
        request.source,
        request.description,
        budget_cycle=request.budget_cycle,
    )
    return SavingsMovement.from_result(result)


@router.post("/withdraw", response_model=SavingsMovement)
async def withdraw(
    request: WithdrawRequest,
    service: Annotated[SavingsService, Depends(get_savings_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Take money out of savings."""
    result = await service.withdraw(
        owner_id,
        request.amount,
        request.source,
        request.description,
        budget_cycle=request.budget_cycle,
    )
    return SavingsMovement.from_result(result)


@router.post("/contribute", response_model=SavingsMovement)
async def contribute(
    request: ContributionRequest,
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Move free money from the main balance into savings."""
    result = await service.manual_contribution(owner_id, request.amount, request.description)
    return SavingsMovement.from_result(result)


@router.post("/transfer-surplus", response_model=SavingsMovement)
async def transfer_surplus(
    request: CycleTransferRequest,
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Move a legacy month's unspent budget into savings."""
    result = await service.transfer_budget_surplus(owner_id, request.month, request.year)
    return SavingsMovement.from_result(result)


@router.post("/transfer-budget-remainder", response_model=SavingsMovement)
async def transfer_budget_remainder(
    request: BudgetTransferRequest,
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Move a budget's remainder into savings and lock the budget."""
    result = await service.transfer_budget_remainder(owner_id, request.budget_id)
    return SavingsMovement.from_result(result)


@router.post("/cover-overrun", response_model=SavingsMovement)
async def cover_overrun(
    request: CycleOverrunRequest,
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Withdraw from savings to cover a legacy month's overspend."""
    result = await service.cover_budget_overrun(
        owner_id, request.amount, request.month, request.year
    )
    return SavingsMovement.from_result(result)


@router.post("/cover-budget-overrun", response_model=SavingsMovement)
async def cover_budget_overrun(
    request: BudgetOverrunRequest,
    service: Annotated[TransferService, Depends(get_transfer_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> SavingsMovement:
    """Withdraw from savings to cover a budget's overspend."""
    result = await service.cover_budget_overrun_by_id(owner_id, request.budget_id, request.amount)
    return SavingsMovement.from_result(result)

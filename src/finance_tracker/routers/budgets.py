"""Budget endpoints."""

from datetime import date
from typing import Annotated

from fastapi import APIRouter, Depends, Query

from ..auth.dependencies import require_scope
from ..dependencies import get_budget_service
from ..schemas.budgets import Budget, BudgetCreate, BudgetList, BudgetSummary, BudgetUpdate, PresetPeriod
from ..schemas.common import BudgetStatus
from ..services.budgets import BudgetService

router = APIRouter(prefix="/budgets", tags=["Budgets"])


def _budget_list(items) -> BudgetList:
    budgets = [Budget.from_spending(item) for item in items]
    return BudgetList(budgets=budgets, total=len(budgets))


@router.get("", response_model=BudgetList)
async def list_budgets(
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
    status: BudgetStatus | None = Query(default=None, description="Filter by lifecycle status"),
    month: int | None = Query(default=None, ge=1, le=12, description="Legacy month filter"),
    year: int | None = Query(default=None, ge=2000, le=2100, description="Legacy year filter"),
    start_date: date | None = Query(default=None, description="Budgets ending on or after (YYYY-MM-DD)"),
    end_date: date | None = Query(default=None, description="Budgets starting on or before (YYYY-MM-DD)"),
    include_all: bool = Query(default=False, description="Include completed and cancelled budgets"),
) -> BudgetList:
    """List budgets. Without filters only upcoming and active budgets are returned."""
    items = await service.get_all(
        owner_id,
        status=status,
        month=month,
        year=year,
        start_date=start_date,
        end_date=end_date,
        include_all=include_all,
    )
    return _budget_list(items)


@router.get("/summary", response_model=BudgetSummary)
async def get_summary(
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
    month: int | None = Query(default=None, ge=1, le=12, description="Month, defaults to current"),
    year: int | None = Query(default=None, ge=2000, le=2100, description="Year, defaults to current"),
) -> BudgetSummary:
    """Totals of a legacy month's budgets."""
    today = service.clock()
    summary = await service.get_monthly_summary(
        owner_id, month or today.month, year or today.year
    )
    return BudgetSummary.from_summary(summary)


@router.get("/presets", response_model=list[PresetPeriod])
async def get_presets(
    service: Annotated[BudgetService, Depends(get_budget_service)],
    _: Annotated[str, Depends(require_scope("read"))],
) -> list[PresetPeriod]:
    """Suggested periods for a new budget."""
    return [PresetPeriod(**preset) for preset in service.get_preset_periods()]


@router.get("/active", response_model=BudgetList)
async def get_active(
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> BudgetList:
    """Budgets whose period contains today."""
    return _budget_list(await service.get_active_budgets(owner_id))


@router.get("/ended-for-transfer", response_model=BudgetList)
async def get_ended_for_transfer(
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> BudgetList:
    """Completed budgets with a remainder not yet moved to savings."""
    return _budget_list(await service.get_ended_for_transfer(owner_id))


@router.get("/overrun", response_model=BudgetList)
async def get_overrun(
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> BudgetList:
    """Active budgets that are overspent."""
    return _budget_list(await service.get_overrun_budgets(owner_id))


@router.get("/{budget_id}", response_model=Budget)
async def get_budget(
    budget_id: int,
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("read"))],
) -> Budget:
    """Get a single budget with its spending."""
    return Budget.from_spending(await service.get_by_id(budget_id, owner_id))


@router.post("", response_model=Budget, status_code=201)
async def create_budget(
    request: BudgetCreate,
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> Budget:
    """Create a budget for an expense category over a period."""
    item = await service.create_or_update(
        owner_id,
        category_id=request.category_id,
        amount=request.amount,
        start_date=request.start_date,
        end_date=request.end_date,
        month=request.month,
        year=request.year,
        period_type=request.period_type,
        notes=request.notes,
    )
    return Budget.from_spending(item)


@router.put("/{budget_id}", response_model=Budget)
async def update_budget(
    budget_id: int,
    update: BudgetUpdate,
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> Budget:
    """Update a budget that has not been transferred to savings."""
    item = await service.update(budget_id, owner_id, update.model_dump(exclude_unset=True))
    return Budget.from_spending(item)


@router.delete("/{budget_id}")
async def delete_budget(
    budget_id: int,
    service: Annotated[BudgetService, Depends(get_budget_service)],
    owner_id: Annotated[str, Depends(require_scope("write"))],
) -> dict:
    """Delete a budget that has not been transferred to savings."""
    await service.delete(budget_id, owner_id)
    return {"message": "Budget deleted", "id": budget_id}

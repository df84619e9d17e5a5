"""
Budget API endpoints
"""
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_owner
from app.application.budgets import BudgetRecord, BudgetStore, group_by_month
from app.application.errors import BudgetError, DuplicateBudget, NotFound
from app.config import get_settings


router = APIRouter(prefix="/api/v1/budgets", tags=["budgets"])


# === Request/Response models ===

class BudgetRequest(BaseModel):
    # Checked by the budget validator (missing_field / invalid_amount)
    amount: Any = None
    category: str | None = None
    month: str | None = None


class BudgetResponse(BaseModel):
    id: str
    category: str
    amount: float
    month: str


class BudgetEnvelope(BaseModel):
    budget: BudgetResponse


class BudgetListResponse(BaseModel):
    budgets: list[BudgetResponse]


class MonthBudgetsResponse(BaseModel):
    month: str
    total_amount: float
    budgets: list[BudgetResponse]


class GroupedBudgetsResponse(BaseModel):
    months: list[MonthBudgetsResponse]


class CategoriesResponse(BaseModel):
    categories: list[str]


# === Helpers ===

def _to_response(b: BudgetRecord) -> BudgetResponse:
    return BudgetResponse(id=b.id, category=b.category, amount=float(b.amount), month=b.month)


def _raise_for(error: BudgetError):
    if isinstance(error, NotFound):
        status_code = 404
    elif isinstance(error, DuplicateBudget):
        status_code = 409
    else:
        status_code = 422
    raise HTTPException(status_code=status_code, detail=error.to_dict())


# === Endpoints ===

@router.get("", response_model=BudgetListResponse)
def get_budgets(
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """All budgets of the current owner, newest month first"""
    budgets = BudgetStore(db).list(owner)
    return BudgetListResponse(budgets=[_to_response(b) for b in budgets])


@router.get("/by-month", response_model=GroupedBudgetsResponse)
def get_budgets_by_month(
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Budgets grouped by month with per-month totals"""
    groups = group_by_month(BudgetStore(db).list(owner))
    return GroupedBudgetsResponse(months=[
        MonthBudgetsResponse(
            month=g.month,
            total_amount=float(g.total_amount),
            budgets=[_to_response(b) for b in g.budgets],
        )
        for g in groups
    ])


@router.get("/categories", response_model=CategoriesResponse)
def get_categories():
    """Category vocabulary offered by the budget form"""
    return CategoriesResponse(categories=get_settings().BUDGET_CATEGORIES)


@router.post("", response_model=BudgetEnvelope, status_code=201)
def set_budget(
    req: BudgetRequest,
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Create a budget for (category, month)"""
    result = BudgetStore(db).add(owner, category=req.category, amount=req.amount, month=req.month)
    if not result.ok:
        _raise_for(result.error)
    return BudgetEnvelope(budget=_to_response(result.budget))


@router.post("/copy-previous", response_model=BudgetListResponse, status_code=201)
def copy_previous_month(
    month: str = Query(...),
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Copy last month's budgets into `month` (existing categories are kept)"""
    result = BudgetStore(db).copy_from_previous_month(owner, month)
    if not result.ok:
        _raise_for(result.error)
    return BudgetListResponse(budgets=[_to_response(b) for b in result.budgets])


@router.put("/{budget_id}", response_model=BudgetEnvelope)
def update_budget(
    budget_id: str,
    req: BudgetRequest,
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Replace category / amount / month of a budget"""
    result = BudgetStore(db).update(owner, budget_id, category=req.category, amount=req.amount, month=req.month)
    if not result.ok:
        _raise_for(result.error)
    return BudgetEnvelope(budget=_to_response(result.budget))


@router.delete("/{budget_id}")
def delete_budget(
    budget_id: str,
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Delete a budget"""
    result = BudgetStore(db).remove(owner, budget_id)
    if not result.ok:
        _raise_for(result.error)
    return {"success": True}

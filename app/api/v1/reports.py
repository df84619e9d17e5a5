"""
Report API endpoints (summary KPIs, chart data, budget status)
"""
from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db, get_current_owner
from app.application.errors import InvalidMonth, TransportFailure
from app.application.reports import ReportService


router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


# === Response models (field names are consumed by the chart components) ===

class SummaryData(BaseModel):
    total_expenses: float
    expense_count: int
    total_budget: float
    remaining_budget: float
    budget_usage_percent: float


class PieChartItem(BaseModel):
    name: str
    value: float
    percentage: float


class BarChartItem(BaseModel):
    category: str
    expenses: float
    budget: float
    over_budget: bool
    variance: float


class TopSpendingCategory(BaseModel):
    category: str
    amount: float


class ReportData(BaseModel):
    pie_chart_data: list[PieChartItem]
    bar_chart_data: list[BarChartItem]
    top_spending_category: TopSpendingCategory | None
    over_budget_categories_count: int
    total_categories: int


class BudgetStatusData(BaseModel):
    level: str
    message: str
    over_budget_categories_count: int
    total_overspend: float
    remaining_budget: float
    usage_level: str


# === Helper ===

def _run(call):
    try:
        return call()
    except InvalidMonth as exc:
        raise HTTPException(status_code=422, detail=exc.to_dict())
    except TransportFailure as exc:
        raise HTTPException(status_code=503, detail={"error": "transport_failure", "message": str(exc)})


# === Endpoints ===

@router.get("/summary", response_model=SummaryData)
def get_summary(
    month: str = Query(...),
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Totals and budget usage for one month"""
    s = _run(lambda: ReportService(db).build_summary(owner, month))
    return SummaryData(
        total_expenses=float(s.total_expenses),
        expense_count=s.expense_count,
        total_budget=float(s.total_budget),
        remaining_budget=float(s.remaining_budget),
        budget_usage_percent=s.budget_usage_percent,
    )


@router.get("/report", response_model=ReportData)
def get_report(
    month: str = Query(...),
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Category breakdowns and chart series for one month"""
    r = _run(lambda: ReportService(db).build_report(owner, month))
    top = r.top_spending_category
    return ReportData(
        pie_chart_data=[
            PieChartItem(name=p.name, value=float(p.value), percentage=p.percentage)
            for p in r.pie_chart_data
        ],
        bar_chart_data=[
            BarChartItem(
                category=b.category,
                expenses=float(b.expenses),
                budget=float(b.budget),
                over_budget=b.over_budget,
                variance=float(b.variance),
            )
            for b in r.bar_chart_data
        ],
        top_spending_category=(
            TopSpendingCategory(category=top.category, amount=float(top.amount)) if top else None
        ),
        over_budget_categories_count=r.over_budget_categories_count,
        total_categories=r.total_categories,
    )


@router.get("/status", response_model=BudgetStatusData)
def get_status(
    month: str = Query(...),
    owner: int = Depends(get_current_owner),
    db: Session = Depends(get_db),
):
    """Over-budget verdict for the month"""
    st = _run(lambda: ReportService(db).build_status(owner, month))
    return BudgetStatusData(
        level=st.level,
        message=st.message,
        over_budget_categories_count=st.over_budget_categories_count,
        total_overspend=float(st.total_overspend),
        remaining_budget=float(st.remaining_budget),
        usage_level=st.usage_level,
    )

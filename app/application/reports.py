"""
Report builder: summary KPIs and chart-ready breakdowns for one month.

build_summary / build_report / build_budget_status are pure functions of the
month's budgets and aggregated expenses. ReportService loads both for an
owner and calls them; nothing here is persisted.
"""
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List

from sqlalchemy.orm import Session

from app.application.budgets import BudgetStore
from app.application.errors import InvalidMonth
from app.application.expenses import ExpenseLedger, MonthExpenses, SqlExpenseLedger, aggregate_month
from app.config import get_settings
from app.domain.category import DEFAULT_BUDGET_CATEGORIES, category_order
from app.domain.month import is_month_key
from app.utils.money import format_money

_ZERO = Decimal("0")

# Usage thresholds (percent of total budget) for the usage indicator
USAGE_WARNING_PCT = 75
USAGE_CRITICAL_PCT = 90


@dataclass(frozen=True)
class Summary:
    total_expenses: Decimal
    expense_count: int
    total_budget: Decimal
    remaining_budget: Decimal
    budget_usage_percent: float


@dataclass(frozen=True)
class PieSlice:
    name: str
    value: Decimal
    percentage: float


@dataclass(frozen=True)
class BarEntry:
    category: str
    expenses: Decimal
    budget: Decimal
    over_budget: bool
    variance: Decimal  # budget - expenses; negative when over


@dataclass(frozen=True)
class TopCategory:
    category: str
    amount: Decimal


@dataclass(frozen=True)
class Report:
    pie_chart_data: List[PieSlice] = field(default_factory=list)
    bar_chart_data: List[BarEntry] = field(default_factory=list)
    top_spending_category: TopCategory | None = None
    over_budget_categories_count: int = 0
    total_categories: int = 0


@dataclass(frozen=True)
class BudgetStatus:
    level: str  # "warning" | "success"
    message: str
    over_budget_categories_count: int
    total_overspend: Decimal
    remaining_budget: Decimal
    usage_level: str


def _percent(part: Decimal, whole: Decimal) -> float:
    """100 * part / whole, or 0 when whole is 0"""
    if whole == 0:
        return 0.0
    return float(part * 100 / whole)


def _budget_totals(budgets: Iterable[Any], month: str | None = None) -> Dict[str, Decimal]:
    totals: Dict[str, Decimal] = {}
    for b in budgets:
        if month is not None and b.month != month:
            continue
        totals[b.category] = totals.get(b.category, _ZERO) + Decimal(b.amount)
    return totals


def usage_level(percent: float) -> str:
    if percent > USAGE_CRITICAL_PCT:
        return "critical"
    if percent > USAGE_WARNING_PCT:
        return "warning"
    return "ok"


def build_summary(budgets: Iterable[Any], expenses: MonthExpenses, month: str | None = None) -> Summary:
    """
    Scalar KPIs for one month.

    `budgets` are objects with `category`, `month` and `amount`; when `month`
    is given, budgets of other months are ignored.
    """
    total_budget = sum(_budget_totals(budgets, month).values(), _ZERO)
    total_expenses = expenses.total

    return Summary(
        total_expenses=total_expenses,
        expense_count=expenses.count,
        total_budget=total_budget,
        remaining_budget=total_budget - total_expenses,
        budget_usage_percent=_percent(total_expenses, total_budget),
    )


def build_report(
    budgets: Iterable[Any],
    expenses: MonthExpenses,
    month: str | None = None,
    categories: Iterable[str] | None = None,
) -> Report:
    """
    Category breakdowns for one month.

    - pie_chart_data: categories with spending, largest first (ties by name)
    - bar_chart_data: every budgeted or spent category, in vocabulary order;
      a category without a budget is never over budget
    - top_spending_category: largest spender, ties by vocabulary order;
      None when nothing was spent
    """
    vocabulary = list(categories) if categories is not None else list(DEFAULT_BUDGET_CATEGORIES)
    budget_totals = _budget_totals(budgets, month)
    spent = dict(expenses.totals)
    total_spent = sum(spent.values(), _ZERO)

    ordered = category_order(vocabulary, set(budget_totals) | set(spent))

    pie = [
        PieSlice(name=c, value=v, percentage=_percent(v, total_spent))
        for c, v in sorted(spent.items(), key=lambda kv: (-kv[1], kv[0]))
        if v != 0
    ]

    bars = []
    for c in ordered:
        exp = spent.get(c, _ZERO)
        budget = budget_totals.get(c, _ZERO)
        bars.append(BarEntry(
            category=c,
            expenses=exp,
            budget=budget,
            over_budget=budget > 0 and exp > budget,
            variance=budget - exp,
        ))

    top = None
    for c in ordered:
        if c not in spent:
            continue
        if top is None or spent[c] > top.amount:
            top = TopCategory(category=c, amount=spent[c])

    return Report(
        pie_chart_data=pie,
        bar_chart_data=bars,
        top_spending_category=top,
        over_budget_categories_count=sum(1 for b in bars if b.over_budget),
        total_categories=len(ordered),
    )


def build_budget_status(summary: Summary, report: Report) -> BudgetStatus:
    """
    Month verdict for the alert banner.

    total_overspend sums the excess of each over-budget category only, so a
    category under budget does not hide another one's overspend.
    """
    overspend = sum(
        (b.expenses - b.budget for b in report.bar_chart_data if b.over_budget),
        _ZERO,
    )
    count = report.over_budget_categories_count

    if count > 0:
        noun = "category" if count == 1 else "categories"
        level = "warning"
        message = (
            f"You exceeded budget in {count} {noun} "
            f"with total overspend of {format_money(overspend)}"
        )
    else:
        level = "success"
        message = "Excellent! You stayed within budget across all categories this month."

    return BudgetStatus(
        level=level,
        message=message,
        over_budget_categories_count=count,
        total_overspend=overspend,
        remaining_budget=summary.remaining_budget,
        usage_level=usage_level(summary.budget_usage_percent),
    )


class ReportService:
    """Build summary / report / status for an owner's month."""

    def __init__(self, db: Session, ledger: ExpenseLedger | None = None, categories: Iterable[str] | None = None):
        self.db = db
        self.categories = list(categories) if categories is not None else get_settings().BUDGET_CATEGORIES
        self.store = BudgetStore(db, categories=self.categories)
        self.ledger = ledger if ledger is not None else SqlExpenseLedger(db)

    def build_summary(self, owner: int, month: str) -> Summary:
        budgets, expenses = self._load(owner, month)
        return build_summary(budgets, expenses, month)

    def build_report(self, owner: int, month: str) -> Report:
        budgets, expenses = self._load(owner, month)
        return build_report(budgets, expenses, month, categories=self.categories)

    def build_status(self, owner: int, month: str) -> BudgetStatus:
        budgets, expenses = self._load(owner, month)
        summary = build_summary(budgets, expenses, month)
        report = build_report(budgets, expenses, month, categories=self.categories)
        return build_budget_status(summary, report)

    def _load(self, owner: int, month: str):
        if not is_month_key(month):
            raise InvalidMonth(f"Month must be YYYY-MM, got {month!r}", field="month")
        budgets = self.store.list_for_month(owner, month)
        expenses = aggregate_month(self.ledger, owner, month)
        return budgets, expenses

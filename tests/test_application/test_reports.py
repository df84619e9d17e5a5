"""
Tests for the report builder (summary, chart data, budget status)
"""
from dataclasses import dataclass
from decimal import Decimal
from unittest.mock import Mock

import pytest

from app.application.budgets import BudgetStore
from app.application.errors import InvalidMonth, TransportFailure
from app.application.expenses import ExpenseRecord, InMemoryExpenseLedger, MonthExpenses, aggregate_month
from app.application.reports import (
    ReportService, build_budget_status, build_report, build_summary, usage_level,
)


_D = Decimal


@dataclass
class _B:
    category: str
    amount: Decimal
    month: str = "2024-05"


def _expenses(*pairs):
    ledger = InMemoryExpenseLedger({(1, "2024-05"): [ExpenseRecord(c, _D(a)) for c, a in pairs]})
    return aggregate_month(ledger, 1, "2024-05")


@pytest.fixture
def scenario():
    """Food 500 budget / 600 spent, Transportation 200 budget / 150 spent"""
    budgets = [_B("Food & Dining", _D("500")), _B("Transportation", _D("200"))]
    expenses = _expenses(("Food & Dining", "400"), ("Food & Dining", "200"), ("Transportation", "150"))
    return budgets, expenses


def test_summary(scenario):
    budgets, expenses = scenario

    s = build_summary(budgets, expenses, "2024-05")

    assert s.total_expenses == _D("750")
    assert s.expense_count == 3
    assert s.total_budget == _D("700")
    assert s.remaining_budget == _D("-50")
    assert s.budget_usage_percent == pytest.approx(107.142857, rel=1e-6)


def test_summary_ignores_other_months(scenario):
    budgets, expenses = scenario
    budgets = budgets + [_B("Travel", _D("1000"), month="2024-04")]

    assert build_summary(budgets, expenses, "2024-05").total_budget == _D("700")


def test_summary_without_budgets_has_zero_usage():
    s = build_summary([], _expenses(("Travel", "10")))

    assert s.total_budget == _D("0")
    assert s.remaining_budget == _D("-10")
    assert s.budget_usage_percent == 0


def test_summary_empty_month():
    s = build_summary([], _expenses())

    assert s.total_expenses == 0
    assert s.expense_count == 0
    assert s.budget_usage_percent == 0


def test_report(scenario):
    budgets, expenses = scenario

    r = build_report(budgets, expenses, "2024-05")

    assert [(p.name, p.value) for p in r.pie_chart_data] == [
        ("Food & Dining", _D("600")), ("Transportation", _D("150")),
    ]
    assert r.pie_chart_data[0].percentage == pytest.approx(80.0)
    assert r.pie_chart_data[1].percentage == pytest.approx(20.0)

    food, transport = r.bar_chart_data
    assert (food.category, food.expenses, food.budget, food.over_budget) == (
        "Food & Dining", _D("600"), _D("500"), True,
    )
    assert food.variance == _D("-100")
    assert (transport.category, transport.over_budget, transport.variance) == (
        "Transportation", False, _D("50"),
    )

    assert r.top_spending_category.category == "Food & Dining"
    assert r.top_spending_category.amount == _D("600")
    assert r.over_budget_categories_count == 1
    assert r.total_categories == 2


def test_report_empty_month():
    r = build_report([], _expenses())

    assert r.pie_chart_data == []
    assert r.bar_chart_data == []
    assert r.top_spending_category is None
    assert r.over_budget_categories_count == 0
    assert r.total_categories == 0


def test_pie_percentages_sum_to_100():
    expenses = _expenses(("Travel", "1"), ("Shopping", "1"), ("Education", "1"))

    r = build_report([], expenses)

    assert sum(p.percentage for p in r.pie_chart_data) == pytest.approx(100.0)


def test_unbudgeted_spending_is_never_over_budget():
    r = build_report([], _expenses(("Travel", "10")))

    (bar,) = r.bar_chart_data
    assert bar.budget == 0
    assert bar.over_budget is False
    assert r.over_budget_categories_count == 0


def test_budget_without_spending_appears_in_bars_only():
    r = build_report([_B("Healthcare", _D("90"))], _expenses())

    assert r.pie_chart_data == []
    assert [(b.category, b.expenses) for b in r.bar_chart_data] == [("Healthcare", _D("0"))]
    assert r.top_spending_category is None


def test_spending_exactly_at_budget_is_not_over():
    r = build_report([_B("Travel", _D("10"))], _expenses(("Travel", "10")))
    assert r.over_budget_categories_count == 0


def test_bars_follow_vocabulary_order_then_unknown_labels():
    budgets = [_B("Travel", _D("10")), _B("Food & Dining", _D("10"))]
    expenses = _expenses(("Legacy", "5"), ("Travel", "1"))

    r = build_report(budgets, expenses)

    assert [b.category for b in r.bar_chart_data] == ["Food & Dining", "Travel", "Legacy"]


def test_top_category_tie_uses_vocabulary_order():
    r = build_report([], _expenses(("Travel", "50"), ("Shopping", "50")))
    assert r.top_spending_category.category == "Shopping"


def test_pie_tie_sorted_by_name():
    r = build_report([], _expenses(("Travel", "50"), ("Shopping", "50")))
    assert [p.name for p in r.pie_chart_data] == ["Shopping", "Travel"]


def test_status_warning(scenario):
    budgets, expenses = scenario
    summary = build_summary(budgets, expenses, "2024-05")
    report = build_report(budgets, expenses, "2024-05")

    status = build_budget_status(summary, report)

    assert status.level == "warning"
    assert status.over_budget_categories_count == 1
    assert status.total_overspend == _D("100")
    assert status.message == "You exceeded budget in 1 category with total overspend of $100.00"
    assert status.usage_level == "critical"


def test_status_success():
    budgets = [_B("Travel", _D("100"))]
    expenses = _expenses(("Travel", "50"))

    status = build_budget_status(build_summary(budgets, expenses), build_report(budgets, expenses))

    assert status.level == "success"
    assert status.total_overspend == 0
    assert status.message.startswith("Excellent!")
    assert status.usage_level == "ok"


def test_status_overspend_sums_only_over_budget_categories():
    budgets = [_B("Travel", _D("100")), _B("Shopping", _D("100")), _B("Education", _D("1000"))]
    expenses = _expenses(("Travel", "150"), ("Shopping", "125.50"), ("Education", "10"))

    status = build_budget_status(build_summary(budgets, expenses), build_report(budgets, expenses))

    assert status.total_overspend == _D("75.50")
    assert "2 categories" in status.message
    assert "$75.50" in status.message


@pytest.mark.parametrize("percent, level", [
    (0, "ok"), (75, "ok"), (75.1, "warning"), (90, "warning"), (90.5, "critical"), (150, "critical"),
])
def test_usage_level(percent, level):
    assert usage_level(percent) == level


# --- ReportService over the store and a ledger ---

def test_report_service(db_session, sample_account_id):
    store = BudgetStore(db_session)
    store.add(sample_account_id, category="Food & Dining", amount="500", month="2024-05")
    store.add(sample_account_id, category="Transportation", amount="200", month="2024-05")
    store.add(sample_account_id, category="Travel", amount="300", month="2024-04")

    ledger = InMemoryExpenseLedger()
    ledger.add(sample_account_id, "2024-05", "Food & Dining", "600")
    ledger.add(sample_account_id, "2024-05", "Transportation", "150")

    service = ReportService(db_session, ledger=ledger)

    summary = service.build_summary(sample_account_id, "2024-05")
    assert summary.total_budget == _D("700")
    assert summary.total_expenses == _D("750")

    report = service.build_report(sample_account_id, "2024-05")
    assert report.over_budget_categories_count == 1

    status = service.build_status(sample_account_id, "2024-05")
    assert status.level == "warning"


def test_report_service_is_owner_scoped(db_session):
    store = BudgetStore(db_session)
    store.add(2, category="Travel", amount="300", month="2024-05")

    summary = ReportService(db_session, ledger=InMemoryExpenseLedger()).build_summary(1, "2024-05")

    assert summary.total_budget == 0


def test_report_service_invalid_month(db_session):
    with pytest.raises(InvalidMonth):
        ReportService(db_session, ledger=InMemoryExpenseLedger()).build_summary(1, "May")


def test_report_service_propagates_transport_failure(db_session):
    ledger = Mock()
    ledger.expenses_for_month.side_effect = TransportFailure("ledger down")

    with pytest.raises(TransportFailure):
        ReportService(db_session, ledger=ledger).build_report(1, "2024-05")


def test_report_service_reads_sql_ledger_by_default(db_session, add_expense, sample_account_id):
    from datetime import datetime

    add_expense(sample_account_id, "Travel", "40", datetime(2024, 5, 3))

    summary = ReportService(db_session).build_summary(sample_account_id, "2024-05")

    assert summary.total_expenses == _D("40")
    assert summary.expense_count == 1

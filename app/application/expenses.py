"""
Expense aggregation over the external ledger.

The core never writes expenses. It asks a ledger for one owner's expenses of
one month and groups them by category.
"""
import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Iterable, List, Protocol, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.application.errors import TransportFailure
from app.domain.month import month_bounds
from app.infrastructure.db.models import ExpenseModel

logger = logging.getLogger(__name__)

_ZERO = Decimal("0")


@dataclass(frozen=True)
class ExpenseRecord:
    category: str
    amount: Decimal


@dataclass(frozen=True)
class MonthExpenses:
    totals: Dict[str, Decimal]  # category -> sum, only categories with expenses
    count: int
    total: Decimal


class ExpenseLedger(Protocol):
    def expenses_for_month(self, owner: int, month: str) -> Sequence[ExpenseRecord]:
        ...


class SqlExpenseLedger:
    """Reads the `expenses` table maintained by the expense service."""

    def __init__(self, db: Session):
        self.db = db

    def expenses_for_month(self, owner: int, month: str) -> List[ExpenseRecord]:
        start, end = month_bounds(month)
        try:
            rows = (
                self.db.query(ExpenseModel.category, ExpenseModel.amount)
                .filter(
                    ExpenseModel.account_id == owner,
                    ExpenseModel.occurred_at >= start,
                    ExpenseModel.occurred_at < end,
                )
                .order_by(ExpenseModel.occurred_at.asc(), ExpenseModel.expense_id.asc())
                .all()
            )
        except SQLAlchemyError as exc:
            logger.exception("Expense ledger query failed for account %s, month %s", owner, month)
            raise TransportFailure(f"Expense ledger unavailable: {exc}") from exc

        return [ExpenseRecord(category=category, amount=Decimal(amount)) for category, amount in rows]


class InMemoryExpenseLedger:
    """Ledger backed by a dict {(owner, month): [ExpenseRecord, ...]}"""

    def __init__(self, data: Dict[tuple, Iterable[ExpenseRecord]] | None = None):
        self._data = {key: list(items) for key, items in (data or {}).items()}

    def add(self, owner: int, month: str, category: str, amount) -> None:
        self._data.setdefault((owner, month), []).append(
            ExpenseRecord(category=category, amount=Decimal(str(amount)))
        )

    def expenses_for_month(self, owner: int, month: str) -> List[ExpenseRecord]:
        return list(self._data.get((owner, month), []))


def group_by_category(expenses: Iterable[ExpenseRecord]) -> Dict[str, Decimal]:
    """Sum amounts per category, keeping first-encounter order."""
    totals: Dict[str, Decimal] = {}
    for e in expenses:
        totals[e.category] = totals.get(e.category, _ZERO) + Decimal(e.amount)
    return totals


def aggregate_month(ledger: ExpenseLedger, owner: int, month: str) -> MonthExpenses:
    expenses = ledger.expenses_for_month(owner, month)
    totals = group_by_category(expenses)
    return MonthExpenses(
        totals=totals,
        count=len(expenses),
        total=sum(totals.values(), _ZERO),
    )

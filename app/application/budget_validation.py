"""
Budget validation rules.

Pure functions: no database access, no mutation. The store runs them before
every add/update against the owner's current budgets.
"""
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable

from app.application.errors import (
    BudgetError, MissingField, InvalidAmount, InvalidCategory, InvalidMonth, DuplicateBudget,
)
from app.domain.category import DEFAULT_BUDGET_CATEGORIES
from app.domain.month import is_month_key
from app.utils.validation import is_blank, parse_amount


@dataclass(frozen=True)
class BudgetCandidate:
    """Input for add/update. Amount may still be raw user input (str, float ...)."""
    category: Any
    amount: Any
    month: Any


@dataclass(frozen=True)
class ValidBudget:
    category: str
    amount: Decimal
    month: str


@dataclass(frozen=True)
class ValidationResult:
    budget: ValidBudget | None = None
    error: BudgetError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None


def validate(
    candidate: BudgetCandidate,
    existing_budgets: Iterable[Any],
    excluding_id: str | None = None,
    categories: Iterable[str] | None = None,
) -> ValidationResult:
    """
    Check a candidate budget against the rules and the owner's existing budgets.

    Rules, first failure wins:
        1. category, amount and month are present (MissingField)
        2. amount is a finite number > 0 (InvalidAmount); amounts are
           stored as Numeric(20, 2), so more than 2 decimal places or a
           value of 1e18 and above is also InvalidAmount
           (e.g. "0.005" is rejected, not rounded)
        3. category belongs to the vocabulary (InvalidCategory)
        4. month is a YYYY-MM key (InvalidMonth)
        5. no other budget has the same (category, month) (DuplicateBudget);
           `excluding_id` is the budget being updated, so it never collides
           with itself

    Args:
        candidate: raw input
        existing_budgets: objects with `id`, `category` and `month`
        excluding_id: id of the budget being updated (None for add)
        categories: allowed categories (default vocabulary if None)
    """
    for field in ("category", "amount", "month"):
        if is_blank(getattr(candidate, field)):
            return ValidationResult(error=MissingField(f"{field} is required", field=field))

    try:
        amount = parse_amount(candidate.amount)
    except ValueError as exc:
        return ValidationResult(error=InvalidAmount(str(exc), field="amount"))
    if amount <= 0:
        return ValidationResult(error=InvalidAmount("Amount must be greater than zero", field="amount"))

    allowed = list(categories) if categories is not None else list(DEFAULT_BUDGET_CATEGORIES)
    category = str(candidate.category).strip()
    if category not in allowed:
        return ValidationResult(error=InvalidCategory(f"Unknown category: {category}", field="category"))

    month = str(candidate.month).strip()
    if not is_month_key(month):
        return ValidationResult(error=InvalidMonth(f"Month must be YYYY-MM, got {month!r}", field="month"))

    for b in existing_budgets:
        if b.id == excluding_id:
            continue
        if b.category == category and b.month == month:
            return ValidationResult(error=DuplicateBudget(
                f"Budget already exists for {category} in {month}"
            ))

    return ValidationResult(budget=ValidBudget(category=category, amount=amount, month=month))

"""
Budget error taxonomy and the result type returned by budget mutations.

Validation and lookup failures are values, not control flow: the store
returns them inside a BudgetResult so the caller can correct the input and
retry. TransportFailure is the exception: it is raised by the external
expense ledger and passes through the core unchanged.
"""
from dataclasses import dataclass
from typing import Any


class BudgetError(ValueError):
    """Base class for recoverable budget errors"""
    code = "budget_error"

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        data = {"error": self.code, "message": self.message}
        if self.field:
            data["field"] = self.field
        return data


class MissingField(BudgetError):
    code = "missing_field"


class InvalidAmount(BudgetError):
    code = "invalid_amount"


class InvalidCategory(BudgetError):
    code = "invalid_category"


class InvalidMonth(BudgetError):
    code = "invalid_month"


class DuplicateBudget(BudgetError):
    code = "duplicate_budget"


class NotFound(BudgetError):
    code = "not_found"


class TransportFailure(RuntimeError):
    """The expense ledger (or another external collaborator) could not be reached"""


@dataclass(frozen=True)
class BudgetResult:
    """
    Success carries `budget` (None for deletions) or `budgets` for bulk
    operations; failure carries `error`.
    """
    budget: Any = None
    error: BudgetError | None = None
    budgets: tuple = ()

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, budget=None) -> "BudgetResult":
        return cls(budget=budget)

    @classmethod
    def failure(cls, error: BudgetError) -> "BudgetResult":
        return cls(error=error)

"""
Budget domain entity (Event Sourcing)

Generates event payloads for budget management. The `budgets` read model is
built from these events by BudgetsProjector.
"""
from datetime import datetime
from decimal import Decimal
from typing import Dict, Any


BUDGET_CREATED = "budget_created"
BUDGET_UPDATED = "budget_updated"
BUDGET_DELETED = "budget_deleted"

BUDGET_EVENT_TYPES = [BUDGET_CREATED, BUDGET_UPDATED, BUDGET_DELETED]


class Budget:

    @staticmethod
    def create(
        budget_id: str,
        account_id: int,
        category: str,
        month: str,
        amount: Decimal,
    ) -> Dict[str, Any]:
        """
        Create budget_created event payload.

        Amount is serialised as a string to keep Decimal precision in JSON.
        """
        return {
            "budget_id": budget_id,
            "account_id": account_id,
            "category": category,
            "month": month,
            "amount": str(amount),
            "created_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def update(
        budget_id: str,
        category: str,
        month: str,
        amount: Decimal,
    ) -> Dict[str, Any]:
        """Create budget_updated event payload (full replacement of the mutable fields)."""
        return {
            "budget_id": budget_id,
            "category": category,
            "month": month,
            "amount": str(amount),
            "updated_at": datetime.utcnow().isoformat(),
        }

    @staticmethod
    def delete(budget_id: str) -> Dict[str, Any]:
        return {
            "budget_id": budget_id,
            "deleted_at": datetime.utcnow().isoformat(),
        }

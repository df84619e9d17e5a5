"""
Budgets Projector - builds the `budgets` read model from budget events.
"""
from datetime import datetime
from decimal import Decimal
from sqlalchemy.orm import Session

from app.domain.budget import BUDGET_CREATED, BUDGET_UPDATED, BUDGET_DELETED, BUDGET_EVENT_TYPES
from app.infrastructure.db.models import EventLog, BudgetModel
from app.readmodels.projectors.base import BaseProjector


class BudgetsProjector(BaseProjector):

    def __init__(self, db: Session):
        super().__init__(db, projector_name="budgets")

    def handle_event(self, event: EventLog) -> None:
        if event.event_type == BUDGET_CREATED:
            self._handle_created(event)
        elif event.event_type == BUDGET_UPDATED:
            self._handle_updated(event)
        elif event.event_type == BUDGET_DELETED:
            self._handle_deleted(event)

    def rebuild(self, account_id: int) -> int:
        """Drop the account's budgets and replay its whole budget history."""
        self.db.query(BudgetModel).filter(BudgetModel.account_id == account_id).delete()
        self.reset(account_id)
        return self.run(account_id, event_types=BUDGET_EVENT_TYPES)

    def _handle_created(self, event: EventLog) -> None:
        p = event.payload_json

        existing = self.db.get(BudgetModel, p["budget_id"])
        if existing:
            return

        self.db.add(BudgetModel(
            id=p["budget_id"],
            account_id=p["account_id"],
            category=p["category"],
            month=p["month"],
            amount=Decimal(p["amount"]),
            created_at=datetime.fromisoformat(p["created_at"]),
            updated_at=datetime.fromisoformat(p["created_at"]),
        ))
        self.db.flush()

    def _handle_updated(self, event: EventLog) -> None:
        p = event.payload_json

        budget = self.db.get(BudgetModel, p["budget_id"])
        if not budget:
            return

        budget.category = p["category"]
        budget.month = p["month"]
        budget.amount = Decimal(p["amount"])
        budget.updated_at = datetime.fromisoformat(p["updated_at"])
        self.db.flush()

    def _handle_deleted(self, event: EventLog) -> None:
        budget = self.db.get(BudgetModel, event.payload_json["budget_id"])
        if budget:
            self.db.delete(budget)
            self.db.flush()

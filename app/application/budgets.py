"""
Budget store: create / read / update / delete budgets of one owner.

Mutations follow the Event Sourcing pattern (domain event -> EventLog ->
BudgetsProjector -> `budgets` read model). The event and its projection are
written in one transaction.

Uniqueness of (category, month) per owner is checked by the validator against
the current read model, and enforced again by the read model's unique
constraint: a concurrent writer that validated against a stale read fails on
projection, its transaction is rolled back and the caller gets
DuplicateBudget.
"""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.application.budget_validation import BudgetCandidate, ValidBudget, validate
from app.application.errors import BudgetResult, DuplicateBudget, InvalidMonth, NotFound
from app.config import get_settings
from app.domain.budget import Budget, BUDGET_CREATED, BUDGET_UPDATED, BUDGET_DELETED
from app.domain.month import is_month_key, previous_month
from app.infrastructure.db.models import BudgetModel, EventLog
from app.infrastructure.eventlog.repository import EventLogRepository
from app.readmodels.projectors.budgets import BudgetsProjector

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BudgetRecord:
    """Detached copy of a budget row; holds no reference to the session."""
    id: str
    owner: int
    category: str
    month: str
    amount: Decimal
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(frozen=True)
class MonthBudgets:
    month: str
    budgets: List[BudgetRecord]
    total_amount: Decimal


def _to_record(model: BudgetModel) -> BudgetRecord:
    return BudgetRecord(
        id=model.id,
        owner=model.account_id,
        category=model.category,
        month=model.month,
        amount=Decimal(model.amount),
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def group_by_month(budgets: Iterable[BudgetRecord]) -> List[MonthBudgets]:
    """Group budgets by month, newest month first, with the month's total."""
    groups: dict[str, list[BudgetRecord]] = {}
    for b in budgets:
        groups.setdefault(b.month, []).append(b)

    return [
        MonthBudgets(
            month=month,
            budgets=groups[month],
            total_amount=sum((b.amount for b in groups[month]), Decimal("0")),
        )
        for month in sorted(groups, reverse=True)
    ]


class BudgetStore:
    """
    Owner-scoped budget collection.

    add/update/remove/copy never raise for bad input or missing ids; they
    return BudgetResult.failure(...) instead. Database errors propagate.
    """

    def __init__(self, db: Session, categories: Iterable[str] | None = None):
        self.db = db
        self.categories = list(categories) if categories is not None else get_settings().BUDGET_CATEGORIES
        self.event_repo = EventLogRepository(db)
        self.projector = BudgetsProjector(db)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list(self, owner: int) -> List[BudgetRecord]:
        """All budgets of the owner, newest month first, then by category."""
        rows = (
            self.db.query(BudgetModel)
            .filter(BudgetModel.account_id == owner)
            .order_by(BudgetModel.month.desc(), BudgetModel.category.asc())
            .all()
        )
        return [_to_record(r) for r in rows]

    def list_for_month(self, owner: int, month: str) -> List[BudgetRecord]:
        rows = (
            self.db.query(BudgetModel)
            .filter(BudgetModel.account_id == owner, BudgetModel.month == month)
            .order_by(BudgetModel.category.asc())
            .all()
        )
        return [_to_record(r) for r in rows]

    def get(self, owner: int, budget_id: str) -> BudgetRecord | None:
        model = self._find(owner, budget_id)
        return _to_record(model) if model else None

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add(self, owner: int, category, amount, month) -> BudgetResult:
        existing = self._owner_rows(owner)
        result = validate(
            BudgetCandidate(category=category, amount=amount, month=month),
            existing,
            categories=self.categories,
        )
        if not result.ok:
            logger.info("Budget add rejected for account %s: %s", owner, result.error.code)
            return BudgetResult.failure(result.error)

        budget_id = uuid.uuid4().hex
        try:
            self._append_and_project(owner, budget_id, BUDGET_CREATED, self._created_payload(owner, budget_id, result.budget))
            self.db.commit()
        except IntegrityError:
            return self._lost_race(owner, result.budget)

        logger.info("Budget %s created for account %s (%s %s)", budget_id, owner, result.budget.category, result.budget.month)
        return BudgetResult.success(self.get(owner, budget_id))

    def update(self, owner: int, budget_id: str, category, amount, month) -> BudgetResult:
        current = self._find(owner, budget_id)
        if not current:
            return BudgetResult.failure(NotFound(f"Budget {budget_id} not found"))

        existing = self._owner_rows(owner)
        result = validate(
            BudgetCandidate(category=category, amount=amount, month=month),
            existing,
            excluding_id=budget_id,
            categories=self.categories,
        )
        if not result.ok:
            logger.info("Budget update rejected for %s: %s", budget_id, result.error.code)
            return BudgetResult.failure(result.error)

        valid = result.budget
        payload = Budget.update(budget_id, category=valid.category, month=valid.month, amount=valid.amount)
        try:
            self._append_and_project(owner, budget_id, BUDGET_UPDATED, payload, key_suffix=uuid.uuid4().hex)
            self.db.commit()
        except IntegrityError:
            return self._lost_race(owner, valid)

        logger.info("Budget %s updated for account %s", budget_id, owner)
        return BudgetResult.success(self.get(owner, budget_id))

    def remove(self, owner: int, budget_id: str) -> BudgetResult:
        if not self._find(owner, budget_id):
            return BudgetResult.failure(NotFound(f"Budget {budget_id} not found"))

        try:
            self._append_and_project(owner, budget_id, BUDGET_DELETED, Budget.delete(budget_id))
            self.db.commit()
        except IntegrityError:
            # Another writer deleted it first (same idempotency key)
            self.db.rollback()
            logger.warning("Budget %s for account %s was deleted by a concurrent write", budget_id, owner)
            return BudgetResult.failure(NotFound(f"Budget {budget_id} not found"))

        logger.info("Budget %s deleted for account %s", budget_id, owner)
        return BudgetResult.success()

    def copy_from_previous_month(self, owner: int, month: str) -> BudgetResult:
        """
        Copy the previous month's budgets into `month`.

        Categories already budgeted in `month`, and categories no longer in
        the configured vocabulary, are skipped. All copies are committed
        together. On success `budgets` holds the created records (possibly
        empty).
        """
        if not is_month_key(month):
            return BudgetResult.failure(InvalidMonth(f"Month must be YYYY-MM, got {month!r}", field="month"))

        source = self.list_for_month(owner, previous_month(month))
        taken = {b.category for b in self.list_for_month(owner, month)}

        created_ids = []
        try:
            for b in source:
                if b.category in taken or b.category not in self.categories:
                    continue
                budget_id = uuid.uuid4().hex
                valid = ValidBudget(category=b.category, amount=b.amount, month=month)
                self._append_and_project(owner, budget_id, BUDGET_CREATED, self._created_payload(owner, budget_id, valid))
                created_ids.append(budget_id)
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.warning("Budget copy into %s for account %s lost a race with another writer", month, owner)
            return BudgetResult.failure(DuplicateBudget(f"Budgets for {month} changed while copying"))

        logger.info("Copied %d budget(s) into %s for account %s", len(created_ids), month, owner)
        return BudgetResult(budgets=tuple(self.get(owner, bid) for bid in created_ids))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _find(self, owner: int, budget_id: str) -> BudgetModel | None:
        return self.db.query(BudgetModel).filter(
            BudgetModel.id == budget_id,
            BudgetModel.account_id == owner,
        ).first()

    def _owner_rows(self, owner: int) -> List[BudgetModel]:
        return self.db.query(BudgetModel).filter(BudgetModel.account_id == owner).all()

    @staticmethod
    def _created_payload(owner: int, budget_id: str, valid: ValidBudget) -> dict:
        return Budget.create(
            budget_id=budget_id,
            account_id=owner,
            category=valid.category,
            month=valid.month,
            amount=valid.amount,
        )

    def _append_and_project(
        self,
        owner: int,
        budget_id: str,
        event_type: str,
        payload: dict,
        key_suffix: str | None = None,
    ) -> None:
        key = f"{event_type}-{budget_id}"
        if key_suffix:
            key = f"{key}-{key_suffix}"
        event_id = self.event_repo.append_event(
            account_id=owner,
            event_type=event_type,
            payload=payload,
            actor_user_id=owner,
            idempotency_key=key,
        )
        self.projector.handle_event(self.db.get(EventLog, event_id))

    def _lost_race(self, owner: int, valid: ValidBudget) -> BudgetResult:
        self.db.rollback()
        logger.warning(
            "Budget %s %s for account %s collided with a concurrent write",
            valid.category, valid.month, owner,
        )
        return BudgetResult.failure(DuplicateBudget(
            f"Budget already exists for {valid.category} in {valid.month}"
        ))

"""
Tests for BudgetsProjector
"""
from datetime import datetime
from decimal import Decimal

from app.application.budgets import BudgetStore
from app.domain.budget import Budget, BUDGET_CREATED, BUDGET_UPDATED, BUDGET_DELETED
from app.infrastructure.db.models import BudgetModel, EventLog
from app.readmodels.projectors.budgets import BudgetsProjector


def _event(event_id, account_id, event_type, payload):
    return EventLog(
        id=event_id,
        account_id=account_id,
        event_type=event_type,
        payload_json=payload,
        occurred_at=datetime.utcnow(),
    )


def test_projector_builds_budget_from_events(db_session, sample_account_id):
    db_session.add_all([
        _event(1, sample_account_id, BUDGET_CREATED, Budget.create(
            budget_id="b1", account_id=sample_account_id,
            category="Travel", month="2024-05", amount=Decimal("300"),
        )),
        _event(2, sample_account_id, BUDGET_UPDATED, Budget.update(
            "b1", category="Travel", month="2024-05", amount=Decimal("350.75"),
        )),
    ])
    db_session.commit()

    projector = BudgetsProjector(db_session)
    count = projector.run(sample_account_id)

    assert count == 2
    budget = db_session.get(BudgetModel, "b1")
    assert budget.amount == Decimal("350.75")
    assert budget.category == "Travel"
    assert projector.get_checkpoint(sample_account_id) == 2


def test_projector_is_idempotent(db_session, sample_account_id):
    event = _event(1, sample_account_id, BUDGET_CREATED, Budget.create(
        budget_id="b1", account_id=sample_account_id,
        category="Travel", month="2024-05", amount=Decimal("300"),
    ))
    db_session.add(event)
    db_session.commit()

    projector = BudgetsProjector(db_session)
    projector.handle_event(event)
    projector.handle_event(event)

    assert db_session.query(BudgetModel).count() == 1


def test_projector_handles_delete(db_session, sample_account_id):
    db_session.add_all([
        _event(1, sample_account_id, BUDGET_CREATED, Budget.create(
            budget_id="b1", account_id=sample_account_id,
            category="Travel", month="2024-05", amount=Decimal("300"),
        )),
        _event(2, sample_account_id, BUDGET_DELETED, Budget.delete("b1")),
    ])
    db_session.commit()

    BudgetsProjector(db_session).run(sample_account_id)

    assert db_session.query(BudgetModel).count() == 0


def test_projector_ignores_update_of_unknown_budget(db_session, sample_account_id):
    db_session.add(_event(1, sample_account_id, BUDGET_UPDATED, Budget.update(
        "ghost", category="Travel", month="2024-05", amount=Decimal("1"),
    )))
    db_session.commit()

    assert BudgetsProjector(db_session).run(sample_account_id) == 1
    assert db_session.query(BudgetModel).count() == 0


def test_rebuild_restores_read_model_from_store_events(db_session, sample_account_id):
    store = BudgetStore(db_session)
    food = store.add(sample_account_id, category="Food & Dining", amount="500", month="2024-05").budget
    travel = store.add(sample_account_id, category="Travel", amount="100", month="2024-05").budget
    store.update(sample_account_id, food.id, category="Food & Dining", amount="450", month="2024-05")
    store.remove(sample_account_id, travel.id)
    store.add(2, category="Travel", amount="70", month="2024-05")

    # damage the read model
    db_session.query(BudgetModel).filter(BudgetModel.id == food.id).update({"amount": Decimal("1")})
    db_session.commit()

    processed = BudgetsProjector(db_session).rebuild(sample_account_id)
    db_session.commit()

    assert processed == 4
    rows = db_session.query(BudgetModel).filter(BudgetModel.account_id == sample_account_id).all()
    assert [(r.category, r.amount) for r in rows] == [("Food & Dining", Decimal("450"))]
    # other accounts are untouched
    assert db_session.query(BudgetModel).filter(BudgetModel.account_id == 2).count() == 1

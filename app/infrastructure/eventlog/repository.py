"""
Event Log Repository - source of truth for Event Sourcing

Budget changes are recorded as immutable events; read models are projections.
"""
from datetime import datetime
from typing import Optional, Dict, Any, List
from sqlalchemy.orm import Session

from app.infrastructure.db.models import EventLog


class EventLogRepository:
    """
    Repository for the event log
    """

    def __init__(self, db: Session):
        self.db = db

    def append_event(
        self,
        account_id: int,
        event_type: str,
        payload: Dict[str, Any],
        occurred_at: Optional[datetime] = None,
        actor_user_id: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Append an event to the log (flush only, the caller commits)

        Args:
            account_id: owner account
            event_type: event name, e.g. "budget_created"
            payload: event data (stored as JSONB)
            occurred_at: when it happened (default: now)
            actor_user_id: who did it (optional)
            idempotency_key: de-duplication key (optional)

        Returns:
            event_id

        Raises:
            IntegrityError: if idempotency_key already exists

        Example:
            >>> repo = EventLogRepository(db)
            >>> event_id = repo.append_event(
            ...     account_id=1,
            ...     event_type="budget_created",
            ...     payload={"budget_id": "9f2c...", "category": "Travel"},
            ...     idempotency_key="budget-create-9f2c..."
            ... )
        """
        if occurred_at is None:
            occurred_at = datetime.utcnow()

        event = EventLog(
            account_id=account_id,
            actor_user_id=actor_user_id,
            event_type=event_type,
            payload_json=payload,
            occurred_at=occurred_at,
            idempotency_key=idempotency_key,
        )

        self.db.add(event)
        self.db.flush()

        return event.id

    def list_events_since(
        self,
        account_id: int,
        after_id: int = 0,
        limit: int = 200,
        event_types: Optional[List[str]] = None,
    ) -> List[EventLog]:
        """
        Events with id > after_id for one account, ordered by id (for projectors)
        """
        query = (
            self.db.query(EventLog)
            .filter(
                EventLog.account_id == account_id,
                EventLog.id > after_id
            )
        )

        if event_types:
            query = query.filter(EventLog.event_type.in_(event_types))

        query = query.order_by(EventLog.id.asc()).limit(limit)

        return query.all()

"""
Base Projector - common base for projectors (CQRS read side)

A projector turns events from the event log into rows of a read model. Its
per-account checkpoint (last applied event id) is only used for replays:
live writes apply their own event directly via handle_event.
"""
from abc import ABC, abstractmethod
from typing import List, Optional
from sqlalchemy.orm import Session

from app.infrastructure.db.models import EventLog, ProjectorCheckpoint
from app.infrastructure.eventlog.repository import EventLogRepository


class BaseProjector(ABC):

    def __init__(self, db: Session, projector_name: str):
        self.db = db
        self.projector_name = projector_name
        self.event_repo = EventLogRepository(db)

    @abstractmethod
    def handle_event(self, event: EventLog) -> None:
        """
        Apply one event to the read model.

        Must be idempotent: applying the same event twice leaves the read
        model unchanged.
        """

    def _checkpoint_row(self, account_id: int) -> ProjectorCheckpoint | None:
        return self.db.query(ProjectorCheckpoint).filter(
            ProjectorCheckpoint.projector_name == self.projector_name,
            ProjectorCheckpoint.account_id == account_id
        ).first()

    def get_checkpoint(self, account_id: int) -> int:
        row = self._checkpoint_row(account_id)
        return row.last_event_id if row else 0

    def save_checkpoint(self, account_id: int, event_id: int) -> None:
        # Flush so the lookup sees rows added earlier in this transaction
        self.db.flush()

        row = self._checkpoint_row(account_id)
        if row is None:
            self.db.add(ProjectorCheckpoint(
                projector_name=self.projector_name,
                account_id=account_id,
                last_event_id=event_id,
            ))
        else:
            row.last_event_id = event_id
        self.db.flush()

    def run(
        self,
        account_id: int,
        event_types: Optional[List[str]] = None,
        batch_size: int = 200
    ) -> int:
        """
        Apply every event of the account after its checkpoint, in id order.

        Does not commit: the caller owns the transaction.

        Returns:
            Number of applied events
        """
        checkpoint = self.get_checkpoint(account_id)
        processed = 0

        while True:
            batch = self.event_repo.list_events_since(
                account_id=account_id,
                after_id=checkpoint,
                limit=batch_size,
                event_types=event_types
            )
            for event in batch:
                self.handle_event(event)
                checkpoint = event.id
            processed += len(batch)

            if batch:
                self.save_checkpoint(account_id, checkpoint)
            if len(batch) < batch_size:
                return processed

    def reset(self, account_id: int) -> None:
        """Move the checkpoint back to 0; subclasses also drop their rows."""
        self.save_checkpoint(account_id, 0)

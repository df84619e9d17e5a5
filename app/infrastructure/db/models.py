"""
SQLAlchemy ORM models (event log + read models + external expense ledger)
"""
from decimal import Decimal
from sqlalchemy import String, DateTime, Integer, Text, TIMESTAMP, func, Numeric, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base


class EventLog(Base):
    """
    Event log - source of truth for Event Sourcing

    Every budget change is recorded as an immutable event.
    """
    __tablename__ = "event_log"

    id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    actor_user_id: Mapped[int | None] = mapped_column(Integer, nullable=True)

    event_type: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    payload_json: Mapped[dict] = mapped_column(JSONB, nullable=False)  # PostgreSQL JSONB

    occurred_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        index=True
    )
    idempotency_key: Mapped[str | None] = mapped_column(
        String(255),
        unique=True,
        nullable=True
    )
    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )


# ============================================================================
# Read Models (projections built from events)
# ============================================================================


class ProjectorCheckpoint(Base):
    """
    Infrastructure: Track projector progress for idempotent event processing
    """
    __tablename__ = "projector_checkpoints"

    id: Mapped[int] = mapped_column(primary_key=True)
    projector_name: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    last_event_id: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")

    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    __table_args__ = (
        UniqueConstraint('projector_name', 'account_id', name='uq_projector_account'),
    )


class BudgetModel(Base):
    """
    Read model: one spending ceiling per (account, category, month)
    (built by BudgetsProjector)
    """
    __tablename__ = "budgets"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    category: Mapped[str] = mapped_column(String(64), nullable=False)
    month: Mapped[str] = mapped_column(String(7), nullable=False)  # YYYY-MM
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint('account_id', 'category', 'month', name='uq_budget_category_month'),
        Index('ix_budgets_account_month', 'account_id', 'month'),
    )


class ExpenseModel(Base):
    """
    External ledger: expenses are written by the expense service and only read here
    """
    __tablename__ = "expenses"

    expense_id: Mapped[int] = mapped_column(primary_key=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    category: Mapped[str] = mapped_column(String(64), nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(precision=20, scale=2), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, server_default="")
    occurred_at: Mapped[DateTime] = mapped_column(
        DateTime(timezone=False),
        nullable=False,
        index=True
    )

    created_at: Mapped[DateTime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        nullable=False
    )

    __table_args__ = (
        Index('ix_expenses_account_occurred', 'account_id', 'occurred_at'),
    )

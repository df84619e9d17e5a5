"""create budget schema

Event log (source of truth), projector checkpoints, the `budgets` read model
and the `expenses` table shared with the expense service.

Revision ID: b7e41c09a2d3
Revises:
Create Date: 2026-02-13 19:49:28.232536

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import JSONB


# revision identifiers, used by Alembic.
revision: str = 'b7e41c09a2d3'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _now():
    return sa.text('now()')


def upgrade() -> None:
    """Upgrade schema."""
    # 1. event_log: budget_created / budget_updated / budget_deleted
    op.create_table(
        'event_log',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False, index=True),
        sa.Column('actor_user_id', sa.Integer(), nullable=True),
        sa.Column('event_type', sa.String(length=128), nullable=False, index=True),
        sa.Column('payload_json', JSONB, nullable=False),
        sa.Column('occurred_at', sa.TIMESTAMP(timezone=True), nullable=False, index=True),
        sa.Column('idempotency_key', sa.String(length=255), nullable=True, unique=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=_now(), nullable=False),
    )

    # 2. projector_checkpoints (used by replays only)
    op.create_table(
        'projector_checkpoints',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('projector_name', sa.String(length=128), nullable=False, index=True),
        sa.Column('account_id', sa.Integer(), nullable=False, index=True),
        sa.Column('last_event_id', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=_now(), nullable=False),
        sa.UniqueConstraint('projector_name', 'account_id', name='uq_projector_account'),
    )

    # 3. budgets: one ceiling per account/category/month
    op.create_table(
        'budgets',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False, index=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('month', sa.String(length=7), nullable=False),
        sa.Column('amount', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=_now(), nullable=False),
        sa.Column('updated_at', sa.TIMESTAMP(timezone=True), server_default=_now(), nullable=False),
        sa.UniqueConstraint('account_id', 'category', 'month', name='uq_budget_category_month'),
    )
    op.create_index('ix_budgets_account_month', 'budgets', ['account_id', 'month'])

    # 4. expenses: written by the expense service, read-only here
    op.create_table(
        'expenses',
        sa.Column('expense_id', sa.Integer(), primary_key=True),
        sa.Column('account_id', sa.Integer(), nullable=False, index=True),
        sa.Column('category', sa.String(length=64), nullable=False),
        sa.Column('amount', sa.Numeric(precision=20, scale=2), nullable=False),
        sa.Column('description', sa.Text(), nullable=False, server_default=''),
        sa.Column('occurred_at', sa.DateTime(timezone=False), nullable=False, index=True),
        sa.Column('created_at', sa.TIMESTAMP(timezone=True), server_default=_now(), nullable=False),
    )
    op.create_index('ix_expenses_account_occurred', 'expenses', ['account_id', 'occurred_at'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_expenses_account_occurred', table_name='expenses')
    op.drop_table('expenses')
    op.drop_index('ix_budgets_account_month', table_name='budgets')
    op.drop_table('budgets')
    op.drop_table('projector_checkpoints')
    op.drop_table('event_log')

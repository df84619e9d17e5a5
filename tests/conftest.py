"""
Pytest fixtures for testing
"""
from datetime import datetime
from decimal import Decimal

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, JSON
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from sqlalchemy.dialects.postgresql import JSONB

from app.infrastructure.db.session import Base
from app.infrastructure.db.models import ExpenseModel


@pytest.fixture
def db_engine():
    """Create in-memory SQLite engine for tests, with JSONB→JSON mapping."""
    # StaticPool: every connection (test code and TestClient threads) sees the same in-memory db
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    # SQLite has no JSONB: remap to JSON for tests
    for table in Base.metadata.tables.values():
        for col in table.columns:
            if isinstance(col.type, JSONB):
                col.type = JSON()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine) -> Session:
    """Create database session for tests"""
    SessionLocal = sessionmaker(bind=db_engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def sample_account_id():
    """Sample account ID for tests"""
    return 1


@pytest.fixture
def add_expense(db_session):
    """Insert a row into the external expenses table"""
    def _add(account_id: int, category: str, amount, occurred_at: datetime, description: str = ""):
        row = ExpenseModel(
            account_id=account_id,
            category=category,
            amount=Decimal(str(amount)),
            description=description,
            occurred_at=occurred_at,
        )
        db_session.add(row)
        db_session.commit()
        return row
    return _add


@pytest.fixture
def client(db_session, sample_account_id):
    """
    TestClient wired to the test session and an authenticated owner.

    Login lives outside this service, so the owner dependency is overridden
    instead of signing a session cookie.
    """
    from app.main import app
    from app.api.deps import get_db, get_current_owner

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_current_owner] = lambda: sample_account_id
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client(db_session):
    """TestClient without an authenticated session"""
    from app.main import app
    from app.api.deps import get_db

    def _get_db():
        yield db_session

    app.dependency_overrides[get_db] = _get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()

"""
Database engine and sessions (SQLAlchemy, PostgreSQL via psycopg)

The engine and the session factory are created lazily on first use, so that
importing models never needs a reachable database.
"""
from typing import Iterator

import psycopg
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from app.config import get_settings


class Base(DeclarativeBase):
    pass


_engine: Engine | None = None
_SessionLocal: sessionmaker | None = None


def get_engine() -> Engine:
    global _engine
    if _engine is None:
        _engine = create_engine(get_settings().get_sqlalchemy_url(), pool_pre_ping=True)
    return _engine


def get_session_factory() -> sessionmaker:
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency: one session per request, closed afterwards.

    Budget mutations commit themselves; anything left uncommitted is
    discarded when the session closes.
    """
    with get_session_factory()() as db:
        yield db


def check_db_connection() -> None:
    """
    Readiness probe: run `SELECT 1` over a raw psycopg connection.

    Raises:
        psycopg.OperationalError: the database is unreachable
    """
    # psycopg takes a libpq URL, not the SQLAlchemy dialect form
    dsn = get_settings().DATABASE_URL.replace("postgresql+psycopg://", "postgresql://", 1)
    with psycopg.connect(dsn, connect_timeout=3) as conn:
        conn.execute("SELECT 1;").fetchone()

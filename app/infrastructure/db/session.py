"""
Database session management (SQLAlchemy)

Request handlers get a session from `get_db`; background jobs and scripts
use `session_scope`.
"""
from contextlib import contextmanager
from typing import Iterator

import psycopg
from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, sessionmaker, Session

from app.config import get_settings


class Base(DeclarativeBase):
    pass


_engine = None
_SessionLocal = None


def get_engine():
    global _engine
    if _engine is None:
        _engine = create_engine(get_settings().get_sqlalchemy_url(), pool_pre_ping=True)
    return _engine


def get_session_factory():
    global _SessionLocal
    if _SessionLocal is None:
        _SessionLocal = sessionmaker(bind=get_engine(), autoflush=False, autocommit=False)
    return _SessionLocal


def get_db() -> Iterator[Session]:
    """
    FastAPI dependency, one session per request.

    Usage:
        @router.get("/dashboard")
        def dashboard(request: Request, db: Session = Depends(get_db)):
            ...
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Session for a scheduler job or script. Uncommitted work is rolled back
    when the block raises; the session is always closed.
    """
    db = get_session_factory()()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def _libpq_dsn(url: str) -> str:
    # psycopg.connect does not understand the SQLAlchemy driver suffix
    return url.replace("postgresql+psycopg://", "postgresql://", 1)


def check_db_connection() -> None:
    """
    Readiness check (raw psycopg, bypasses the pool)

    Raises:
        psycopg.OperationalError: database is unreachable
    """
    with psycopg.connect(_libpq_dsn(get_settings().DATABASE_URL), connect_timeout=3) as conn:
        with conn.cursor() as cur:
            cur.execute("SELECT 1;")
            cur.fetchone()

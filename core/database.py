# =============================================================================
# core/database.py - Database Engine and Session Management
# =============================================================================
# SQLAlchemy engine, session factory and the transaction helper used by the
# service layer.
#
# Writes that must land together (deal stage + property freshness, property
# + its price history row) run inside one `atomic(db)` block: either every
# statement commits or the whole block rolls back.
#
# Usage:
#   from core.database import atomic
#
#   with atomic(db):
#       db.add(deal)
#       db.add(history_row)
# =============================================================================

import logging
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool

from app.config import settings

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    """Declarative base for every table."""


def build_engine(database_url: str, echo: bool = False) -> Engine:
    """
    Create an engine for the given URL.

    In-memory SQLite gets a StaticPool so every session sees the same
    database (used by the test suite).
    """
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url == "sqlite://":
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, echo=echo, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_recycle=300,
        echo=echo,
    )


engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)

# Create session factory
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Generator[Session, None, None]:
    """
    Yield one database session per request.

    Anything left uncommitted when the request ends is rolled back.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Generator[Session, None, None]:
    """
    Run a block of writes as one all-or-nothing transaction.

    Commits when the block exits normally; rolls back and re-raises on any
    exception.
    """
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise


def init_db(bind: Engine | None = None) -> None:
    """Create all tables that don't exist yet."""
    # Import tables so they register on Base.metadata
    from core import tables  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database tables ensured")


def check_db_connection(bind: Engine | None = None) -> bool:
    """Return True if a trivial query succeeds."""
    from sqlalchemy import text

    try:
        with (bind or engine).connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database connection failed: {e}")
        return False

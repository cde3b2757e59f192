"""
Database configuration and session handling.

The engine is built from ``Settings.database_url``. Tests swap in an in-memory
SQLite engine through ``create_test_engine`` + ``set_engine``.
"""

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

from lms_exam.config import get_settings

settings = get_settings()


def _connect_args(database_url: str) -> dict:
    # Needed for SQLite when sessions cross threads (FastAPI threadpool)
    if database_url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


engine = create_engine(
    settings.database_url,
    echo=settings.sql_echo,
    connect_args=_connect_args(settings.database_url),
)


def create_db_and_tables() -> None:
    """Create database tables based on SQLModel metadata."""
    from lms_exam import models  # noqa: F401

    SQLModel.metadata.create_all(engine)


def get_session() -> Iterator[Session]:
    """FastAPI dependency that yields a database session."""
    with Session(engine) as session:
        yield session


@contextmanager
def atomic(session: Session) -> Iterator[Session]:
    """Run a block of writes as one transaction.

    Commits when the block exits normally; on any exception the session is
    rolled back and the exception re-raised, so no partial write is visible.
    """
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise


def create_test_engine(database_url: str = "sqlite:///:memory:"):
    """
    Create a test-only engine (in-memory by default).

    StaticPool keeps a single connection so the in-memory database survives
    across sessions and the TestClient threads.
    """
    return create_engine(
        database_url,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


def set_engine(new_engine) -> None:
    """Replace the module-level engine with `new_engine`."""
    global engine
    engine = new_engine


def reset_db() -> None:
    """Drop and recreate all tables on the current engine."""
    from lms_exam import models  # noqa: F401

    SQLModel.metadata.drop_all(engine)
    SQLModel.metadata.create_all(engine)

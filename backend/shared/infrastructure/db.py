"""
Engine and session factory.

Endpoints are sync and run on FastAPI's threadpool, so plain SQLAlchemy 2.0
sessions are used, one per request via ``get_db``.
"""

import os
from collections.abc import Iterator
from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from shared.config.settings import DATABASE_URL


def _engine_options(url: str) -> dict[str, Any]:
    if url.startswith("sqlite"):
        # One shared connection, usable from the threadpool
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    return {
        "pool_pre_ping": True,
        "pool_size": min(2 * (os.cpu_count() or 4) + 1, 20),
        "max_overflow": 15,
        "pool_timeout": 30,
        "pool_recycle": 1800,
        "connect_args": {"connect_timeout": 10},
    }


engine = create_engine(DATABASE_URL, **_engine_options(DATABASE_URL))

SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=True)


def get_db() -> Iterator[Session]:
    """Request-scoped session dependency; closed when the response is sent."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


def safe_commit(db: Session) -> None:
    """Commit, or roll back and re-raise."""
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise

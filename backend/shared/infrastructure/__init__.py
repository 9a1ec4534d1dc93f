"""
Infrastructure module: database sessions and request correlation.

Provides:
- Database engine, sessions and transactions (db.py)
- Correlation id middleware and logging filter (correlation.py)
"""

from shared.infrastructure.db import (
    engine,
    SessionLocal,
    get_db,
    safe_commit,
)

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "safe_commit",
]

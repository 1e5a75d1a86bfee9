"""
Infrastructure module: database sessions, correlation IDs, Redis clients.
"""

from pizza_shared.infrastructure.db import engine, SessionLocal, get_db, get_db_context, safe_commit

__all__ = [
    "engine",
    "SessionLocal",
    "get_db",
    "get_db_context",
    "safe_commit",
]

"""Database infrastructure module."""

from app.infrastructure.database.session import (
    AsyncSessionLocal,
    get_async_db,
    get_async_engine,
    get_session_factory,
)

__all__ = [
    "get_async_engine",
    "get_session_factory",
    "AsyncSessionLocal",
    "get_async_db",
]

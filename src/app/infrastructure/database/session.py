"""Database session management."""

from collections.abc import AsyncGenerator
from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from app.core.config import get_settings


@lru_cache
def get_async_engine() -> AsyncEngine:
    """Create asynchronous database engine (once per process)."""
    settings = get_settings()
    return create_async_engine(
        settings.database_url,
        pool_size=10,
        max_overflow=20,
        pool_recycle=1800,
        pool_pre_ping=True,
        echo=settings.debug,
    )


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the session factory bound to the application engine."""
    return async_sessionmaker(
        bind=get_async_engine(),
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False,
    )


def AsyncSessionLocal() -> AsyncSession:
    """Open a new async session on the application engine."""
    return get_session_factory()()


async def get_async_db() -> AsyncGenerator[AsyncSession, None]:
    """Get asynchronous database session."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

"""
Database Session Management

Provides the async SQLAlchemy engine and session factory for PostgreSQL.
The engine is created on first use so that importing the package never
requires a database driver or a configured URL.
"""

from __future__ import annotations

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from ..config import settings


@lru_cache
def get_async_engine() -> AsyncEngine:
    if not settings.database_url:
        raise RuntimeError("DATABASE_URL is not configured")

    return create_async_engine(
        settings.database_url,
        echo=False,  # Set True for SQL debugging
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
    )


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=get_async_engine(),
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

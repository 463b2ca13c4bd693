"""Database session management."""

from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from core.config import settings


def build_engine(url: str, echo: bool = False) -> AsyncEngine:
    """Create an async engine for the given URL."""
    connect_args: dict = {}
    # asyncpg's prepared statement cache is incompatible with transaction-mode
    # poolers such as PgBouncer or Supavisor
    if url.startswith("postgresql+asyncpg") and "pooler" in url:
        connect_args["statement_cache_size"] = 0
    return create_async_engine(
        url,
        echo=echo,
        pool_pre_ping=True,
        connect_args=connect_args,
    )


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )


# Create async engine
engine = build_engine(settings.async_database_url, echo=settings.debug)

# Create async session factory
async_session_factory = build_session_factory(engine)


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Dependency for getting async database sessions."""
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()

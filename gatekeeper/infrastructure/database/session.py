# gatekeeper/infrastructure/database/session.py

from functools import lru_cache

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from gatekeeper.config.settings import get_settings

Base = declarative_base()


@lru_cache
def get_engine() -> AsyncEngine:
    """Created on first use so importing the app never opens a connection."""
    settings = get_settings()
    kwargs = {"echo": False, "pool_pre_ping": True}
    if not settings.database_url.startswith("sqlite"):
        kwargs.update(
            pool_size=settings.database_pool_size,
            max_overflow=settings.database_max_overflow,
        )
    return create_async_engine(settings.database_url, **kwargs)


@lru_cache
def get_session_factory() -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=get_engine(),
        expire_on_commit=False,
        autoflush=False,
        class_=AsyncSession,
    )


async def create_schema() -> None:
    """Create tables if missing (dev/test convenience; production uses migrations)."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

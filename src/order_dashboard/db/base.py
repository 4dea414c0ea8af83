"""Database configuration and setup."""

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import declarative_base, sessionmaker

Base = declarative_base()


def get_engine(database_url: str) -> AsyncEngine:
    """Create async engine."""
    kwargs = {"echo": False, "future": True}
    # SQLite (local dev, tests) has no server side to ping
    if not database_url.startswith("sqlite"):
        kwargs["pool_pre_ping"] = True
    return create_async_engine(database_url, **kwargs)


async def init_db(engine: AsyncEngine) -> None:
    """Create any tables that do not exist yet."""
    # Registers the mapped classes on Base.metadata
    from . import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def get_session_factory(engine: AsyncEngine):
    """Create async session factory."""
    return sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        future=True,
    )

"""
Database engine and session management
"""
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.engine import make_url
from typing import AsyncGenerator

from core.config import settings
from infrastructure.models import Base


def build_async_url(database_url: str) -> str:
    """Make sure the database URL uses an async driver"""
    url = make_url(database_url)
    drivername = url.drivername

    if "+" in drivername:
        return database_url

    driver_map = {
        "postgresql": "postgresql+asyncpg",
        "postgres": "postgresql+asyncpg",
        "sqlite": "sqlite+aiosqlite",
    }

    if drivername not in driver_map:
        raise ValueError(f"Unsupported database driver: {drivername}. Use an async driver in DATABASE__URL")

    async_driver = driver_map[drivername]
    return url.set(drivername=async_driver).render_as_string(hide_password=False)


def _engine_kwargs(async_url: str) -> dict:
    kwargs = {"echo": settings.DEBUG, "future": True}
    if not make_url(async_url).drivername.startswith("sqlite"):
        kwargs["pool_size"] = settings.database.max_connections
        kwargs["pool_pre_ping"] = True
    return kwargs


_async_url = build_async_url(settings.database.url)

engine = create_async_engine(_async_url, **_engine_kwargs(_async_url))

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    expire_on_commit=False,
)


async def get_session() -> AsyncGenerator[AsyncSession, None]:
    """Yield a session; the caller controls the transaction."""
    async with AsyncSessionLocal() as session:
        yield session


async def create_tables():
    """
    Create all tables

    Builds every table registered on the models metadata.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_tables():
    """
    Drop all tables

    Warning: test environments only, deletes all data!
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

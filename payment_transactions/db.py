from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from sqlalchemy.ext.asyncio import create_async_engine, AsyncEngine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from . import models  # noqa: F401  registers the tables on SQLModel.metadata


def _is_memory_sqlite(url: str) -> bool:
    return url.startswith("sqlite") and (url.endswith("://") or ":memory:" in url)


def create_engine(url: str, echo: bool = False) -> AsyncEngine:
    if _is_memory_sqlite(url):
        # one shared connection, otherwise each session gets an empty database
        return create_async_engine(
            url,
            echo=echo,
            connect_args={"check_same_thread": False},
            poolclass=StaticPool,
        )
    return create_async_engine(url, echo=echo, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


async def init_db(engine: AsyncEngine):
    """Create the transactions table and its indexes if they are missing."""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

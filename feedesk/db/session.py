"""Async engine and session factory. PostgreSQL (asyncpg) in production, SQLite (aiosqlite) locally."""

from typing import AsyncGenerator

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from feedesk.core.config import settings


def build_engine(database_url: str) -> AsyncEngine:
    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        return create_async_engine(url, echo=False, future=True)
    # pool_pre_ping: check connection is alive before use.
    # pool_recycle: discard connections after this many seconds.
    return create_async_engine(url, echo=False, future=True, pool_pre_ping=True, pool_recycle=300)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=bind, class_=AsyncSession, expire_on_commit=False)


engine = build_engine(settings.database_url)
AsyncSessionLocal = build_session_factory(engine)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session

"""Database connection and session management"""
from decimal import Decimal
from typing import Optional
from sqlalchemy import Numeric, String
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from sqlalchemy.types import TypeDecorator

from holder_indexer.config import Settings, get_settings


def create_engine(settings: Optional[Settings] = None) -> AsyncEngine:
    """Engine for the configured database"""
    settings = settings or get_settings()
    options = {"echo": settings.debug}
    if make_url(settings.database_url).get_backend_name() != "sqlite":
        options["pool_size"] = settings.database_pool_size
    return create_async_engine(settings.database_url, **options)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


class Base(DeclarativeBase):
    """Base class for all models"""
    pass


class Amount(TypeDecorator):
    """
    Unsigned arbitrary-precision integer (u128 balances and issuance).

    Stored as NUMERIC(78, 0). SQLite has no exact wide numeric, so there the
    value is kept as its decimal string.
    """
    impl = Numeric(78, 0)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(80))
        return dialect.type_descriptor(Numeric(78, 0))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if dialect.name == "sqlite":
            return str(int(value))
        return Decimal(int(value))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return int(value)


async def init_db(engine: AsyncEngine):
    """Initialize database tables"""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def close_db(engine: AsyncEngine):
    """Close database connections"""
    await engine.dispose()

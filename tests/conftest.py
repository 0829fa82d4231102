"""Pytest configuration and fixtures for holder indexer tests"""
import pytest
import pytest_asyncio
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import NullPool
from dotenv import load_dotenv

from holder_indexer.models.database import Base
from holder_indexer.services.addresses import id_encoder

from tests.fakes import FakeChain

# Load environment variables
load_dotenv()

SS58_PREFIX = 78


@pytest_asyncio.fixture(scope="function")
async def session_factory(tmp_path) -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """
    Session factory bound to a fresh SQLite database for each test.

    NullPool gives every session its own connection, like the production pool.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'indexer.db'}",
        echo=False,
        poolclass=NullPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest.fixture
def chain() -> FakeChain:
    return FakeChain()


@pytest.fixture
def encode_id():
    """Calamari SS58 encoder"""
    return id_encoder(SS58_PREFIX)

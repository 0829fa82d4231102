"""Integration tests for the processor entry point"""
import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

from holder_indexer.config import Settings
from holder_indexer.main import run
from holder_indexer.models import Account, CurrentChainState, ProcessorStatus
from tests.fakes import ALICE, DAVE, FakeChain, FakeSource, make_block, transfer


class TestRun:
    """Tests for running the processor against the configured database"""

    @pytest.mark.asyncio
    async def test_writes_to_configured_database(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'configured.db'}"
        settings = Settings(database_url=url, start_block=1, batch_size=2, snapshot_interval_ms=60_000)
        chain = FakeChain()
        chain.set_balance(1, ALICE, 100)
        blocks = [make_block(1, 60_000, [transfer(DAVE, ALICE)]), make_block(2, 66_000)]

        assert await run(FakeSource(blocks), chain, settings) == 1

        engine = create_async_engine(url, poolclass=NullPool)
        try:
            async with async_sessionmaker(engine, class_=AsyncSession)() as session:
                accounts = list((await session.scalars(select(Account))).all())
                current = await session.scalar(select(CurrentChainState))
                status = await session.scalar(select(ProcessorStatus))
        finally:
            await engine.dispose()

        assert [a.free for a in accounts] == [100]
        assert current.block_number == 2
        assert status.height == 2

"""Batch processor: turns archive windows into account and chain-state rows"""
from typing import Callable, List, Optional, Set

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from holder_indexer.models.chain_state import ProcessorStatus
from holder_indexer.services.balances import fetch_balances, save_accounts
from holder_indexer.services.chain import Block, BlockHeader, BlockSource, ChainStorage
from holder_indexer.services.event_processor import EventProcessor
from holder_indexer.services.snapshots import SnapshotSchedule, SnapshotScheduler
from holder_indexer.services.versions import BlockVersions

logger = structlog.get_logger()

STATUS_ID = 0


class BalanceIndexer:
    """
    Processes finalized blocks window by window.

    For each window:
    - collects the accounts touched by balance events, in block order
    - reads their balances at the window's last block in one storage query
    - in a single transaction: takes any due durable snapshot at the first
      block, upserts/deletes Account rows, then replaces the current state
      and the processor status at the last block

    A failed window leaves no trace and is processed again from its first
    block on the next run.
    """

    def __init__(
        self,
        source: BlockSource,
        chain: ChainStorage,
        session_factory: async_sessionmaker[AsyncSession],
        encode_id: Callable[[bytes], str],
        snapshot_interval_ms: int,
        start_block: int = 0,
        batch_size: int = 500,
    ):
        self.source = source
        self.chain = chain
        self.session_factory = session_factory
        self.encode_id = encode_id
        self.start_block = start_block
        self.batch_size = batch_size
        self.event_processor = EventProcessor()
        self.scheduler = SnapshotScheduler(snapshot_interval_ms)
        self._schedule: Optional[SnapshotSchedule] = None

    async def resume_height(self) -> int:
        """First block height not yet committed"""
        async with self.session_factory() as session:
            status = await session.get(ProcessorStatus, STATUS_ID)
        if status is None:
            return self.start_block
        return max(self.start_block, status.height + 1)

    async def run(self) -> int:
        """Process every window the source yields; returns the number of windows committed."""
        from_height = await self.resume_height()
        logger.info("Starting balance processor", from_height=from_height, batch_size=self.batch_size)

        windows = 0
        async for blocks in self.source.batches(from_height, self.batch_size):
            if not blocks:
                continue
            self._schedule = await self.process_window(blocks, self._schedule)
            windows += 1

        logger.info("Balance processor finished", windows=windows)
        return windows

    async def process_window(
        self,
        blocks: List[Block],
        schedule: Optional[SnapshotSchedule] = None,
    ) -> SnapshotSchedule:
        """
        Process one window and commit it atomically.

        ``schedule`` is the snapshot cadence carried over from the previous
        window; None loads it from the database. The updated schedule is
        returned only once the window has been committed.
        """
        touched: Set[str] = set()
        block_versions = [BlockVersions(self.chain, block.header) for block in blocks]
        for block, versions in zip(blocks, block_versions):
            self.event_processor.process_block(block, versions, touched)

        first, last = block_versions[0], block_versions[-1]
        balances = await fetch_balances(last, touched)

        async with self.session_factory() as session:
            async with session.begin():
                if schedule is None:
                    schedule = await self.scheduler.load_schedule(session)
                schedule = await self.scheduler.save_snapshot_if_due(session, first, schedule)
                if balances is not None:
                    await save_accounts(session, last.block.height, balances, self.encode_id)
                await self.scheduler.save_current_state(session, last)
                await self._save_status(session, last.block)

        logger.info(
            "Window processed",
            from_height=first.block.height,
            to_height=last.block.height,
            accounts=len(touched),
        )
        return schedule

    async def _save_status(self, session: AsyncSession, block: BlockHeader) -> None:
        await session.merge(ProcessorStatus(id=STATUS_ID, height=block.height, hash=block.hash))

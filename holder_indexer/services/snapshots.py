"""Chain-state snapshots: durable cadence snapshots and the current state"""
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Type, TypeVar

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from holder_indexer.models.account import Account
from holder_indexer.models.chain_state import ChainState, ChainStateMixin, CurrentChainState
from holder_indexer.services.storage import TOTAL_ISSUANCE
from holder_indexer.services.versions import BlockVersions, StorageItemAbsent

logger = structlog.get_logger()

S = TypeVar("S", bound=ChainStateMixin)


def to_datetime(timestamp_ms: int) -> datetime:
    return datetime.fromtimestamp(timestamp_ms / 1000, tz=timezone.utc)


def to_millis(value: datetime) -> int:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return round(value.timestamp() * 1000)


@dataclass(frozen=True)
class SnapshotSchedule:
    """On-chain time (ms) of the last durable snapshot; 0 before the first one."""
    last_snapshot_ms: int = 0


class SnapshotScheduler:
    """
    Decides when to write chain-state rows.

    After every window the CurrentChainState is replaced with the window's
    last block. A durable ChainState row is added when the window's first
    block is at least ``interval_ms`` of on-chain time past the previous
    durable snapshot, so replaying history yields the same snapshots as
    live processing.
    """

    def __init__(self, interval_ms: int):
        if interval_ms <= 0:
            raise ValueError("Snapshot interval must be positive")
        self.interval_ms = interval_ms

    async def load_schedule(self, session: AsyncSession) -> SnapshotSchedule:
        """Cold start: resume the cadence from the latest persisted snapshot."""
        latest = await session.scalar(
            select(ChainState).order_by(ChainState.timestamp.desc()).limit(1)
        )
        if latest is None:
            return SnapshotSchedule()
        return SnapshotSchedule(last_snapshot_ms=to_millis(latest.timestamp))

    def is_due(self, schedule: SnapshotSchedule, timestamp_ms: int) -> bool:
        return timestamp_ms - schedule.last_snapshot_ms >= self.interval_ms

    async def get_total_issuance(self, block_versions: BlockVersions) -> int:
        try:
            decoder = block_versions.storage(TOTAL_ISSUANCE)
        except StorageItemAbsent:
            logger.warning("No total issuance", height=block_versions.block.height)
            return 0
        data = await block_versions.chain.get_storage(
            block_versions.block.hash,
            TOTAL_ISSUANCE.pallet,
            TOTAL_ISSUANCE.name,
        )
        return decoder.decode(data) if data is not None else 0

    async def get_chain_state(
        self,
        session: AsyncSession,
        block_versions: BlockVersions,
        model: Type[S],
    ) -> S:
        block = block_versions.block
        return model(
            id=block.id,
            timestamp=to_datetime(block.timestamp),
            block_number=block.height,
            total_issuance=await self.get_total_issuance(block_versions),
            token_holders=await session.scalar(select(func.count()).select_from(Account)),
        )

    async def save_snapshot(self, session: AsyncSession, block_versions: BlockVersions) -> bool:
        """Insert a durable snapshot for the block unless one already exists."""
        if await session.get(ChainState, block_versions.block.id) is not None:
            return False
        state = await self.get_chain_state(session, block_versions, ChainState)
        session.add(state)
        logger.info(
            "Chain state saved",
            height=state.block_number,
            holders=state.token_holders,
        )
        return True

    async def save_current_state(self, session: AsyncSession, block_versions: BlockVersions) -> CurrentChainState:
        state = await self.get_chain_state(session, block_versions, CurrentChainState)
        await session.execute(delete(CurrentChainState))
        session.add(state)
        logger.info("Current state updated", height=state.block_number)
        return state

    async def save_snapshot_if_due(
        self,
        session: AsyncSession,
        first: BlockVersions,
        schedule: SnapshotSchedule,
    ) -> SnapshotSchedule:
        """
        Take the durable snapshot for the window's first block if the cadence is met.

        Must run before the window's accounts are reconciled so the holder
        count is the one at the start of that block. Returns the schedule to
        carry into the next window.
        """
        if not self.is_due(schedule, first.block.timestamp):
            return schedule
        await self.save_snapshot(session, first)
        return SnapshotSchedule(last_snapshot_ms=first.block.timestamp)

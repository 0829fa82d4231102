"""Interfaces to the archive block source and chain storage"""
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, List, Optional, Protocol, Sequence


@dataclass(frozen=True)
class BlockHeader:
    id: str
    height: int
    hash: str
    timestamp: int  # unix ms, on-chain


@dataclass(frozen=True)
class EventItem:
    name: str  # e.g. "Balances.Transfer"
    args: Any  # payload as decoded by the archive


@dataclass(frozen=True)
class Block:
    header: BlockHeader
    events: List[EventItem] = field(default_factory=list)


class BlockSource(Protocol):
    """Port for the archive: finalized blocks in strictly increasing height order."""

    def batches(self, from_height: int, batch_size: int) -> AsyncIterator[List[Block]]:
        """Yield consecutive, gap-free windows of at most batch_size blocks."""


class ChainStorage(Protocol):
    """Port for runtime metadata lookups and raw storage queries."""

    def event_fingerprint(self, block: BlockHeader, name: str) -> Optional[str]:
        """Type hash of the event's payload under the block's runtime, None if undefined."""

    def storage_fingerprint(self, block: BlockHeader, prefix: str, item: str) -> Optional[str]:
        """Type hash of the storage item under the block's runtime, None if undefined."""

    async def get_storage(self, block_hash: str, prefix: str, item: str) -> Optional[bytes]:
        """Raw SCALE bytes of a plain storage value."""

    async def query_storage(
        self,
        block_hash: str,
        prefix: str,
        item: str,
        keys: Sequence[bytes],
    ) -> List[Optional[bytes]]:
        """Raw SCALE bytes for each key of a storage map, in key order."""

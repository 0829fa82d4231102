"""Holder indexer services"""
from .chain import Block, BlockHeader, BlockSource, ChainStorage, EventItem
from .versions import SchemaVersion, StorageItemAbsent, UnknownSchemaVersion
from .event_processor import EventKind, EventProcessor
from .snapshots import SnapshotSchedule, SnapshotScheduler

__all__ = [
    "Block",
    "BlockHeader",
    "BlockSource",
    "ChainStorage",
    "EventItem",
    "SchemaVersion",
    "StorageItemAbsent",
    "UnknownSchemaVersion",
    "EventKind",
    "EventProcessor",
    "SnapshotSchedule",
    "SnapshotScheduler",
]

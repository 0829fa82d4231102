"""Balances event processing: which accounts did an event touch"""
from enum import Enum
from typing import Any, Callable, Dict, Optional, Set, Tuple

import structlog

from holder_indexer.services.chain import Block, EventItem
from holder_indexer.services.versions import (
    BlockVersions,
    Decoder,
    SchemaVersion,
    UnknownSchemaVersion,
    VersionedItem,
    type_fingerprint,
)

logger = structlog.get_logger()

AccountIds = Tuple[str, ...]


class EventKind(str, Enum):
    """Balance-affecting events of the Balances pallet"""
    BALANCE_SET = "Balances.BalanceSet"
    ENDOWED = "Balances.Endowed"
    DEPOSIT = "Balances.Deposit"
    RESERVED = "Balances.Reserved"
    UNRESERVED = "Balances.Unreserved"
    WITHDRAW = "Balances.Withdraw"
    SLASHED = "Balances.Slashed"
    TRANSFER = "Balances.Transfer"
    RESERVE_REPATRIATED = "Balances.ReserveRepatriated"

    @property
    def pallet(self) -> str:
        return self.value.split(".")[0]

    @property
    def event_name(self) -> str:
        return self.value.split(".")[1]


def account_hex(value: Any) -> str:
    """Normalize an AccountId32 argument to lowercase 0x-prefixed hex."""
    if isinstance(value, (bytes, bytearray)):
        raw = bytes(value)
    elif isinstance(value, str):
        raw = bytes.fromhex(value[2:] if value[:2].lower() == "0x" else value)
    else:
        raise TypeError(f"Unsupported account id type: {type(value).__name__}")
    if len(raw) != 32:
        raise ValueError(f"AccountId32 must be 32 bytes, got {len(raw)}")
    return "0x" + raw.hex()


def positional(*indexes: int) -> Callable[[Any], AccountIds]:
    """Extractor for tuple payloads (runtimes before 3110)."""
    def extract(args: Any) -> AccountIds:
        return tuple(account_hex(args[i]) for i in indexes)
    return extract


def named(*keys: str) -> Callable[[Any], AccountIds]:
    """Extractor for named-field payloads (runtime 3110 onwards)."""
    def extract(args: Any) -> AccountIds:
        return tuple(account_hex(args[k]) for k in keys)
    return extract


def _event(kind: EventKind, *decoders: Decoder[AccountIds]) -> VersionedItem[AccountIds]:
    return VersionedItem(kind.pallet, kind.event_name, *decoders)


def _v(version: SchemaVersion, signature: str, extract: Callable[[Any], AccountIds]) -> Decoder[AccountIds]:
    return Decoder(version, type_fingerprint(signature), extract)


V1, V3100, V3110 = SchemaVersion.V1, SchemaVersion.V3100, SchemaVersion.V3110

EVENT_VERSIONS: Dict[EventKind, VersionedItem[AccountIds]] = {
    EventKind.BALANCE_SET: _event(
        EventKind.BALANCE_SET,
        _v(V1, "(AccountId32, u128, u128)", positional(0)),
        _v(V3110, "{who: AccountId32, free: u128, reserved: u128}", named("who")),
    ),
    EventKind.ENDOWED: _event(
        EventKind.ENDOWED,
        _v(V1, "(AccountId32, u128)", positional(0)),
        _v(V3110, "{account: AccountId32, freeBalance: u128}", named("account")),
    ),
    EventKind.DEPOSIT: _event(
        EventKind.DEPOSIT,
        _v(V1, "(AccountId32, u128)", positional(0)),
        _v(V3110, "{who: AccountId32, amount: u128}", named("who")),
    ),
    EventKind.RESERVED: _event(
        EventKind.RESERVED,
        _v(V1, "(AccountId32, u128)", positional(0)),
        _v(V3110, "{who: AccountId32, amount: u128}", named("who")),
    ),
    EventKind.UNRESERVED: _event(
        EventKind.UNRESERVED,
        _v(V1, "(AccountId32, u128)", positional(0)),
        _v(V3110, "{who: AccountId32, amount: u128}", named("who")),
    ),
    EventKind.WITHDRAW: _event(
        EventKind.WITHDRAW,
        _v(V3100, "(AccountId32, u128)", positional(0)),
        _v(V3110, "{who: AccountId32, amount: u128}", named("who")),
    ),
    EventKind.SLASHED: _event(
        EventKind.SLASHED,
        _v(V3100, "(AccountId32, u128)", positional(0)),
        _v(V3110, "{who: AccountId32, amount: u128}", named("who")),
    ),
    EventKind.TRANSFER: _event(
        EventKind.TRANSFER,
        _v(V1, "(AccountId32, AccountId32, u128)", positional(0, 1)),
        _v(V3110, "{from: AccountId32, to: AccountId32, amount: u128}", named("from", "to")),
    ),
    EventKind.RESERVE_REPATRIATED: _event(
        EventKind.RESERVE_REPATRIATED,
        _v(V1, "(AccountId32, AccountId32, u128, BalanceStatus)", positional(0, 1)),
        _v(
            V3110,
            "{from: AccountId32, to: AccountId32, amount: u128, destinationStatus: BalanceStatus}",
            named("from", "to"),
        ),
    ),
}

_unregistered = set(EventKind) - set(EVENT_VERSIONS)
if _unregistered:
    raise RuntimeError(f"No decoders registered for {sorted(k.value for k in _unregistered)}")


class EventProcessor:
    """
    Maps balance events to the accounts whose balance may have changed.

    Pure dispatch over (event kind, schema version); the only failure mode is
    UnknownSchemaVersion from the block's version resolution.
    """

    def __init__(self, versions: Optional[Dict[EventKind, VersionedItem[AccountIds]]] = None):
        self.versions = EVENT_VERSIONS if versions is None else versions

    def identify_event(self, name: str) -> Optional[EventKind]:
        """Event kind for an archive event name, None if not balance-affecting"""
        try:
            return EventKind(name)
        except ValueError:
            return None

    def accounts_for(self, block_versions: BlockVersions, item: EventItem) -> AccountIds:
        kind = self.identify_event(item.name)
        if kind is None:
            return ()
        versioned = self.versions.get(kind)
        if versioned is None:
            raise UnknownSchemaVersion(kind.value, None)
        decoder = block_versions.event(versioned)
        return decoder.decode(item.args)

    def process_block(self, block: Block, block_versions: BlockVersions, touched: Set[str]) -> int:
        """Add every account touched by the block's events to ``touched``; returns event count."""
        processed = 0
        for item in block.events:
            accounts = self.accounts_for(block_versions, item)
            if accounts:
                touched.update(accounts)
                processed += 1
        if processed:
            logger.debug("Processed events", height=block.header.height, events=processed)
        return processed

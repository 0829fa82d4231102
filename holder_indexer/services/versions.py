"""
Runtime schema version resolution.

Every decodable chain entity (an event or a storage item) has a closed set of
known payload layouts, each identified by the type hash ("fingerprint") the
runtime metadata reports for it. Resolution picks the decoder for the layout
active at a given block and fails loudly on anything unknown: mis-decoding a
balance would delete live accounts.
"""
import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Generic, List, Optional, TypeVar

from holder_indexer.services.chain import BlockHeader, ChainStorage

T = TypeVar("T")


class SchemaVersion(str, Enum):
    """Runtime spec versions that introduced a payload layout."""
    V1 = "v1"
    V3 = "v3"
    V3100 = "v3100"
    V3110 = "v3110"


class UnknownSchemaVersion(Exception):
    """No known decoder matches the fingerprint observed at a block. Fatal."""

    def __init__(self, category: str, fingerprint: Optional[str]):
        self.category = category
        self.fingerprint = fingerprint
        super().__init__(f"There is no relevant version for {category} (fingerprint={fingerprint})")


class StorageItemAbsent(Exception):
    """The storage item is not defined under the block's runtime."""

    def __init__(self, category: str):
        self.category = category
        super().__init__(f"{category} does not exist at this block")


def type_fingerprint(signature: str) -> str:
    """Fingerprint of a canonical type signature such as ``(AccountId32, u128)``."""
    return hashlib.sha256(signature.encode()).hexdigest()


@dataclass(frozen=True)
class Decoder(Generic[T]):
    version: SchemaVersion
    fingerprint: str
    decode: Callable[..., T]


class VersionedItem(Generic[T]):
    """All known layouts of one event or storage item, keyed by fingerprint."""

    def __init__(self, pallet: str, name: str, *decoders: Decoder[T]):
        self.pallet = pallet
        self.name = name
        self._decoders: Dict[str, Decoder[T]] = {}
        for decoder in decoders:
            if decoder.fingerprint in self._decoders:
                raise ValueError(f"Duplicate fingerprint for {self.category}: {decoder.fingerprint}")
            self._decoders[decoder.fingerprint] = decoder

    @property
    def category(self) -> str:
        return f"{self.pallet}.{self.name}"

    @property
    def decoders(self) -> List[Decoder[T]]:
        return list(self._decoders.values())

    @property
    def versions(self) -> List[SchemaVersion]:
        return [d.version for d in self.decoders]

    def resolve(self, fingerprint: str) -> Decoder[T]:
        try:
            return self._decoders[fingerprint]
        except KeyError:
            raise UnknownSchemaVersion(self.category, fingerprint) from None


class BlockVersions:
    """
    Decoder resolution scoped to one block.

    Each category is looked up once per block; later lookups return the cached
    decoder so every event of the block is decoded with the same layout.
    """

    def __init__(self, chain: ChainStorage, block: BlockHeader):
        self.chain = chain
        self.block = block
        self._resolved: Dict[str, Decoder] = {}

    def event(self, item: VersionedItem[T]) -> Decoder[T]:
        decoder = self._resolved.get(item.category)
        if decoder is None:
            fingerprint = self.chain.event_fingerprint(self.block, item.category)
            if fingerprint is None:
                # The block carries this event, so its runtime must define it
                raise UnknownSchemaVersion(item.category, None)
            decoder = self._resolved[item.category] = item.resolve(fingerprint)
        return decoder

    def storage(self, item: VersionedItem[T]) -> Decoder[T]:
        decoder = self._resolved.get(item.category)
        if decoder is None:
            fingerprint = self.chain.storage_fingerprint(self.block, item.pallet, item.name)
            if fingerprint is None:
                raise StorageItemAbsent(item.category)
            decoder = self._resolved[item.category] = item.resolve(fingerprint)
        return decoder

"""Versioned decoders for the storage items the indexer reads"""
import struct
from dataclasses import dataclass

from holder_indexer.services.versions import Decoder, SchemaVersion, VersionedItem


@dataclass(frozen=True)
class Balance:
    free: int
    reserved: int

    @property
    def total(self) -> int:
        return self.free + self.reserved


def _expect_length(data: bytes, size: int, layout: str) -> None:
    if len(data) != size:
        raise ValueError(f"{layout}: expected {size} bytes, got {len(data)}")


def _u128(data: bytes, offset: int) -> int:
    lo, hi = struct.unpack_from("<QQ", data, offset)
    return lo | (hi << 64)


def _account_data(data: bytes, offset: int) -> Balance:
    # AccountData: free, reserved, misc_frozen, fee_frozen (u128 each)
    return Balance(free=_u128(data, offset), reserved=_u128(data, offset + 16))


def decode_account_info_v1(data: bytes) -> Balance:
    """AccountInfo: nonce, consumers, providers (u32 each), then AccountData."""
    _expect_length(data, 12 + 64, "AccountInfo v1")
    return _account_data(data, 12)


def decode_account_info_v3(data: bytes) -> Balance:
    """AccountInfo: nonce, consumers, providers, sufficients (u32 each), then AccountData."""
    _expect_length(data, 16 + 64, "AccountInfo v3")
    return _account_data(data, 16)


def decode_u128(data: bytes) -> int:
    _expect_length(data, 16, "u128")
    return _u128(data, 0)


SYSTEM_ACCOUNT: VersionedItem[Balance] = VersionedItem(
    "System",
    "Account",
    Decoder(
        SchemaVersion.V1,
        "73070b537f1805475b37167271b33ac7fd6ffad8ba62da08bc14937a017b8bb2",
        decode_account_info_v1,
    ),
    Decoder(
        SchemaVersion.V3,
        "1ddc7ade926221442c388ee4405a71c9428e548fab037445aaf4b3a78f4735c1",
        decode_account_info_v3,
    ),
)

TOTAL_ISSUANCE: VersionedItem[int] = VersionedItem(
    "Balances",
    "TotalIssuance",
    Decoder(
        SchemaVersion.V1,
        "f8ebe28eb30158172c0ccf672f7747c46a244f892d08ef2ebcbaadde34a26bc0",
        decode_u128,
    ),
)

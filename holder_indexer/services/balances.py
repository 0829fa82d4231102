"""Balance fetching and account reconciliation"""
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional

import structlog
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from holder_indexer.models.account import Account
from holder_indexer.services.storage import SYSTEM_ACCOUNT, Balance
from holder_indexer.services.versions import BlockVersions, StorageItemAbsent

logger = structlog.get_logger()


async def fetch_balances(
    block_versions: BlockVersions,
    account_ids: Iterable[str],
) -> Optional[Dict[str, Optional[Balance]]]:
    """
    Read System.Account for every id at the block in one batched query.

    Returns None when the storage item does not exist under the block's
    runtime; the caller must then leave accounts untouched. Ids whose entry
    comes back empty map to None.
    """
    ids = sorted(account_ids)
    if not ids:
        return {}

    try:
        decoder = block_versions.storage(SYSTEM_ACCOUNT)
    except StorageItemAbsent:
        logger.warning("No balances", height=block_versions.block.height, accounts=len(ids))
        return None

    block = block_versions.block
    raw = await block_versions.chain.query_storage(
        block.hash,
        SYSTEM_ACCOUNT.pallet,
        SYSTEM_ACCOUNT.name,
        [bytes.fromhex(i[2:]) for i in ids],
    )
    if len(raw) != len(ids):
        raise ValueError(f"Storage returned {len(raw)} entries for {len(ids)} keys")

    return {
        account_id: decoder.decode(data) if data is not None else None
        for account_id, data in zip(ids, raw)
    }


@dataclass
class Reconciliation:
    upserts: List[Account] = field(default_factory=list)
    deletions: List[str] = field(default_factory=list)


def reconcile(
    height: int,
    balances: Dict[str, Optional[Balance]],
    encode_id: Callable[[bytes], str],
) -> Reconciliation:
    """Split fetched balances into rows to upsert (total > 0) and addresses to delete."""
    result = Reconciliation()
    for account_id, balance in balances.items():
        if balance is None:
            continue
        address = encode_id(bytes.fromhex(account_id[2:]))
        total = balance.total
        if total > 0:
            result.upserts.append(
                Account(
                    id=address,
                    free=balance.free,
                    reserved=balance.reserved,
                    total=total,
                    updated_at=height,
                )
            )
        else:
            result.deletions.append(address)
    return result


async def save_accounts(
    session: AsyncSession,
    height: int,
    balances: Dict[str, Optional[Balance]],
    encode_id: Callable[[bytes], str],
) -> Reconciliation:
    """Apply the reconciliation inside the caller's transaction."""
    result = reconcile(height, balances, encode_id)

    for account in result.upserts:
        await session.merge(account)
    if result.deletions:
        await session.execute(delete(Account).where(Account.id.in_(result.deletions)))

    logger.info(
        "Accounts reconciled",
        height=height,
        updated=len(result.upserts),
        deleted=len(result.deletions),
    )
    return result

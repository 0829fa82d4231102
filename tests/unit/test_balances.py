"""Unit tests for balance fetching and reconciliation"""
import pytest
from unittest.mock import AsyncMock

from holder_indexer.services.balances import fetch_balances, reconcile
from holder_indexer.services.storage import Balance
from holder_indexer.services.versions import BlockVersions, SchemaVersion, UnknownSchemaVersion
from tests.fakes import ALICE, BOB, CHARLIE, FakeChain, make_block


def hex_encoder(raw: bytes) -> str:
    return "0x" + raw.hex()


class TestFetchBalances:
    """Tests for the batched System.Account query"""

    @pytest.fixture
    def chain(self):
        chain = FakeChain()
        chain.set_balance(1, ALICE, 100)
        chain.set_balance(1, BOB, 30, 20)
        return chain

    @pytest.mark.asyncio
    async def test_single_batched_query(self, chain):
        """Test all accounts are fetched in one storage call"""
        versions = BlockVersions(chain, make_block(1, 0).header)
        balances = await fetch_balances(versions, {ALICE, BOB, CHARLIE})

        assert len(chain.queries) == 1
        assert balances == {
            ALICE: Balance(100, 0),
            BOB: Balance(30, 20),
            CHARLIE: Balance(0, 0),
        }

    @pytest.mark.asyncio
    async def test_v1_layout(self, chain):
        """Test balances decode with the layout active at the block"""
        chain.account_version = SchemaVersion.V1
        versions = BlockVersions(chain, make_block(1, 0).header)
        balances = await fetch_balances(versions, {BOB})
        assert balances == {BOB: Balance(30, 20)}

    @pytest.mark.asyncio
    async def test_no_accounts(self, chain):
        """Test an empty window queries nothing"""
        versions = BlockVersions(chain, make_block(1, 0).header)
        assert await fetch_balances(versions, set()) == {}
        assert chain.queries == []

    @pytest.mark.asyncio
    async def test_storage_absent(self, chain):
        """Test a missing System.Account item yields no balances"""
        chain.storage_overrides[("System", "Account")] = None
        versions = BlockVersions(chain, make_block(1, 0).header)
        assert await fetch_balances(versions, {ALICE}) is None
        assert chain.queries == []

    @pytest.mark.asyncio
    async def test_unknown_layout(self, chain):
        """Test an unknown System.Account layout is fatal"""
        chain.storage_overrides[("System", "Account")] = "00" * 32
        versions = BlockVersions(chain, make_block(1, 0).header)
        with pytest.raises(UnknownSchemaVersion):
            await fetch_balances(versions, {ALICE})

    @pytest.mark.asyncio
    async def test_empty_entries_map_to_none(self, chain):
        """Test keys without a storage entry are reported as absent"""
        chain.query_storage = AsyncMock(return_value=[None])
        versions = BlockVersions(chain, make_block(1, 0).header)
        assert await fetch_balances(versions, {ALICE}) == {ALICE: None}


class TestReconcile:
    """Tests for the upsert/delete policy"""

    def test_nonzero_total_upserted(self):
        """Test accounts with balance become rows with total = free + reserved"""
        result = reconcile(42, {CHARLIE: Balance(30, 20)}, hex_encoder)

        assert result.deletions == []
        [account] = result.upserts
        assert account.id == CHARLIE
        assert (account.free, account.reserved, account.total) == (30, 20, 50)
        assert account.updated_at == 42

    def test_zero_total_deleted(self):
        """Test zero-balance accounts are deleted, not zeroed"""
        result = reconcile(42, {ALICE: Balance(0, 0)}, hex_encoder)
        assert result.upserts == []
        assert result.deletions == [ALICE]

    def test_absent_balance_skipped(self):
        """Test undeterminable balances neither upsert nor delete"""
        result = reconcile(42, {ALICE: None}, hex_encoder)
        assert result.upserts == []
        assert result.deletions == []

    def test_reserved_only_counts(self):
        """Test a fully reserved balance keeps the account"""
        result = reconcile(1, {BOB: Balance(0, 5)}, hex_encoder)
        assert [a.total for a in result.upserts] == [5]

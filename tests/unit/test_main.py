"""Unit tests for processor wiring"""
from unittest.mock import MagicMock, patch

from scalecodec.utils.ss58 import ss58_encode

from holder_indexer.config import Settings
from holder_indexer.main import build_indexer
from holder_indexer.models.database import create_engine
from holder_indexer.services.addresses import encode_id, id_encoder
from tests.fakes import ALICE


class TestBuildIndexer:
    """Tests for building the indexer from settings"""

    def test_settings_applied(self):
        settings = Settings(start_block=10, batch_size=7, snapshot_interval_ms=5_000, ss58_prefix=2)
        factory = MagicMock()
        indexer = build_indexer(MagicMock(), MagicMock(), settings, factory)

        assert indexer.session_factory is factory
        assert indexer.start_block == 10
        assert indexer.batch_size == 7
        assert indexer.scheduler.interval_ms == 5_000
        raw = bytes.fromhex(ALICE[2:])
        assert indexer.encode_id(raw) == ss58_encode(raw, ss58_format=2)

    def test_defaults(self):
        """Test defaults target calamari from the first decodable block"""
        settings = Settings()
        assert settings.ss58_prefix == 78
        assert settings.start_block == 275_940
        assert settings.batch_size == 500


class TestAddresses:

    def test_prefix_changes_address(self):
        raw = bytes.fromhex(ALICE[2:])
        assert encode_id(raw, 78) != encode_id(raw, 0)
        assert id_encoder(78)(raw) == encode_id(raw, 78)


class TestCreateEngine:
    """Tests for building the engine from settings"""

    def test_uses_configured_url(self, tmp_path):
        url = f"sqlite+aiosqlite:///{tmp_path / 'holders.db'}"
        engine = create_engine(Settings(database_url=url, debug=False))

        assert engine.url.render_as_string(hide_password=False) == url
        assert engine.echo is False

    def test_pool_size_applied_to_server_backends(self):
        with patch("holder_indexer.models.database.create_async_engine") as factory:
            create_engine(Settings(database_url="postgresql+asyncpg://u:p@db:5432/holders", database_pool_size=3, debug=False))

        factory.assert_called_once_with("postgresql+asyncpg://u:p@db:5432/holders", echo=False, pool_size=3)

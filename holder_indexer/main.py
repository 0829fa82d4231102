"""Holder Indexer - processor entry point"""
import logging
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from holder_indexer.config import Settings, get_settings
from holder_indexer.models.database import close_db, create_engine, create_session_factory, init_db
from holder_indexer.services.addresses import id_encoder
from holder_indexer.services.chain import BlockSource, ChainStorage
from holder_indexer.services.indexer import BalanceIndexer

logger = structlog.get_logger()


def configure_logging(debug: bool = False) -> None:
    """Configure structured logging"""
    logging.basicConfig(format="%(message)s", level=logging.DEBUG if debug else logging.INFO)
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.dev.ConsoleRenderer()
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def build_indexer(
    source: BlockSource,
    chain: ChainStorage,
    settings: Settings,
    session_factory: async_sessionmaker[AsyncSession],
) -> BalanceIndexer:
    return BalanceIndexer(
        source=source,
        chain=chain,
        session_factory=session_factory,
        encode_id=id_encoder(settings.ss58_prefix),
        snapshot_interval_ms=settings.snapshot_interval_ms,
        start_block=settings.start_block,
        batch_size=settings.batch_size,
    )


async def run(
    source: BlockSource,
    chain: ChainStorage,
    settings: Optional[Settings] = None,
) -> int:
    """
    Run the balance processor until the source is exhausted.

    The archive source and chain storage are supplied by the deployment;
    returns the number of committed windows.
    """
    settings = settings or get_settings()
    configure_logging(settings.debug)
    logger.info("Starting Holder Indexer", version=settings.app_version, chain=settings.chain_name)

    engine = create_engine(settings)
    try:
        await init_db(engine)
        logger.info("Database initialized")
        indexer = build_indexer(source, chain, settings, create_session_factory(engine))
        return await indexer.run()
    finally:
        await close_db(engine)
        logger.info("Holder Indexer stopped")

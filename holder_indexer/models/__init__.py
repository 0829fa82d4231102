"""Database models"""
from holder_indexer.models.database import Base, Amount, create_engine, create_session_factory
from holder_indexer.models.account import Account
from holder_indexer.models.chain_state import ChainState, CurrentChainState, ProcessorStatus

__all__ = [
    "Base",
    "Amount",
    "create_engine",
    "create_session_factory",
    "Account",
    "ChainState",
    "CurrentChainState",
    "ProcessorStatus",
]

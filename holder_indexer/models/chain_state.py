"""Chain-state snapshot models"""
from sqlalchemy import Column, Integer, DateTime, String

from holder_indexer.models.database import Base, Amount


class ChainStateMixin:
    """Columns shared by durable and current chain-state rows"""

    id = Column(String, primary_key=True)  # block id
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    block_number = Column(Integer, nullable=False, index=True)
    total_issuance = Column(Amount, nullable=False)
    token_holders = Column(Integer, nullable=False)

    def __repr__(self):
        return (
            f"<{type(self).__name__} block={self.block_number} "
            f"holders={self.token_holders}>"
        )


class ChainState(ChainStateMixin, Base):
    """Immutable snapshot taken at the configured on-chain cadence"""
    __tablename__ = "chain_state"


class CurrentChainState(ChainStateMixin, Base):
    """Latest known chain state, replaced after every processing window"""
    __tablename__ = "current_chain_state"


class ProcessorStatus(Base):
    """Last block whose window was committed"""
    __tablename__ = "processor_status"

    id = Column(Integer, primary_key=True)
    height = Column(Integer, nullable=False)
    hash = Column(String, nullable=False)

    def __repr__(self):
        return f"<ProcessorStatus height={self.height}>"

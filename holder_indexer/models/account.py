"""Account balance model"""
from sqlalchemy import Column, Integer, String

from holder_indexer.models.database import Base, Amount


class Account(Base):
    """
    Token holder with a nonzero balance.

    A row exists only while free + reserved > 0; accounts whose balance
    drops to zero are deleted rather than zeroed.
    """
    __tablename__ = "account"

    id = Column(String, primary_key=True)  # ss58 address
    free = Column(Amount, nullable=False)
    reserved = Column(Amount, nullable=False)
    total = Column(Amount, nullable=False)
    updated_at = Column(Integer, nullable=True)  # block height

    def __repr__(self):
        return f"<Account {self.id[:8]}... ({self.total})>"

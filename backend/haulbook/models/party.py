"""
Party database model.

Customers, quarry owners, transporters, royalty owners and generic accounts
known to the accounting summary. Maintained by the reference-data screens;
read-only for this service.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum
from sqlalchemy.sql import func
from backend.haulbook.db.session import Base
from backend.haulbook.models.party_enums import PartyCategory


class Party(Base):
    __tablename__ = "parties"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    name = Column(String(120), nullable=False, unique=True, index=True)
    category = Column(Enum(PartyCategory), nullable=False, index=True)
    opening_balance = Column(Numeric(16, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    def __repr__(self):
        return f"<Party(id={self.id}, name='{self.name}', category='{self.category.value}')>"

"""
Ledger Transaction database model.

Dated debit/credit movement against one account's running balance. Used for
both the supervisor daily-expense book and the general ledger.
"""

from sqlalchemy import Column, Integer, String, Numeric, Date, DateTime, Enum, Index
from sqlalchemy.sql import func
from backend.haulbook.db.session import Base
from backend.haulbook.models.ledger_enums import LedgerBook, LedgerDirection
from backend.haulbook.models.rate_enums import RatePartyType


class LedgerTransaction(Base):
    """
    Ledger Transaction model.

    Balance scope is (book, account_key). Chronological order is (date, id);
    the autoincrement id doubles as creation order for same-day entries.
    available_balance / closing_balance are written only by the ledger
    recompute pass.
    """
    __tablename__ = "ledger_transactions"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)

    # Account
    book = Column(Enum(LedgerBook), nullable=False)
    account_key = Column(String(120), nullable=False)

    # Movement
    date = Column(Date, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)  # Magnitude, never negative
    direction = Column(Enum(LedgerDirection), nullable=False)

    # Counterparty details
    counterparty = Column(String(120), nullable=False)
    via = Column(String(120), nullable=False, default="")
    category = Column(String(120), nullable=False, default="")
    sub_category = Column(String(120), nullable=False, default="")
    rate_party_type = Column(Enum(RatePartyType), nullable=True)
    rate_party_id = Column(String(64), nullable=True)
    remarks = Column(String(500), nullable=False, default="")

    # Derived running balances
    available_balance = Column(Numeric(16, 2), nullable=False, default=0)
    closing_balance = Column(Numeric(16, 2), nullable=False, default=0)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_ledger_transactions_account", "book", "account_key", "date", "id"),
    )

    def __repr__(self):
        return (
            f"<LedgerTransaction(id={self.id}, account='{self.account_key}', "
            f"type='{self.direction.value}', amount={self.amount})>"
        )

"""
Account opening balance model.

One row per ledger account; created with zero the first time the account is
referenced.
"""

from sqlalchemy import Column, Integer, String, Numeric, DateTime, Enum, UniqueConstraint
from sqlalchemy.sql import func
from backend.haulbook.db.session import Base
from backend.haulbook.models.ledger_enums import LedgerBook


class AccountOpeningBalance(Base):
    __tablename__ = "account_opening_balances"

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    book = Column(Enum(LedgerBook), nullable=False)
    account_key = Column(String(120), nullable=False)
    amount = Column(Numeric(16, 2), nullable=False, default=0)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint("book", "account_key", name="uq_opening_balance_account"),
    )

    def __repr__(self):
        return f"<AccountOpeningBalance(account='{self.account_key}', amount={self.amount})>"

"""
Ledger schemas.

Schemas for running-balance ledger transactions and account opening balances.
"""

from pydantic import BaseModel, Field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from backend.haulbook.models.ledger_enums import LedgerBook, LedgerDirection
from backend.haulbook.models.rate_enums import RatePartyType


class LedgerTransactionBase(BaseModel):
    """Fields shared by create and update."""
    book: LedgerBook = LedgerBook.DAILY_EXPENSE
    account_key: str = Field(..., min_length=1, max_length=120)
    date: date
    amount: Decimal = Field(..., ge=0)  # Sign comes from direction
    direction: LedgerDirection
    counterparty: str = Field(..., min_length=1, max_length=120)
    via: str = Field(default="", max_length=120)
    category: str = Field(default="", max_length=120)
    sub_category: str = Field(default="", max_length=120)
    rate_party_type: Optional[RatePartyType] = None
    rate_party_id: Optional[str] = Field(default=None, max_length=64)
    remarks: str = Field(default="", max_length=500)

    def details(self) -> dict:
        """Descriptive fields, as passed to the ledger service."""
        return self.model_dump(
            include={"counterparty", "via", "category", "sub_category",
                     "rate_party_type", "rate_party_id", "remarks"}
        )


class LedgerTransactionCreate(LedgerTransactionBase):
    """Schema for recording a ledger transaction."""


class LedgerTransactionUpdate(LedgerTransactionBase):
    """Schema for editing a ledger transaction (full replacement)."""


class LedgerTransactionResponse(BaseModel):
    """Schema for displaying a ledger transaction with its running balances."""
    id: int
    book: LedgerBook
    account_key: str
    date: date
    amount: Decimal
    direction: LedgerDirection
    counterparty: str
    via: str
    category: str
    sub_category: str
    rate_party_type: Optional[RatePartyType]
    rate_party_id: Optional[str]
    remarks: str
    available_balance: Decimal
    closing_balance: Decimal
    created_at: datetime

    class Config:
        from_attributes = True


class LedgerAccountResponse(BaseModel):
    """One account's opening balance and transactions, newest first."""
    book: LedgerBook
    account_key: str
    opening_balance: Decimal
    transactions: List[LedgerTransactionResponse]


class OpeningBalanceUpdate(BaseModel):
    """Schema for setting an account's opening balance (may be negative)."""
    amount: Decimal


class OpeningBalanceResponse(BaseModel):
    book: LedgerBook
    account_key: str
    opening_balance: Decimal

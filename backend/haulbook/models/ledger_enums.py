"""
Ledger enumerations.
"""

import enum


class LedgerDirection(str, enum.Enum):
    """Ledger transaction direction."""
    DEBIT = "DEBIT"  # Money leaving the account
    CREDIT = "CREDIT"  # Money entering the account


class LedgerBook(str, enum.Enum):
    """Which running ledger a transaction belongs to."""
    DAILY_EXPENSE = "DAILY_EXPENSE"  # Supervisor cash book (account = supervisor name)
    GENERAL = "GENERAL"  # Main ledger (account = paying account name)

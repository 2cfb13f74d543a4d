"""
Ledger repository.

Loads and stores ledger transactions and opening balances per
(book, account_key).
"""

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.models.ledger_enums import LedgerBook
from backend.haulbook.models.ledger_transaction import LedgerTransaction
from backend.haulbook.models.opening_balance import AccountOpeningBalance


class LedgerRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get(self, transaction_id: int, for_update: bool = False) -> Optional[LedgerTransaction]:
        query = select(LedgerTransaction).where(LedgerTransaction.id == transaction_id)
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def list_chronological(
        self,
        book: LedgerBook,
        account_key: str,
        for_update: bool = False,
    ) -> List[LedgerTransaction]:
        """All transactions of one account ordered by (date, creation order)."""
        query = select(LedgerTransaction).where(
            LedgerTransaction.book == book,
            LedgerTransaction.account_key == account_key,
        ).order_by(LedgerTransaction.date.asc(), LedgerTransaction.id.asc())
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def list_book(
        self,
        book: LedgerBook,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
    ) -> List[LedgerTransaction]:
        """Every transaction of a book, optionally limited to a date range."""
        query = select(LedgerTransaction).where(LedgerTransaction.book == book)
        if date_from is not None:
            query = query.where(LedgerTransaction.date >= date_from)
        if date_to is not None:
            query = query.where(LedgerTransaction.date <= date_to)
        query = query.order_by(LedgerTransaction.date.asc(), LedgerTransaction.id.asc())
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def get_opening_balance(
        self,
        book: LedgerBook,
        account_key: str,
        for_update: bool = False,
    ) -> Optional[AccountOpeningBalance]:
        query = select(AccountOpeningBalance).where(
            AccountOpeningBalance.book == book,
            AccountOpeningBalance.account_key == account_key,
        )
        if for_update:
            query = query.with_for_update()
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_or_create_opening_balance(
        self,
        book: LedgerBook,
        account_key: str,
    ) -> AccountOpeningBalance:
        """
        Opening balance row of an account, created at zero on first reference.

        Locks the row, which serializes writers of the account across workers.
        A concurrent first reference surfaces as an IntegrityError at flush.
        """
        opening = await self.get_opening_balance(book, account_key, for_update=True)
        if opening is None:
            opening = AccountOpeningBalance(book=book, account_key=account_key, amount=0)
            self.db.add(opening)
            await self.db.flush()
        return opening

    def add(self, transaction: LedgerTransaction) -> None:
        self.db.add(transaction)

    async def delete(self, transaction: LedgerTransaction) -> None:
        await self.db.delete(transaction)

"""
Ledger Service (Domain Logic).

Keeps the running balances of every ledger account consistent. Any insert,
edit or delete can move every later row's balances, so each mutation is
followed by a full chronological recompute of the account before the
transaction commits.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.exceptions import InvalidAmountError, ResourceNotFoundError
from backend.haulbook.db.unit_of_work import atomic
from backend.haulbook.domain.ledger.running_balance import compute_running_balances, to_money
from backend.haulbook.models.ledger_enums import LedgerBook, LedgerDirection
from backend.haulbook.models.ledger_transaction import LedgerTransaction
from backend.haulbook.repositories.ledger_repository import LedgerRepository
from backend.haulbook.services.audit import log_event, AuditAction

logger = logging.getLogger("haulbook.ledger")

# Descriptive fields a caller may set; balances are never among them
DETAIL_FIELDS = (
    "counterparty",
    "via",
    "category",
    "sub_category",
    "rate_party_type",
    "rate_party_id",
    "remarks",
)


def account_scope(book: LedgerBook, account_key: str) -> tuple:
    return ("ledger", LedgerBook(book).value, account_key)


def _checked_amount(amount) -> Decimal:
    value = to_money(amount)
    if value < 0:
        raise InvalidAmountError(amount)
    return value


async def _recompute(db: AsyncSession, book: LedgerBook, account_key: str) -> Decimal:
    """
    Rewrite available/closing balances of one account. Caller owns the transaction.

    Returns:
        The account's opening balance
    """
    await db.flush()
    repo = LedgerRepository(db)

    opening = await repo.get_or_create_opening_balance(book, account_key)
    entries = await repo.list_chronological(book, account_key, for_update=True)

    changed = 0
    for entry, pair in zip(entries, compute_running_balances(opening.amount, entries)):
        if entry.available_balance != pair.available_balance or entry.closing_balance != pair.closing_balance:
            entry.available_balance = pair.available_balance
            entry.closing_balance = pair.closing_balance
            changed += 1

    await db.flush()
    logger.debug(
        "Recomputed %s/%s: %d entries, %d changed", LedgerBook(book).value, account_key, len(entries), changed
    )
    return to_money(opening.amount)


class LedgerService:

    @staticmethod
    async def recompute(db: AsyncSession, book: LedgerBook, account_key: str) -> Decimal:
        """
        Recompute the running balances of one account and commit.

        Flow:
        1. Resolve the opening balance (created at 0 on first reference)
        2. Load the account's transactions by (date, creation order)
        3. available = running; running += +/- amount; closing = running
        4. Return the opening balance
        """
        async with atomic(db, account_scope(book, account_key), "recompute ledger"):
            opening = await _recompute(db, book, account_key)
        return opening

    @staticmethod
    async def insert(
        db: AsyncSession,
        book: LedgerBook,
        account_key: str,
        tx_date: date,
        amount,
        direction: LedgerDirection,
        details: Optional[Dict[str, Any]] = None,
        actor_username: Optional[str] = None,
    ) -> LedgerTransaction:
        """
        Record a transaction and recompute the account.

        Raises:
            InvalidAmountError, TransactionFailureError
        """
        amount = _checked_amount(amount)
        details = {k: v for k, v in (details or {}).items() if k in DETAIL_FIELDS}

        async with atomic(db, account_scope(book, account_key), "create ledger transaction"):
            transaction = LedgerTransaction(
                book=book,
                account_key=account_key,
                date=tx_date,
                amount=amount,
                direction=direction,
                available_balance=0,
                closing_balance=0,
                **details,
            )
            LedgerRepository(db).add(transaction)
            await _recompute(db, book, account_key)

        await db.refresh(transaction)

        await log_event(
            db=db,
            action=AuditAction.LEDGER_TX_CREATED,
            entity_type="ledger_transaction",
            entity_id=transaction.id,
            actor_username=actor_username,
            metadata={
                "book": book,
                "account_key": account_key,
                "date": tx_date,
                "amount": amount,
                "direction": direction,
            },
        )
        return transaction

    @staticmethod
    async def update(
        db: AsyncSession,
        transaction_id: int,
        book: LedgerBook,
        account_key: str,
        tx_date: date,
        amount,
        direction: LedgerDirection,
        details: Optional[Dict[str, Any]] = None,
        actor_username: Optional[str] = None,
    ) -> LedgerTransaction:
        """
        Edit a transaction and recompute its account.

        When the edit moves the row to another account, both the old and the
        new account are recomputed in the same transaction.

        Raises:
            ResourceNotFoundError, InvalidAmountError, TransactionFailureError
        """
        amount = _checked_amount(amount)
        details = {k: v for k, v in (details or {}).items() if k in DETAIL_FIELDS}
        repo = LedgerRepository(db)

        current = await repo.get(transaction_id)
        if not current:
            raise ResourceNotFoundError("Ledger transaction", transaction_id)
        old_book, old_account = LedgerBook(current.book), current.account_key

        scopes = [account_scope(old_book, old_account), account_scope(book, account_key)]
        async with atomic(db, scopes, "update ledger transaction"):
            transaction = await repo.get(transaction_id, for_update=True)
            if not transaction:
                raise ResourceNotFoundError("Ledger transaction", transaction_id)

            transaction.book = book
            transaction.account_key = account_key
            transaction.date = tx_date
            transaction.amount = amount
            transaction.direction = direction
            for name, value in details.items():
                setattr(transaction, name, value)

            await _recompute(db, book, account_key)
            if (old_book, old_account) != (LedgerBook(book), account_key):
                await _recompute(db, old_book, old_account)

        await db.refresh(transaction)

        await log_event(
            db=db,
            action=AuditAction.LEDGER_TX_UPDATED,
            entity_type="ledger_transaction",
            entity_id=transaction.id,
            actor_username=actor_username,
            metadata={
                "book": book,
                "account_key": account_key,
                "previous_account_key": old_account,
                "date": tx_date,
                "amount": amount,
                "direction": direction,
            },
        )
        return transaction

    @staticmethod
    async def delete(
        db: AsyncSession,
        transaction_id: int,
        actor_username: Optional[str] = None,
    ) -> None:
        """
        Remove a transaction and recompute its account.

        Raises:
            ResourceNotFoundError, TransactionFailureError
        """
        repo = LedgerRepository(db)
        current = await repo.get(transaction_id)
        if not current:
            raise ResourceNotFoundError("Ledger transaction", transaction_id)
        book, account_key = LedgerBook(current.book), current.account_key
        snapshot = {
            "book": book,
            "account_key": account_key,
            "date": current.date,
            "amount": current.amount,
            "direction": current.direction,
        }

        async with atomic(db, account_scope(book, account_key), "delete ledger transaction"):
            transaction = await repo.get(transaction_id, for_update=True)
            if not transaction:
                raise ResourceNotFoundError("Ledger transaction", transaction_id)
            await repo.delete(transaction)
            await _recompute(db, book, account_key)

        await log_event(
            db=db,
            action=AuditAction.LEDGER_TX_DELETED,
            entity_type="ledger_transaction",
            entity_id=transaction_id,
            actor_username=actor_username,
            metadata=snapshot,
        )

    @staticmethod
    async def set_opening_balance(
        db: AsyncSession,
        book: LedgerBook,
        account_key: str,
        amount,
        actor_username: Optional[str] = None,
    ) -> Decimal:
        """Set an account's opening balance and shift every row accordingly."""
        amount = to_money(amount)

        async with atomic(db, account_scope(book, account_key), "set opening balance"):
            opening = await LedgerRepository(db).get_or_create_opening_balance(book, account_key)
            previous = to_money(opening.amount)
            opening.amount = amount
            await _recompute(db, book, account_key)

        await log_event(
            db=db,
            action=AuditAction.OPENING_BALANCE_SET,
            entity_type="ledger_account",
            entity_id=f"{LedgerBook(book).value}:{account_key}",
            actor_username=actor_username,
            metadata={"previous": previous, "amount": amount},
        )
        return amount

    @staticmethod
    async def list_account(
        db: AsyncSession,
        book: LedgerBook,
        account_key: str,
    ) -> Tuple[Decimal, List[LedgerTransaction]]:
        """
        Opening balance and transactions of an account, newest first.

        Balances are recomputed before reading so the listing is always
        consistent with the stored rows.
        """
        async with atomic(db, account_scope(book, account_key), "list ledger account"):
            opening = await _recompute(db, book, account_key)
            entries = await LedgerRepository(db).list_chronological(book, account_key)
        return opening, list(reversed(entries))

    @staticmethod
    async def get_transaction(db: AsyncSession, transaction_id: int) -> LedgerTransaction:
        transaction = await LedgerRepository(db).get(transaction_id)
        if not transaction:
            raise ResourceNotFoundError("Ledger transaction", transaction_id)
        return transaction

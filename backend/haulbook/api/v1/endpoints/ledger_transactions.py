"""
Ledger API Endpoints.

Record, edit and delete ledger transactions; every change returns rows with
recomputed running balances.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.dependencies import get_actor_username
from backend.haulbook.db.session import get_db
from backend.haulbook.domain.ledger.ledger_service import LedgerService
from backend.haulbook.models.ledger_enums import LedgerBook
from backend.haulbook.schemas.ledger import (
    LedgerTransactionCreate, LedgerTransactionUpdate, LedgerTransactionResponse,
    LedgerAccountResponse, OpeningBalanceUpdate, OpeningBalanceResponse,
)

router = APIRouter(prefix="/ledger-transactions", tags=["Ledger"])
accounts_router = APIRouter(prefix="/ledger-accounts", tags=["Ledger"])


@router.post("", response_model=LedgerTransactionResponse, status_code=status.HTTP_201_CREATED)
async def create_ledger_transaction(
    payload: LedgerTransactionCreate,
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    """Record a transaction; the account's balances are recomputed before commit."""
    return await LedgerService.insert(
        db,
        payload.book,
        payload.account_key,
        payload.date,
        payload.amount,
        payload.direction,
        details=payload.details(),
        actor_username=actor_username,
    )


@router.get("", response_model=LedgerAccountResponse)
async def list_ledger_transactions(
    account_key: str = Query(..., min_length=1, description="Account (e.g. supervisor) name"),
    book: LedgerBook = Query(LedgerBook.DAILY_EXPENSE),
    db: AsyncSession = Depends(get_db)
):
    """Opening balance and transactions of one account, newest first."""
    opening_balance, transactions = await LedgerService.list_account(db, book, account_key)
    return LedgerAccountResponse(
        book=book,
        account_key=account_key,
        opening_balance=opening_balance,
        transactions=[LedgerTransactionResponse.model_validate(t) for t in transactions],
    )


@router.get("/{transaction_id}", response_model=LedgerTransactionResponse)
async def get_ledger_transaction(
    transaction_id: int = Path(..., description="Ledger transaction ID"),
    db: AsyncSession = Depends(get_db)
):
    return await LedgerService.get_transaction(db, transaction_id)


@router.put("/{transaction_id}", response_model=LedgerTransactionResponse)
async def update_ledger_transaction(
    payload: LedgerTransactionUpdate,
    transaction_id: int = Path(..., description="Ledger transaction ID"),
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    """Edit a transaction; affected accounts are recomputed before commit."""
    return await LedgerService.update(
        db,
        transaction_id,
        payload.book,
        payload.account_key,
        payload.date,
        payload.amount,
        payload.direction,
        details=payload.details(),
        actor_username=actor_username,
    )


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_ledger_transaction(
    transaction_id: int = Path(..., description="Ledger transaction ID"),
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    await LedgerService.delete(db, transaction_id, actor_username=actor_username)


@accounts_router.put("/{book}/{account_key}/opening-balance", response_model=OpeningBalanceResponse)
async def set_opening_balance(
    payload: OpeningBalanceUpdate,
    book: LedgerBook = Path(...),
    account_key: str = Path(..., min_length=1),
    actor_username: Optional[str] = Depends(get_actor_username),
    db: AsyncSession = Depends(get_db)
):
    """Set an account's opening balance; all its running balances shift with it."""
    amount = await LedgerService.set_opening_balance(
        db, book, account_key, payload.amount, actor_username=actor_username
    )
    return OpeningBalanceResponse(book=book, account_key=account_key, opening_balance=amount)

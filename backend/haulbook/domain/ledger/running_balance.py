"""
Running balance computation.

Pure functions: given an opening balance and an account's transactions in
chronological order, produce the balance before and after each one.
"""

from decimal import Decimal
from typing import Iterable, List, NamedTuple, Sequence

from backend.haulbook.models.ledger_enums import LedgerDirection

CENT = Decimal("0.01")


class BalancePair(NamedTuple):
    available_balance: Decimal
    closing_balance: Decimal


def to_money(value) -> Decimal:
    """Coerce to a 2-place Decimal without going through float."""
    if isinstance(value, Decimal):
        return value.quantize(CENT)
    return Decimal(str(value)).quantize(CENT)


def signed_amount(amount, direction: LedgerDirection) -> Decimal:
    """CREDIT adds to the balance, DEBIT takes away."""
    amount = to_money(amount)
    if LedgerDirection(direction) == LedgerDirection.CREDIT:
        return amount
    return -amount


def chronological_key(entry):
    """Sort key: transaction date, then creation order."""
    return (entry.date, entry.id)


def compute_running_balances(opening_balance, entries: Sequence) -> List[BalancePair]:
    """
    Walk `entries` (already in chronological order) from `opening_balance`.

    Each entry needs `amount` and `direction`. Returns one BalancePair per
    entry, in the same order; entry i's available balance is entry i-1's
    closing balance.
    """
    running = to_money(opening_balance)
    pairs = []
    for entry in entries:
        available = running
        running = available + signed_amount(entry.amount, entry.direction)
        pairs.append(BalancePair(available, running))
    return pairs


def closing_balance(opening_balance, entries: Iterable) -> Decimal:
    """Balance after all entries: opening + credits - debits."""
    total = to_money(opening_balance)
    for entry in entries:
        total += signed_amount(entry.amount, entry.direction)
    return total

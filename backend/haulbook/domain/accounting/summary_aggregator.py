"""
Account summary aggregation.

A stateless fold of trips and ledger postings into one running balance per
party, followed by the report classification (payables, receivables, aged
balances). Nothing here touches the database; summary_service feeds it.

Sign convention: a positive balance means the party owes us (or we prepaid a
vendor); a negative balance means we owe the party.
"""

import enum
from dataclasses import dataclass, field
from datetime import date, timedelta
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from backend.haulbook.domain.ledger.running_balance import signed_amount, to_money
from backend.haulbook.models.party_enums import PartyCategory, VENDOR_CATEGORIES

ZERO = Decimal("0")


class SummaryBucket(str, enum.Enum):
    """Report tab a party's balance is listed under."""
    PAYABLE = "PAYABLE"  # We owe a vendor
    VENDOR_RECEIVABLE = "VENDOR_RECEIVABLE"  # Vendor overpaid / advanced
    CUSTOMER_RECEIVABLE = "CUSTOMER_RECEIVABLE"  # Customer owes us
    OTHER = "OTHER"


@dataclass
class Posting:
    """A ledger movement of `amount` from one party to another."""
    date: date
    from_party_id: Optional[int]
    to_party_id: Optional[int]
    amount: Decimal
    direction: str


@dataclass
class AccountSummary:
    id: int
    name: str
    category: PartyCategory
    balance: Decimal = ZERO
    total_trips: int = 0
    total_tonnage: Decimal = ZERO
    total_royalty_m3: Decimal = ZERO
    total_amount: Decimal = ZERO
    last_activity_date: Optional[date] = None
    bucket: Optional[SummaryBucket] = None
    is_aged: bool = False
    is_reportable: bool = False


@dataclass
class BucketTotals:
    total_payable: Decimal = ZERO
    total_vendor_receivable: Decimal = ZERO
    total_customer_receivable: Decimal = ZERO
    total_aged: Decimal = ZERO
    counts: Dict[str, int] = field(default_factory=dict)


def _in_period(day: date, period_from: Optional[date], period_to: Optional[date]) -> bool:
    if period_from is not None and day < period_from:
        return False
    if period_to is not None and day > period_to:
        return False
    return True


def _quantity(value) -> Decimal:
    return Decimal(str(value or 0))


def _touch(last: Optional[date], day: date) -> date:
    return day if last is None or day > last else last


def classify(
    summary: AccountSummary,
    today: date,
    aged_days: int = 30,
    epsilon: Decimal = Decimal("0.01"),
) -> AccountSummary:
    """Fill bucket, is_aged and is_reportable on a finished summary."""
    category = PartyCategory(summary.category)
    balance = summary.balance

    if category in VENDOR_CATEGORIES and balance < 0:
        summary.bucket = SummaryBucket.PAYABLE
    elif category in VENDOR_CATEGORIES and balance > 0:
        summary.bucket = SummaryBucket.VENDOR_RECEIVABLE
    elif category == PartyCategory.CUSTOMER and balance > 0:
        summary.bucket = SummaryBucket.CUSTOMER_RECEIVABLE
    else:
        summary.bucket = SummaryBucket.OTHER

    has_balance = abs(balance) > epsilon
    stale_before = today - timedelta(days=aged_days)
    inactive = summary.last_activity_date is None or summary.last_activity_date < stale_before
    summary.is_aged = has_balance and inactive
    # Zero-balance parties without trips are left off the report tabs
    summary.is_reportable = has_balance or summary.total_trips > 0
    return summary


def build_summaries(
    period_from: Optional[date],
    period_to: Optional[date],
    trips: Iterable,
    postings: Iterable[Posting],
    parties: Iterable,
    today: date,
    aged_days: int = 30,
    epsilon: Decimal = Decimal("0.01"),
) -> List[AccountSummary]:
    """
    Fold trips and postings into one AccountSummary per party.

    Args:
        period_from, period_to: Inclusive reporting period (None = unbounded)
        trips: Objects with date, customer_id, quarry_owner_id, transporter_id,
            royalty_owner_id, tonnage, royalty_m3, revenue, material_cost,
            transport_cost, royalty_cost
        postings: Posting records; CREDIT moves money to `to_party_id`,
            DEBIT the other way round
        parties: Objects with id, name, category, opening_balance
        today: Reference date for the aged check

    Returns:
        Summaries in party order, classified
    """
    summaries: Dict[int, AccountSummary] = {}
    for party in parties:
        summaries[party.id] = AccountSummary(
            id=party.id,
            name=party.name,
            category=PartyCategory(party.category),
            balance=to_money(party.opening_balance or 0),
        )

    trips = list(trips)
    postings = list(postings)

    for trip in trips:
        in_period = _in_period(trip.date, period_from, period_to)
        roles = (
            (trip.customer_id, to_money(trip.revenue), True),
            (trip.quarry_owner_id, -to_money(trip.material_cost), True),
            (trip.transporter_id, -to_money(trip.transport_cost), True),
            # Royalty is measured in m3, kept apart from trips and tonnage
            (trip.royalty_owner_id, -to_money(trip.royalty_cost), False),
        )
        for party_id, delta, counts_tonnage in roles:
            summary = summaries.get(party_id)
            if summary is None:
                continue
            summary.last_activity_date = _touch(summary.last_activity_date, trip.date)
            if not in_period:
                continue
            summary.balance += delta
            summary.total_amount += abs(delta)
            if counts_tonnage:
                summary.total_trips += 1
                summary.total_tonnage += _quantity(trip.tonnage)
            else:
                summary.total_royalty_m3 += _quantity(trip.royalty_m3)

    for posting in postings:
        in_period = _in_period(posting.date, period_from, period_to)
        to_delta = signed_amount(posting.amount, posting.direction)
        for party_id, delta in ((posting.to_party_id, to_delta), (posting.from_party_id, -to_delta)):
            summary = summaries.get(party_id)
            if summary is None:
                continue
            summary.last_activity_date = _touch(summary.last_activity_date, posting.date)
            if in_period:
                summary.balance += delta

    return [classify(s, today, aged_days, epsilon) for s in summaries.values()]


def bucket_totals(summaries: Iterable[AccountSummary]) -> BucketTotals:
    """Dashboard totals over the reportable summaries."""
    totals = BucketTotals(counts={bucket.value: 0 for bucket in SummaryBucket})
    totals.counts["AGED"] = 0
    for summary in summaries:
        if not summary.is_reportable:
            continue
        totals.counts[summary.bucket.value] += 1
        if summary.bucket == SummaryBucket.PAYABLE:
            totals.total_payable += abs(summary.balance)
        elif summary.bucket == SummaryBucket.VENDOR_RECEIVABLE:
            totals.total_vendor_receivable += summary.balance
        elif summary.bucket == SummaryBucket.CUSTOMER_RECEIVABLE:
            totals.total_customer_receivable += summary.balance
        if summary.is_aged:
            totals.counts["AGED"] += 1
            totals.total_aged += abs(summary.balance)
    return totals

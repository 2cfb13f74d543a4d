"""
Account Summary Service.

Loads parties, trips and general-ledger postings and runs the summary fold.
READ-ONLY: nothing is written back.
"""

import logging
from datetime import date
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.config import settings
from backend.haulbook.domain.accounting.summary_aggregator import (
    AccountSummary, BucketTotals, Posting, build_summaries, bucket_totals,
)
from backend.haulbook.models.ledger_enums import LedgerBook
from backend.haulbook.models.party import Party
from backend.haulbook.models.trip_record import TripRecord
from backend.haulbook.repositories.ledger_repository import LedgerRepository

logger = logging.getLogger("haulbook.accounting")


class SummaryService:

    @staticmethod
    async def account_summaries(
        db: AsyncSession,
        period_from: Optional[date],
        period_to: Optional[date],
        today: date,
    ) -> Tuple[List[AccountSummary], BucketTotals]:
        """
        Per-party balances for the period plus dashboard totals.

        Trips and postings are loaded over the whole history: the period only
        limits which of them move balances, while last activity looks at all.
        General-ledger rows post from `account_key` to `counterparty`; either
        side is matched to a party by name.
        """
        parties = list((await db.execute(select(Party).order_by(Party.id))).scalars().all())
        trips = list((await db.execute(select(TripRecord).order_by(TripRecord.date, TripRecord.id))).scalars().all())
        ledger_rows = await LedgerRepository(db).list_book(LedgerBook.GENERAL)

        party_ids = {party.name: party.id for party in parties}
        postings = [
            Posting(
                date=row.date,
                from_party_id=party_ids.get(row.account_key),
                to_party_id=party_ids.get(row.counterparty),
                amount=row.amount,
                direction=row.direction,
            )
            for row in ledger_rows
        ]

        summaries = build_summaries(
            period_from,
            period_to,
            trips,
            postings,
            parties,
            today,
            aged_days=settings.aged_balance_days,
            epsilon=settings.balance_epsilon,
        )
        totals = bucket_totals(summaries)
        logger.debug(
            "Built %d account summaries (%s..%s) from %d trips, %d postings",
            len(summaries), period_from, period_to, len(trips), len(postings),
        )
        return summaries, totals

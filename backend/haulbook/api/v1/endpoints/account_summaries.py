"""
Account Summary API Endpoints.

READ-ONLY: per-party balances and dashboard totals for a period.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from backend.haulbook.core.clock import get_today
from backend.haulbook.core.exceptions import InvalidIntervalError
from backend.haulbook.db.session import get_db
from backend.haulbook.domain.accounting.summary_service import SummaryService
from backend.haulbook.schemas.account_summary import (
    AccountSummaryReport, AccountSummaryResponse, SummaryTotals
)

router = APIRouter(prefix="/account-summaries", tags=["Accounting"])


@router.get("", response_model=AccountSummaryReport)
async def get_account_summaries(
    period_from: Optional[date] = Query(None, alias="from"),
    period_to: Optional[date] = Query(None, alias="to"),
    today: date = Depends(get_today),
    db: AsyncSession = Depends(get_db)
):
    """
    Balances of every party for the period (inclusive; open ends allowed),
    classified into payables, receivables and aged balances.
    """
    if period_from and period_to and period_to < period_from:
        raise InvalidIntervalError(period_from, period_to)

    summaries, totals = await SummaryService.account_summaries(db, period_from, period_to, today)
    return AccountSummaryReport(
        period_from=period_from,
        period_to=period_to,
        summaries=[AccountSummaryResponse.model_validate(s) for s in summaries],
        totals=SummaryTotals.model_validate(totals),
    )

"""
Account summary schemas.
"""

from pydantic import BaseModel
from datetime import date
from decimal import Decimal
from typing import Dict, List, Optional
from backend.haulbook.domain.accounting.summary_aggregator import SummaryBucket
from backend.haulbook.models.party_enums import PartyCategory


class AccountSummaryResponse(BaseModel):
    """Per-party balance for the reporting period."""
    id: int
    name: str
    category: PartyCategory
    balance: Decimal
    total_trips: int
    total_tonnage: Decimal
    total_royalty_m3: Decimal
    total_amount: Decimal
    last_activity_date: Optional[date]
    bucket: Optional[SummaryBucket]
    is_aged: bool
    is_reportable: bool

    class Config:
        from_attributes = True


class SummaryTotals(BaseModel):
    """Dashboard totals over reportable parties."""
    total_payable: Decimal
    total_vendor_receivable: Decimal
    total_customer_receivable: Decimal
    total_aged: Decimal
    counts: Dict[str, int]

    class Config:
        from_attributes = True


class AccountSummaryReport(BaseModel):
    period_from: Optional[date]
    period_to: Optional[date]
    summaries: List[AccountSummaryResponse]
    totals: SummaryTotals

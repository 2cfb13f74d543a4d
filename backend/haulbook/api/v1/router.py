"""
API v1 Router.

Aggregates all v1 API endpoints.
"""

from fastapi import APIRouter
from backend.haulbook.api.v1.endpoints import (
    rate_versions, ledger_transactions, account_summaries
)

router = APIRouter()

# Rate versioning
router.include_router(rate_versions.router)

# Running ledgers
router.include_router(ledger_transactions.router)
router.include_router(ledger_transactions.accounts_router)

# Accounting summary (read-only)
router.include_router(account_summaries.router)

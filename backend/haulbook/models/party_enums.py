"""
Party enumerations for accounting summaries.
"""

import enum


class PartyCategory(str, enum.Enum):
    """Business role of a party in the books."""
    CUSTOMER = "CUSTOMER"
    QUARRY = "QUARRY"
    TRANSPORT = "TRANSPORT"
    ROYALTY = "ROYALTY"
    ACCOUNT = "ACCOUNT"  # Generic account (bank, cash, expense heads)


# Categories whose balance is money owed to (or prepaid to) a vendor
VENDOR_CATEGORIES = frozenset({
    PartyCategory.QUARRY,
    PartyCategory.TRANSPORT,
    PartyCategory.ROYALTY,
})

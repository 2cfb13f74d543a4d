"""
Rate versioning enumerations.
"""

import enum


class RatePartyType(str, enum.Enum):
    """Kind of business party a rate is agreed with."""
    MINE_QUARRY = "mine-quarry"  # Material rates
    VENDOR_CUSTOMER = "vendor-customer"  # Customer rates
    ROYALTY_OWNER = "royalty-owner"  # Royalty rates
    TRANSPORT_OWNER = "transport-owner"  # Transport rates


class RateStatus(str, enum.Enum):
    """
    Derived validity of a rate version relative to today.

    Cached on the row and recomputed whenever versions are read.
    """
    FUTURE = "Future"  # Starts after today
    ACTIVE = "Active"  # Today falls inside the interval
    INACTIVE = "Inactive"  # Ended before today

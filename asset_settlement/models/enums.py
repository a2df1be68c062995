"""Enumeration types for settlement entities."""

from enum import Enum


class LoanStatus(str, Enum):
    ACTIVE = "ACTIVE"
    REPAID = "REPAID"
    LIQUIDATED = "LIQUIDATED"


class LoanPhase(str, Enum):
    """Time-aware view of a loan, derived from its status and deadline."""

    ACTIVE = "ACTIVE"
    OVERDUE = "OVERDUE"  # active, deadline passed, eligible for liquidation
    REPAID = "REPAID"
    LIQUIDATED = "LIQUIDATED"


class AuctionStatus(str, Enum):
    OPEN = "OPEN"
    SETTLED = "SETTLED"
    CANCELLED = "CANCELLED"


class AuctionPhase(str, Enum):
    """Time-aware view of an auction, derived from its status and end time."""

    BIDDING = "BIDDING"
    AWAITING_SETTLEMENT = "AWAITING_SETTLEMENT"
    SETTLED = "SETTLED"
    CANCELLED = "CANCELLED"


class CustodyAction(str, Enum):
    LOCKED = "LOCKED"
    RELEASED = "RELEASED"
    FORFEITED = "FORFEITED"

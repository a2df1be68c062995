"""Domain models for custodial settlement."""

from asset_settlement.models.auction import Auction, Settlement
from asset_settlement.models.base import Event
from asset_settlement.models.custody import CustodyRecord
from asset_settlement.models.enums import (
    AuctionPhase,
    AuctionStatus,
    CustodyAction,
    LoanPhase,
    LoanStatus,
)
from asset_settlement.models.loan import (
    InstallmentSchedule,
    InstallmentStatus,
    Loan,
    Repayment,
)

__all__ = [
    "Auction",
    "AuctionPhase",
    "AuctionStatus",
    "CustodyAction",
    "CustodyRecord",
    "Event",
    "InstallmentSchedule",
    "InstallmentStatus",
    "Loan",
    "LoanPhase",
    "LoanStatus",
    "Repayment",
    "Settlement",
]

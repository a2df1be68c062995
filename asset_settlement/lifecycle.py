"""Pure status evaluation for loans and auctions.

Every deadline comparison in the engine goes through these two functions.
"""

from datetime import datetime

from asset_settlement.models import Auction, AuctionPhase, AuctionStatus, Loan, LoanPhase, LoanStatus


def evaluate_loan(loan: Loan, now: datetime) -> LoanPhase:
    """Phase of a loan at ``now``.

    An active loan becomes OVERDUE strictly after its deadline.
    """
    if loan.status == LoanStatus.REPAID:
        return LoanPhase.REPAID
    if loan.status == LoanStatus.LIQUIDATED:
        return LoanPhase.LIQUIDATED
    if now > loan.deadline:
        return LoanPhase.OVERDUE
    return LoanPhase.ACTIVE


def evaluate_auction(auction: Auction, now: datetime) -> AuctionPhase:
    """Phase of an auction at ``now``.

    Bidding closes at ``end_time`` inclusive: a bid at exactly ``end_time``
    is late, and settlement is allowed from that instant.
    """
    if auction.status == AuctionStatus.SETTLED:
        return AuctionPhase.SETTLED
    if auction.status == AuctionStatus.CANCELLED:
        return AuctionPhase.CANCELLED
    if now >= auction.end_time:
        return AuctionPhase.AWAITING_SETTLEMENT
    return AuctionPhase.BIDDING


def is_late(payment_time: datetime, deadline: datetime) -> bool:
    """Whether a payment is applied after the schedule deadline."""
    return payment_time > deadline

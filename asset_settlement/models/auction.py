"""Auction models for timed sales."""

from dataclasses import dataclass
from datetime import datetime

from asset_settlement.models.enums import AuctionStatus


@dataclass
class Settlement:
    """Proceeds split of a finalized auction.

    ``seller_proceeds + platform_fee + royalty_paid == price`` always holds.
    """

    asset_id: str
    winner: str | None
    price: int
    platform_fee: int
    royalty_paid: int
    seller_proceeds: int
    settled_at: datetime


@dataclass
class Auction:
    """Single ascending-price sale of one asset with a hard deadline."""

    asset_id: str
    seller: str
    min_bid: int
    start_time: datetime
    end_time: datetime
    highest_bidder: str | None = None
    highest_bid: int = 0
    status: AuctionStatus = AuctionStatus.OPEN
    bid_count: int = 0
    settlement: Settlement | None = None

    @property
    def active(self) -> bool:
        return self.status == AuctionStatus.OPEN

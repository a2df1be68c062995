"""Timed ascending-price auctions settled through the custodian.

Lifecycle per asset: no auction -> OPEN -> SETTLED or CANCELLED. Bids are
escrowed in the module's own ledger account. Outbid parties are never paid
directly; their bids accumulate in pending returns and are claimed with
:meth:`TimedAuction.withdraw_returns`.
"""

from __future__ import annotations

import copy
import logging
from datetime import timedelta

from asset_settlement.access import AdminGate
from asset_settlement.config import BASIS_POINTS, AuctionConfig
from asset_settlement.custodian import Custodian
from asset_settlement.exceptions import (
    AuctionEnded,
    AuctionExists,
    BidsPresent,
    BidTooLow,
    DurationTooShort,
    FeesExceedPrice,
    InvalidAmount,
    InvariantViolation,
    NotActive,
    NotOwner,
    SellerCannotBid,
    TooEarly,
    Unauthorized,
)
from asset_settlement.interfaces import AssetRegistry, RoyaltySplitter, ValueLedger
from asset_settlement.lifecycle import evaluate_auction
from asset_settlement.models import Auction, AuctionPhase, AuctionStatus, Settlement
from asset_settlement.runtime import Runtime, Stateful, transactional

logger = logging.getLogger(__name__)


def split_proceeds(price: int, fee_bps: int, royalty_paid: int) -> tuple[int, int]:
    """Return ``(platform_fee, seller_proceeds)`` for a sale.

    Raises
    ------
    FeesExceedPrice
        When fee and royalty together exceed the price.
    """
    platform_fee = price * fee_bps // BASIS_POINTS
    if platform_fee + royalty_paid > price:
        raise FeesExceedPrice(
            f"Fee {platform_fee} + royalty {royalty_paid} exceed sale price {price}"
        )
    return platform_fee, price - platform_fee - royalty_paid


class TimedAuction(Stateful):
    """One ascending-price sale per asset with a hard deadline.

    Parameters
    ----------
    runtime : Runtime
        Shared execution host.
    custodian : Custodian
        Must trust ``config.module_id``.
    registry : AssetRegistry
        Used for the seller ownership check.
    ledger : ValueLedger
        Bidders approve ``config.module_id`` as spender.
    splitter : RoyaltySplitter
        Pays royalties out of the escrow account at settlement.
    admin : AdminGate
        Who may cancel any auction and use the emergency forfeit.
    config : AuctionConfig | None
        Minimum duration, platform fee and treasury account.
    """

    _state_fields = ("_auctions", "_pending_returns")
    _append_only_fields = ("_archive",)

    def __init__(
        self,
        runtime: Runtime,
        custodian: Custodian,
        registry: AssetRegistry,
        ledger: ValueLedger,
        splitter: RoyaltySplitter,
        admin: AdminGate,
        config: AuctionConfig | None = None,
    ) -> None:
        self.runtime = runtime
        self.custodian = custodian
        self.registry = registry
        self.ledger = ledger
        self.splitter = splitter
        self.admin = admin
        self.config = config or AuctionConfig()
        self.config.validate()
        self.identity = self.config.module_id
        self._auctions: dict[str, Auction] = {}
        self._archive: list[Auction] = []
        self._pending_returns: dict[str, int] = {}

    @property
    def escrow(self) -> str:
        return self.identity

    @transactional
    def start_auction(self, caller: str, asset_id: str, min_bid: int, duration: timedelta) -> Auction:
        """Lock the caller's asset and open bidding until ``now + duration``."""
        if min_bid <= 0:
            raise InvalidAmount(f"Minimum bid must be positive, got {min_bid}")
        if duration < self.config.min_duration:
            raise DurationTooShort(f"Duration {duration} is below minimum {self.config.min_duration}")
        existing = self._auctions.get(asset_id)
        if existing is not None and existing.active:
            raise AuctionExists(f"Asset {asset_id} already has an open auction")
        if self.registry.owner_of(asset_id) != caller:
            raise NotOwner(f"{caller} does not own asset {asset_id}")

        now = self.runtime.now()
        auction = Auction(
            asset_id=asset_id,
            seller=caller,
            min_bid=min_bid,
            start_time=now,
            end_time=now + duration,
        )

        def open_auction() -> None:
            if existing is not None:
                self._archive.append(existing)
            self._auctions[asset_id] = auction

        self.runtime.commit_then_call(
            open_auction,
            lambda: self.custodian.lock(self.identity, asset_id, caller),
        )
        self.runtime.emit(
            "auction.started",
            self.identity,
            asset_id,
            seller=caller,
            min_bid=min_bid,
            end_time=auction.end_time.isoformat(),
        )
        return copy.deepcopy(auction)

    @transactional
    def place_bid(self, caller: str, asset_id: str, amount: int) -> None:
        """Escrow a strictly higher bid and credit the displaced bidder."""
        auction = self._open_auction(asset_id)
        if evaluate_auction(auction, self.runtime.now()) != AuctionPhase.BIDDING:
            raise AuctionEnded(f"Auction on {asset_id} ended at {auction.end_time.isoformat()}")
        if caller == auction.seller:
            raise SellerCannotBid(f"Seller {caller} cannot bid on {asset_id}")
        if amount < auction.min_bid or amount <= auction.highest_bid:
            raise BidTooLow(
                f"Bid {amount} must be at least {auction.min_bid} and above {auction.highest_bid}"
            )

        previous_bidder = auction.highest_bidder
        previous_bid = auction.highest_bid

        def record_bid() -> None:
            if previous_bidder is not None:
                self._credit(previous_bidder, previous_bid)
            auction.highest_bidder = caller
            auction.highest_bid = amount
            auction.bid_count += 1

        self.runtime.commit_then_call(
            record_bid,
            lambda: self.ledger.pull(self.identity, caller, self.escrow, amount),
        )
        self.runtime.emit(
            "auction.bid_placed",
            self.identity,
            asset_id,
            bidder=caller,
            amount=amount,
            previous_bidder=previous_bidder,
            previous_bid=previous_bid,
        )

    @transactional
    def withdraw_returns(self, caller: str) -> int:
        """Pay out everything owed to ``caller``; 0 when nothing is owed."""
        owed = self._pending_returns.get(caller, 0)
        if owed == 0:
            return 0

        self.runtime.commit_then_call(
            lambda: self._pending_returns.pop(caller),
            lambda: self.ledger.push(self.escrow, caller, owed),
        )
        self.runtime.emit("auction.returns_withdrawn", self.identity, caller, amount=owed)
        return owed

    @transactional
    def cancel_auction(self, caller: str, asset_id: str) -> None:
        """Close a bidless auction and hand the asset back to the seller."""
        auction = self._open_auction(asset_id)
        if caller != auction.seller and not self.admin.is_admin(caller):
            raise Unauthorized(f"{caller} may not cancel the auction on {asset_id}")
        if auction.highest_bid != 0:
            raise BidsPresent(f"Auction on {asset_id} already has a bid of {auction.highest_bid}")

        self.runtime.commit_then_call(
            lambda: setattr(auction, "status", AuctionStatus.CANCELLED),
            lambda: self.custodian.release(self.identity, asset_id, auction.seller),
        )
        self.runtime.emit("auction.cancelled", self.identity, asset_id, seller=auction.seller, cancelled_by=caller)

    @transactional
    def finalize_auction(self, caller: str, asset_id: str) -> Settlement:
        """Settle an auction whose end time has passed. Anyone may call this."""
        auction = self._open_auction(asset_id)
        now = self.runtime.now()
        if evaluate_auction(auction, now) == AuctionPhase.BIDDING:
            raise TooEarly(f"Auction on {asset_id} ends at {auction.end_time.isoformat()}")

        seller = auction.seller
        winner = auction.highest_bidder
        price = auction.highest_bid

        if winner is None:
            settlement = Settlement(
                asset_id=asset_id,
                winner=None,
                price=0,
                platform_fee=0,
                royalty_paid=0,
                seller_proceeds=0,
                settled_at=now,
            )
            self.runtime.commit_then_call(
                lambda: self._close_settled(auction, settlement),
                lambda: self.custodian.release(self.identity, asset_id, seller),
            )
        else:
            royalty_paid = self.runtime.commit_then_call(
                lambda: setattr(auction, "status", AuctionStatus.SETTLED),
                lambda: self.splitter.distribute(self.escrow, asset_id, price),
            )
            if not 0 <= royalty_paid <= price:
                raise InvariantViolation(f"Royalty splitter reported {royalty_paid} on a sale of {price}")
            platform_fee, seller_proceeds = split_proceeds(price, self.config.fee_bps, royalty_paid)
            settlement = Settlement(
                asset_id=asset_id,
                winner=winner,
                price=price,
                platform_fee=platform_fee,
                royalty_paid=royalty_paid,
                seller_proceeds=seller_proceeds,
                settled_at=now,
            )
            self._close_settled(self._auctions[asset_id], settlement)

            if platform_fee:
                self.runtime.commit_then_call(
                    None, lambda: self.ledger.push(self.escrow, self.config.treasury, platform_fee)
                )
            if seller_proceeds:
                self.runtime.commit_then_call(None, lambda: self.ledger.push(self.escrow, seller, seller_proceeds))
            self.runtime.commit_then_call(None, lambda: self.custodian.release(self.identity, asset_id, winner))

        self.runtime.emit(
            "auction.settled",
            self.identity,
            asset_id,
            seller=seller,
            winner=winner,
            price=settlement.price,
            platform_fee=settlement.platform_fee,
            royalty_paid=settlement.royalty_paid,
            seller_proceeds=settlement.seller_proceeds,
            settled_by=caller,
        )
        return copy.deepcopy(settlement)

    @transactional
    def forfeit_auction_collateral(self, caller: str, asset_id: str) -> None:
        """Emergency close: asset back to the seller, high bid into pending returns."""
        self.admin.require(caller, "forfeit_auction_collateral")
        auction = self._open_auction(asset_id)
        bidder = auction.highest_bidder
        bid = auction.highest_bid

        def close_auction() -> None:
            auction.status = AuctionStatus.CANCELLED
            if bidder is not None:
                self._credit(bidder, bid)

        self.runtime.commit_then_call(
            close_auction,
            lambda: self.custodian.forfeit(self.identity, asset_id, auction.seller),
        )
        self.runtime.emit(
            "auction.forfeited",
            self.identity,
            asset_id,
            seller=auction.seller,
            refunded_bidder=bidder,
            refunded_amount=bid,
            forfeited_by=caller,
        )

    def get_auction(self, asset_id: str) -> Auction | None:
        auction = self._auctions.get(asset_id)
        return copy.deepcopy(auction) if auction else None

    def auction_phase(self, asset_id: str) -> AuctionPhase | None:
        auction = self._auctions.get(asset_id)
        return evaluate_auction(auction, self.runtime.now()) if auction else None

    def auctions(self) -> list[Auction]:
        """Most recent auction of every asset ever auctioned."""
        return [copy.deepcopy(a) for a in self._auctions.values()]

    def open_auctions(self) -> list[Auction]:
        return [copy.deepcopy(a) for a in self._auctions.values() if a.active]

    def auction_history(self, asset_id: str) -> list[Auction]:
        """Past auctions for an asset, oldest first, followed by the current one."""
        rounds = [a for a in self._archive if a.asset_id == asset_id]
        if asset_id in self._auctions:
            rounds.append(self._auctions[asset_id])
        return copy.deepcopy(rounds)

    def pending_returns(self, identity: str) -> int:
        return self._pending_returns.get(identity, 0)

    def total_pending_returns(self) -> int:
        return sum(self._pending_returns.values())

    def _open_auction(self, asset_id: str) -> Auction:
        auction = self._auctions.get(asset_id)
        if auction is None or not auction.active:
            raise NotActive(f"No open auction on asset {asset_id}")
        return auction

    def _credit(self, bidder: str, amount: int) -> None:
        self._pending_returns[bidder] = self._pending_returns.get(bidder, 0) + amount

    @staticmethod
    def _close_settled(auction: Auction, settlement: Settlement) -> None:
        auction.status = AuctionStatus.SETTLED
        auction.settlement = settlement

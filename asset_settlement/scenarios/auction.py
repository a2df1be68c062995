"""Auction house scenario: bid wars, refunds, royalties and settlement."""

from __future__ import annotations

import logging
import random
from datetime import timedelta

from asset_settlement.config import AuctionConfig, EngineConfig, ScenarioConfig
from asset_settlement.engine import SettlementEngine
from asset_settlement.generators import ParticipantGenerator
from asset_settlement.runtime import ManualClock

logger = logging.getLogger(__name__)

KEEPER = "keeper"  # settlement is permissionless; any identity may finalize


class AuctionScenario:
    """Simulate a round of timed auctions.

    This scenario creates:
    - Sellers, each consigning one asset with a creator royalty
    - Funded bidders who raise each other in random order
    - Auctions left without bids, which settle back to the seller
    - Settlement of every auction after its end time, followed by
      every outbid bidder withdrawing their returns
    """

    def __init__(
        self,
        num_sellers: int = 5,
        num_bidders: int = 8,
        bids_per_auction: int = 6,
        no_bid_rate: float = 0.2,
        royalty_bps: int = 500,
        starting_balance: int = 10_000,
        seed: int | None = None,
        *,
        config: ScenarioConfig | None = None,
        auction: AuctionConfig | None = None,
    ) -> None:
        """Initialize auction scenario.

        Parameters
        ----------
        num_sellers : int
            Number of sellers (one auction each).
        num_bidders : int
            Number of funded bidders.
        bids_per_auction : int
            Bid attempts per auction.
        no_bid_rate : float
            Share of auctions that receive no bids.
        royalty_bps : int
            Creator royalty per asset, in basis points.
        starting_balance : int
            Ledger balance minted to every bidder.
        seed : int | None
            Random seed for reproducibility.
        config : ScenarioConfig | None
            Optional scenario configuration. If provided, overrides
            num_sellers, num_bidders and starting_balance.
        auction : AuctionConfig | None
            Auction parameters for the simulated engine.
        """
        if config is not None:
            num_sellers = config.num_assets
            num_bidders = config.num_participants
            starting_balance = config.starting_balance

        self.num_sellers = num_sellers
        self.num_bidders = num_bidders
        self.bids_per_auction = bids_per_auction
        self.no_bid_rate = no_bid_rate
        self.royalty_bps = royalty_bps
        self.starting_balance = starting_balance
        self.seed = seed
        self.config = config

        self.rng = random.Random(seed)
        self.clock = ManualClock()
        self.engine = SettlementEngine.in_memory(
            EngineConfig(auction=auction or AuctionConfig(), seed=seed),
            clock=self.clock,
        )
        self._participants = ParticipantGenerator(seed=seed)
        self.duration = max(timedelta(days=1), self.engine.auction.config.min_duration)

    def generate(self) -> SettlementEngine:
        """Run every auction to settlement.

        Returns
        -------
        SettlementEngine
            Engine holding the final state and the event log.
        """
        engine = self.engine
        auction = engine.auction
        ledger = engine.ledger
        registry = engine.registry

        logger.info(
            "Starting auction scenario: %d sellers, %d bidders",
            self.num_sellers,
            self.num_bidders,
        )

        bidders = [p.identity for p in self._participants.participants(self.num_bidders)]
        for bidder in bidders:
            ledger.mint(bidder, self.starting_balance)
            ledger.approve(bidder, auction.identity, self.starting_balance)

        assets: list[str] = []
        for seller in self._participants.participants(self.num_sellers):
            creator = self._participants.participant()
            asset_id = self._participants.asset_id()
            registry.mint(seller.identity, asset_id)
            registry.approve(seller.identity, engine.custodian.identity, asset_id)
            engine.splitter.set_royalty(asset_id, creator.identity, self.royalty_bps)

            min_bid = self.rng.randint(10, 100)
            auction.start_auction(seller.identity, asset_id, min_bid, self.duration)
            assets.append(asset_id)

        for asset_id in assets:
            if not bidders or self.rng.random() < self.no_bid_rate:
                continue
            self._bid_war(asset_id, bidders)

        self.clock.advance(self.duration)
        for asset_id in assets:
            auction.finalize_auction(KEEPER, asset_id)

        for bidder in bidders:
            auction.withdraw_returns(bidder)

        logger.info("Auction scenario complete: %s", engine.summary())
        return engine

    def _bid_war(self, asset_id: str, bidders: list[str]) -> None:
        auction = self.engine.auction
        ledger = self.engine.ledger
        for _ in range(self.bids_per_auction):
            state = auction.get_auction(asset_id)
            bidder = self.rng.choice(bidders)
            amount = max(state.min_bid, state.highest_bid + self.rng.randint(1, 50))
            if ledger.allowance(bidder, auction.identity) < amount or ledger.balance_of(bidder) < amount:
                continue
            auction.place_bid(bidder, asset_id, amount)

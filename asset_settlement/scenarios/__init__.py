"""Simulation scenarios driving the settlement engine end to end."""

from asset_settlement.scenarios.auction import AuctionScenario
from asset_settlement.scenarios.lending import LendingScenario

__all__ = ["AuctionScenario", "LendingScenario"]

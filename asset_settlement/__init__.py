"""Custodial settlement engine for unique assets: custody, installment loans and timed auctions."""

from asset_settlement.config import EngineConfig
from asset_settlement.engine import SettlementEngine
from asset_settlement.runtime import ManualClock, Runtime, SystemClock

__version__ = "0.1.0"

__all__ = ["EngineConfig", "ManualClock", "Runtime", "SettlementEngine", "SystemClock"]

"""Pytest configuration and fixtures."""

import pytest

from asset_settlement.config import EngineConfig, LendingConfig
from asset_settlement.engine import SettlementEngine
from asset_settlement.runtime import ManualClock

ALICE = "alice"
BOB = "bob"
CAROL = "carol"
ASSET = "asset-0001"


@pytest.fixture
def seed() -> int:
    """Fixed seed for reproducible tests."""
    return 42


@pytest.fixture
def clock() -> ManualClock:
    """Clock starting at 2024-01-01 UTC."""
    return ManualClock()


@pytest.fixture
def engine(clock: ManualClock) -> SettlementEngine:
    """In-memory engine with a funded lending pool and one asset owned by alice.

    The asset is pre-approved to the custodian, and alice, bob and carol
    each hold 1_000 on the ledger.
    """
    engine = SettlementEngine.in_memory(EngineConfig(), clock=clock)
    engine.ledger.mint(engine.lending.pool, 10_000)
    for identity in (ALICE, BOB, CAROL):
        engine.ledger.mint(identity, 1_000)
    engine.registry.mint(ALICE, ASSET)
    engine.registry.approve(ALICE, engine.custodian.identity, ASSET)
    return engine


@pytest.fixture
def manual_release_engine(clock: ManualClock) -> SettlementEngine:
    """Engine whose lending module keeps repaid collateral until withdrawn."""
    config = EngineConfig(lending=LendingConfig(auto_release=False))
    engine = SettlementEngine.in_memory(config, clock=clock)
    engine.ledger.mint(engine.lending.pool, 10_000)
    engine.registry.mint(ALICE, ASSET)
    engine.registry.approve(ALICE, engine.custodian.identity, ASSET)
    return engine

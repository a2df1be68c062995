"""Wiring of custodian, lending and auction modules over shared collaborators."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from asset_settlement.access import AdminGate, CapabilityTable
from asset_settlement.auction import TimedAuction
from asset_settlement.config import EngineConfig
from asset_settlement.custodian import Custodian
from asset_settlement.interfaces import AssetRegistry, RoyaltySplitter, ValueLedger
from asset_settlement.lending import InstallmentLending
from asset_settlement.runtime import Clock, EventLog, Runtime, Stateful
from asset_settlement.store import InMemoryAssetRegistry, InMemoryRoyaltySplitter, InMemoryValueLedger

logger = logging.getLogger(__name__)


@dataclass
class SettlementEngine:
    """All components of one settlement deployment."""

    config: EngineConfig
    runtime: Runtime
    admin: AdminGate
    capabilities: CapabilityTable
    custodian: Custodian
    lending: InstallmentLending
    auction: TimedAuction
    registry: AssetRegistry
    ledger: ValueLedger
    splitter: RoyaltySplitter

    @classmethod
    def build(
        cls,
        config: EngineConfig,
        registry: AssetRegistry,
        ledger: ValueLedger,
        splitter: RoyaltySplitter,
        clock: Clock | None = None,
    ) -> "SettlementEngine":
        """Construct and wire every component.

        The lending and auction modules start out trusted by the custodian.
        Collaborators that are :class:`Stateful` take part in rollback.
        """
        config.validate()
        runtime = Runtime(clock)
        admin = AdminGate(config.administrators)
        capabilities = CapabilityTable(
            {config.custodian_id: {config.lending.module_id, config.auction.module_id}}
        )
        custodian = Custodian(runtime, registry, admin, capabilities, identity=config.custodian_id)
        lending = InstallmentLending(runtime, custodian, registry, ledger, admin, config.lending)
        auction = TimedAuction(runtime, custodian, registry, ledger, splitter, admin, config.auction)

        runtime.register(capabilities, custodian, lending, auction)
        for collaborator in (registry, ledger, splitter):
            if isinstance(collaborator, Stateful):
                runtime.register(collaborator)

        logger.info(
            "Settlement engine ready: custodian=%s lending=%s auction=%s admins=%s",
            custodian.identity,
            lending.identity,
            auction.identity,
            sorted(admin.administrators),
        )
        return cls(
            config=config,
            runtime=runtime,
            admin=admin,
            capabilities=capabilities,
            custodian=custodian,
            lending=lending,
            auction=auction,
            registry=registry,
            ledger=ledger,
            splitter=splitter,
        )

    @classmethod
    def in_memory(cls, config: EngineConfig | None = None, clock: Clock | None = None) -> "SettlementEngine":
        """Build over fresh in-memory registry, ledger and splitter."""
        ledger = InMemoryValueLedger()
        return cls.build(
            config or EngineConfig(),
            registry=InMemoryAssetRegistry(),
            ledger=ledger,
            splitter=InMemoryRoyaltySplitter(ledger),
            clock=clock,
        )

    @property
    def events(self) -> EventLog:
        return self.runtime.events

    def summary(self) -> dict[str, int]:
        """Return summary counts of engine state."""
        return {
            "assets_in_custody": len(self.custodian.held_assets()),
            "active_loans": len(self.lending.active_loans()),
            "open_auctions": len(self.auction.open_auctions()),
            "pending_returns": self.auction.total_pending_returns(),
            "events": len(self.events),
        }

"""Custodian: holds assets in trust and gates every movement behind trust flags."""

from __future__ import annotations

import copy
import logging

from asset_settlement.access import AdminGate, CapabilityTable
from asset_settlement.exceptions import AlreadyLocked, NotLocked, NotOwner, NotTrusted
from asset_settlement.interfaces import AssetRegistry
from asset_settlement.models import CustodyAction, CustodyRecord
from asset_settlement.runtime import Runtime, Stateful, transactional

logger = logging.getLogger(__name__)


class Custodian(Stateful):
    """Trusted lock/release/forfeit primitive shared by lending and auctions.

    Only modules granted trust by an administrator may move assets, and a
    module may only release or forfeit assets it locked itself. The
    custodian is never called by end users directly.

    Parameters
    ----------
    runtime : Runtime
        Shared execution host.
    registry : AssetRegistry
        Owner-of-record for assets. Depositors must approve ``identity``
        as operator before a lock.
    admin : AdminGate
        Who may grant trust.
    capabilities : CapabilityTable
        Trust flags, keyed by this custodian's identity.
    identity : str
        Account under which held assets are registered.
    """

    _state_fields = ("_records",)

    def __init__(
        self,
        runtime: Runtime,
        registry: AssetRegistry,
        admin: AdminGate,
        capabilities: CapabilityTable,
        identity: str = "custodian",
    ) -> None:
        self.runtime = runtime
        self.registry = registry
        self.admin = admin
        self.capabilities = capabilities
        self.identity = identity
        self._records: dict[str, CustodyRecord] = {}

    @transactional
    def grant_trust(self, caller: str, module: str, enabled: bool) -> None:
        """Set whether ``module`` may lock, release and forfeit assets."""
        self.admin.require(caller, "grant_trust")
        changed = self.capabilities.set(self.identity, module, enabled)
        self.runtime.emit(
            "custody.trust_changed",
            self.identity,
            module,
            enabled=enabled,
            granted_by=caller,
            changed=changed,
        )

    def is_trusted(self, caller: str) -> bool:
        return self.capabilities.is_permitted(self.identity, caller)

    @transactional
    def lock(self, caller: str, asset_id: str, depositor: str) -> CustodyRecord:
        """Pull ``asset_id`` from ``depositor`` into custody."""
        self._require_trusted(caller, "lock")
        if asset_id in self._records:
            raise AlreadyLocked(f"Asset {asset_id} is already locked")
        if self.registry.owner_of(asset_id) != depositor:
            raise NotOwner(f"{depositor} does not own asset {asset_id}")

        record = CustodyRecord(
            asset_id=asset_id,
            depositor=depositor,
            locked_by=caller,
            locked_at=self.runtime.now(),
        )
        self.runtime.commit_then_call(
            lambda: self._records.__setitem__(asset_id, record),
            lambda: self.registry.transfer(depositor, self.identity, asset_id, operator=self.identity),
        )
        self.runtime.emit(
            "custody.locked",
            self.identity,
            asset_id,
            action=CustodyAction.LOCKED.value,
            depositor=depositor,
            module=caller,
        )
        return copy.deepcopy(record)

    @transactional
    def release(self, caller: str, asset_id: str, recipient: str) -> CustodyRecord:
        """Return a held asset, normally to its depositor or a buyer."""
        return self._hand_over(caller, asset_id, recipient, CustodyAction.RELEASED)

    @transactional
    def forfeit(self, caller: str, asset_id: str, recipient: str) -> CustodyRecord:
        """Hand a held asset over on default or liquidation."""
        return self._hand_over(caller, asset_id, recipient, CustodyAction.FORFEITED)

    def is_locked(self, asset_id: str) -> bool:
        return asset_id in self._records

    def get_record(self, asset_id: str) -> CustodyRecord | None:
        record = self._records.get(asset_id)
        return copy.deepcopy(record) if record else None

    def held_assets(self) -> list[str]:
        return sorted(self._records)

    def _hand_over(
        self, caller: str, asset_id: str, recipient: str, action: CustodyAction
    ) -> CustodyRecord:
        self._require_trusted(caller, action.value.lower())
        record = self._records.get(asset_id)
        if record is None:
            raise NotLocked(f"Asset {asset_id} is not locked")
        if record.locked_by != caller:
            raise NotTrusted(f"{caller} did not lock asset {asset_id} (held for {record.locked_by})")

        # Record goes first: a reentrant release/forfeit must see NotLocked.
        self.runtime.commit_then_call(
            lambda: self._records.pop(asset_id),
            lambda: self.registry.transfer(self.identity, recipient, asset_id, operator=self.identity),
        )
        record.locked = False
        self.runtime.emit(
            f"custody.{action.value.lower()}",
            self.identity,
            asset_id,
            action=action.value,
            recipient=recipient,
            depositor=record.depositor,
            module=caller,
        )
        return record

    def _require_trusted(self, caller: str, action: str) -> None:
        if not self.is_trusted(caller):
            raise NotTrusted(f"{caller} is not trusted to {action} assets")

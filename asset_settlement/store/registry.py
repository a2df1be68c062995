"""In-memory asset registry."""

from dataclasses import dataclass, field

from asset_settlement.exceptions import TransferRejected, UnknownAsset
from asset_settlement.runtime import Stateful


@dataclass
class InMemoryAssetRegistry(Stateful):
    """Owner-of-record for unique assets with per-asset and blanket approvals."""

    owners: dict[str, str] = field(default_factory=dict)
    approvals: dict[str, str] = field(default_factory=dict)  # asset_id -> operator
    operators: dict[str, set[str]] = field(default_factory=dict)  # owner -> operators

    _state_fields = ("owners", "approvals", "operators")

    def mint(self, owner: str, asset_id: str) -> None:
        """Create a new asset owned by ``owner``."""
        if asset_id in self.owners:
            raise TransferRejected(f"Asset {asset_id} already exists")
        self.owners[asset_id] = owner

    def owner_of(self, asset_id: str) -> str:
        try:
            return self.owners[asset_id]
        except KeyError:
            raise UnknownAsset(f"Asset {asset_id} not found") from None

    def approve(self, owner: str, operator: str, asset_id: str) -> None:
        """Let ``operator`` move one asset on the owner's behalf."""
        if self.owner_of(asset_id) != owner:
            raise TransferRejected(f"{owner} does not own asset {asset_id}")
        self.approvals[asset_id] = operator

    def set_approval_for_all(self, owner: str, operator: str, approved: bool) -> None:
        """Let ``operator`` move every asset of ``owner``."""
        ops = self.operators.setdefault(owner, set())
        if approved:
            ops.add(operator)
        else:
            ops.discard(operator)

    def is_approved(self, operator: str, asset_id: str) -> bool:
        owner = self.owner_of(asset_id)
        return (
            operator == owner
            or self.approvals.get(asset_id) == operator
            or operator in self.operators.get(owner, set())
        )

    def transfer(
        self,
        sender: str,
        recipient: str,
        asset_id: str,
        operator: str | None = None,
    ) -> None:
        """Move an asset; all checks run before any state changes."""
        owner = self.owner_of(asset_id)
        if owner != sender:
            raise TransferRejected(f"{sender} does not own asset {asset_id}")
        if operator is not None and not self.is_approved(operator, asset_id):
            raise TransferRejected(f"{operator} is not approved for asset {asset_id}")
        if not recipient:
            raise TransferRejected("Transfer to empty recipient")

        self.owners[asset_id] = recipient
        self.approvals.pop(asset_id, None)

    def assets_of(self, owner: str) -> list[str]:
        return sorted(aid for aid, o in self.owners.items() if o == owner)

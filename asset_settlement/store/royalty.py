"""In-memory royalty splitter."""

from dataclasses import dataclass, field

from asset_settlement.config import BASIS_POINTS
from asset_settlement.exceptions import ConfigurationError
from asset_settlement.interfaces import ValueLedger
from asset_settlement.runtime import Stateful

MAX_ROYALTY_BPS = 1000  # 10%


@dataclass
class InMemoryRoyaltySplitter(Stateful):
    """Pays per-asset royalty shares out of the payer's ledger balance.

    Each asset carries a list of ``(receiver, bps)`` shares whose total is
    capped at ``max_royalty_bps``. Shares are computed independently with
    floor rounding, so the sum never exceeds the sale amount.
    """

    ledger: ValueLedger
    max_royalty_bps: int = MAX_ROYALTY_BPS
    shares: dict[str, list[tuple[str, int]]] = field(default_factory=dict)
    paid_to: dict[str, int] = field(default_factory=dict)  # receiver -> cumulative royalties

    _state_fields = ("shares", "paid_to")

    def __post_init__(self) -> None:
        if not 0 <= self.max_royalty_bps <= BASIS_POINTS:
            raise ConfigurationError(f"max_royalty_bps must be within 0..{BASIS_POINTS}")

    def set_royalty(self, asset_id: str, receiver: str, bps: int) -> None:
        """Single-receiver royalty."""
        self.set_shares(asset_id, [(receiver, bps)])

    def set_shares(self, asset_id: str, shares: list[tuple[str, int]]) -> None:
        total = sum(bps for _, bps in shares)
        if any(bps < 0 for _, bps in shares):
            raise ConfigurationError(f"Negative royalty share for asset {asset_id}")
        if total > self.max_royalty_bps:
            raise ConfigurationError(
                f"Royalty {total} bps exceeds maximum {self.max_royalty_bps} bps"
            )
        self.shares[asset_id] = list(shares)

    def royalty_for(self, asset_id: str, sale_amount: int) -> int:
        return sum(sale_amount * bps // BASIS_POINTS for _, bps in self.shares.get(asset_id, []))

    def distribute(self, payer: str, asset_id: str, sale_amount: int) -> int:
        total = 0
        for receiver, bps in self.shares.get(asset_id, []):
            part = sale_amount * bps // BASIS_POINTS
            if part == 0:
                continue
            self.ledger.push(payer, receiver, part)
            self.paid_to[receiver] = self.paid_to.get(receiver, 0) + part
            total += part
        return total

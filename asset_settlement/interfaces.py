"""Capability interfaces the engine consumes from its collaborators.

Implementations must be atomic: a call either fully applies or raises
without side effects. :mod:`asset_settlement.store` provides in-memory
implementations.
"""

from typing import Protocol, runtime_checkable


@runtime_checkable
class AssetRegistry(Protocol):
    """Authoritative owner-of-record for unique assets."""

    def owner_of(self, asset_id: str) -> str: ...

    def transfer(
        self,
        sender: str,
        recipient: str,
        asset_id: str,
        operator: str | None = None,
    ) -> None: ...


@runtime_checkable
class ValueLedger(Protocol):
    """Fungible balances with allowance-gated pulls."""

    def pull(self, spender: str, sender: str, recipient: str, amount: int) -> None: ...

    def push(self, sender: str, recipient: str, amount: int) -> None: ...

    def balance_of(self, account: str) -> int: ...


@runtime_checkable
class RoyaltySplitter(Protocol):
    """Pays an asset's royalty out of the payer's balance.

    Returns the royalty actually paid, never more than ``sale_amount``.
    """

    def distribute(self, payer: str, asset_id: str, sale_amount: int) -> int: ...

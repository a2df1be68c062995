"""In-memory collaborators: asset registry, value ledger and royalty splitter."""

from asset_settlement.store.ledger import InMemoryValueLedger
from asset_settlement.store.registry import InMemoryAssetRegistry
from asset_settlement.store.royalty import InMemoryRoyaltySplitter

__all__ = ["InMemoryAssetRegistry", "InMemoryRoyaltySplitter", "InMemoryValueLedger"]

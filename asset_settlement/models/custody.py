"""Custody record model."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class CustodyRecord:
    """An asset held in trust by the custodian.

    A record exists exactly while the custodian holds the asset.
    """

    asset_id: str
    depositor: str
    locked_by: str  # Trusted module that requested the lock
    locked_at: datetime
    locked: bool = True

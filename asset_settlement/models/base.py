"""Base models shared across components."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass
class Event:
    """Audit event envelope emitted by every state transition."""

    event_id: str
    event_type: str  # entity.action (e.g., loan.repaid)
    event_time: datetime
    source: str  # Component that emitted the event
    subject: str  # Asset id or identity affected
    data: dict
    metadata: dict = field(default_factory=dict)

"""Faker-backed generators for simulation participants and assets."""

from asset_settlement.generators.base import BaseGenerator
from asset_settlement.generators.participants import Participant, ParticipantGenerator

__all__ = ["BaseGenerator", "Participant", "ParticipantGenerator"]

"""Participant and asset generators for simulations."""

from __future__ import annotations

from dataclasses import dataclass

from asset_settlement.generators.base import BaseGenerator


@dataclass
class Participant:
    """A simulated end user with a ledger identity."""

    identity: str
    display_name: str


class ParticipantGenerator(BaseGenerator):
    """Generate unique participant identities and asset ids."""

    def __init__(self, seed: int | None = None, locale: str = "en_US") -> None:
        super().__init__(seed, locale)
        self._used: set[str] = set()
        self._asset_seq = 0

    def participant(self) -> Participant:
        """Generate one participant with a unique identity."""
        while True:
            identity = f"{self.fake.user_name()}-{self.fake.hexify('^^^^')}"
            if identity not in self._used:
                break
        self._used.add(identity)
        return Participant(identity=identity, display_name=self.fake.name())

    def participants(self, count: int) -> list[Participant]:
        return [self.participant() for _ in range(count)]

    def asset_id(self) -> str:
        """Generate a collectible id such as ``asset-0001-lunar-tide``."""
        self._asset_seq += 1
        slug = "-".join(self.fake.words(nb=2)).lower()
        return f"asset-{self._asset_seq:04d}-{slug}"

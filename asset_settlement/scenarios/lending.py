"""Loan book scenario: borrowers repaying on time, late, or defaulting."""

from __future__ import annotations

import logging
import random
from datetime import timedelta

from asset_settlement.config import EngineConfig, LendingConfig, ScenarioConfig
from asset_settlement.engine import SettlementEngine
from asset_settlement.generators import ParticipantGenerator
from asset_settlement.runtime import ManualClock

logger = logging.getLogger(__name__)

ON_TIME = "on_time"
LATE = "late"
DEFAULT = "default"


class LendingScenario:
    """Simulate a book of collateralized installment loans.

    This scenario creates:
    - Borrowers, each owning one collateral asset
    - One loan per borrower, sized randomly within ``principal_range``
    - Repayment behavior per borrower:
        - On time: every installment paid on its due date
        - Late: half paid on time, the remainder after the deadline
        - Default: at most one installment, then liquidation
    """

    def __init__(
        self,
        num_borrowers: int = 10,
        principal_range: tuple[int, int] = (100, 1000),
        late_rate: float = 0.2,
        default_rate: float = 0.1,
        seed: int | None = None,
        *,
        config: ScenarioConfig | None = None,
        lending: LendingConfig | None = None,
    ) -> None:
        """Initialize lending scenario.

        Parameters
        ----------
        num_borrowers : int
            Number of borrowers (one loan each).
        principal_range : tuple[int, int]
            Inclusive bounds for loan principals.
        late_rate : float
            Share of borrowers who finish repaying after the deadline.
        default_rate : float
            Share of borrowers who stop paying and get liquidated.
        seed : int | None
            Random seed for reproducibility.
        config : ScenarioConfig | None
            Optional scenario configuration. If provided, overrides
            num_borrowers and the behavior rates.
        lending : LendingConfig | None
            Lending parameters for the simulated engine.
        """
        if config is not None:
            num_borrowers = config.num_participants
            late_rate = config.late_rate
            default_rate = config.default_rate
        if late_rate + default_rate > 1:
            raise ValueError("late_rate + default_rate cannot exceed 1")

        self.num_borrowers = num_borrowers
        self.principal_range = principal_range
        self.late_rate = late_rate
        self.default_rate = default_rate
        self.seed = seed
        self.config = config

        self.rng = random.Random(seed)
        self.clock = ManualClock()
        self.engine = SettlementEngine.in_memory(
            EngineConfig(lending=lending or LendingConfig(), seed=seed),
            clock=self.clock,
        )
        self.admin = sorted(self.engine.admin.administrators)[0]
        self._participants = ParticipantGenerator(seed=seed)
        self._behavior: dict[str, str] = {}

    def generate(self) -> SettlementEngine:
        """Run the whole loan book to completion.

        Returns
        -------
        SettlementEngine
            Engine holding the final state and the event log.
        """
        engine = self.engine
        lending = engine.lending
        ledger = engine.ledger
        registry = engine.registry

        logger.info("Starting lending scenario: %d borrowers", self.num_borrowers)
        ledger.mint(lending.pool, self.num_borrowers * self.principal_range[1])

        borrowers: dict[str, str] = {}
        for participant in self._participants.participants(self.num_borrowers):
            asset_id = self._participants.asset_id()
            registry.mint(participant.identity, asset_id)
            registry.approve(participant.identity, engine.custodian.identity, asset_id)

            principal = self.rng.randint(*self.principal_range)
            lending.request_loan(participant.identity, asset_id, principal)
            ledger.approve(participant.identity, lending.identity, principal)

            borrowers[asset_id] = participant.identity
            self._behavior[asset_id] = self._pick_behavior()

        count = lending.config.installment_count
        schedule = lending.get_loan(next(iter(borrowers))).schedule if borrowers else None
        for number in range(1, count + 1):
            if schedule is None:
                break
            # Every loan opened at the same instant, so due dates line up.
            self.clock.set(max(self.clock.now(), schedule.due_date(number)))
            for asset_id, borrower in borrowers.items():
                if not self._pays(asset_id, number, count) or not lending.get_loan(asset_id).active:
                    continue
                installment = lending.get_installment_status(asset_id).installment_amount
                lending.repay_loan(borrower, asset_id, installment)

        self.clock.advance(lending.config.loan_duration + timedelta(days=1))
        for asset_id, borrower in borrowers.items():
            if self._behavior[asset_id] == LATE:
                outstanding = lending.get_installment_status(asset_id).outstanding
                lending.repay_loan(borrower, asset_id, outstanding)
            elif self._behavior[asset_id] == DEFAULT:
                lending.liquidate_loan(self.admin, asset_id)

        logger.info("Lending scenario complete: %s", engine.summary())
        return engine

    def get_labels(self) -> dict[str, str]:
        """Behavior assigned to each loan, keyed by collateral asset id."""
        return dict(self._behavior)

    def _pick_behavior(self) -> str:
        roll = self.rng.random()
        if roll < self.default_rate:
            return DEFAULT
        if roll < self.default_rate + self.late_rate:
            return LATE
        return ON_TIME

    def _pays(self, asset_id: str, number: int, count: int) -> bool:
        behavior = self._behavior[asset_id]
        if behavior == ON_TIME:
            return True
        if behavior == LATE:
            return number <= count // 2
        return number == 1 and self.rng.random() < 0.5

"""Tests for models and lifecycle evaluation."""

from datetime import datetime, timedelta, timezone

import pytest

from asset_settlement.lifecycle import evaluate_auction, evaluate_loan, is_late
from asset_settlement.models import (
    Auction,
    AuctionPhase,
    AuctionStatus,
    InstallmentSchedule,
    Loan,
    LoanPhase,
    LoanStatus,
    Repayment,
)

START = datetime(2024, 1, 1, tzinfo=timezone.utc)
DEADLINE = START + timedelta(days=30)


@pytest.fixture
def loan() -> Loan:
    return Loan(
        asset_id="asset-0001",
        borrower="alice",
        principal=100,
        created_at=START,
        deadline=DEADLINE,
        schedule=InstallmentSchedule(total=100, installment_count=4, created_at=START, deadline=DEADLINE),
    )


@pytest.fixture
def auction() -> Auction:
    return Auction(
        asset_id="asset-0001",
        seller="alice",
        min_bid=10,
        start_time=START,
        end_time=START + timedelta(hours=1),
    )


class TestInstallmentSchedule:
    """Tests for InstallmentSchedule bookkeeping."""

    def test_due_dates_evenly_spaced(self, loan: Loan) -> None:
        schedule = loan.schedule

        assert schedule.due_date(1) == START + timedelta(days=7, hours=12)
        assert schedule.due_date(4) == DEADLINE
        assert schedule.next_due() == schedule.due_date(1)

    def test_late_payments_counted(self, loan: Loan) -> None:
        loan.schedule.payments = [
            Repayment(amount=25, paid_at=START),
            Repayment(amount=25, paid_at=DEADLINE + timedelta(days=1), late=True),
        ]
        loan.schedule.paid = 50

        assert loan.schedule.late_payments == 1
        assert loan.schedule.installments_paid == 2
        assert loan.schedule.next_due() == loan.schedule.due_date(3)


class TestEvaluateLoan:
    """Tests for evaluate_loan."""

    def test_active_until_deadline(self, loan: Loan) -> None:
        assert evaluate_loan(loan, START) == LoanPhase.ACTIVE
        assert evaluate_loan(loan, DEADLINE) == LoanPhase.ACTIVE

    def test_overdue_after_deadline(self, loan: Loan) -> None:
        assert evaluate_loan(loan, DEADLINE + timedelta(seconds=1)) == LoanPhase.OVERDUE

    @pytest.mark.parametrize(
        ("status", "phase"),
        [(LoanStatus.REPAID, LoanPhase.REPAID), (LoanStatus.LIQUIDATED, LoanPhase.LIQUIDATED)],
    )
    def test_terminal_states_ignore_time(self, loan: Loan, status: LoanStatus, phase: LoanPhase) -> None:
        loan.status = status

        assert evaluate_loan(loan, DEADLINE + timedelta(days=365)) == phase
        assert loan.active is False


class TestEvaluateAuction:
    """Tests for evaluate_auction."""

    def test_bidding_before_end(self, auction: Auction) -> None:
        assert evaluate_auction(auction, START) == AuctionPhase.BIDDING

    def test_end_time_closes_bidding(self, auction: Auction) -> None:
        assert evaluate_auction(auction, auction.end_time) == AuctionPhase.AWAITING_SETTLEMENT

    def test_terminal_states(self, auction: Auction) -> None:
        auction.status = AuctionStatus.CANCELLED
        assert evaluate_auction(auction, START) == AuctionPhase.CANCELLED

        auction.status = AuctionStatus.SETTLED
        assert evaluate_auction(auction, START) == AuctionPhase.SETTLED


class TestIsLate:
    """Tests for is_late."""

    def test_boundary(self) -> None:
        assert is_late(DEADLINE, DEADLINE) is False
        assert is_late(DEADLINE + timedelta(microseconds=1), DEADLINE) is True

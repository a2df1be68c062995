"""Loan models for installment lending."""

from dataclasses import dataclass, field
from datetime import datetime

from asset_settlement.models.enums import LoanStatus


@dataclass
class Repayment:
    """A single payment applied to an installment schedule."""

    amount: int
    paid_at: datetime
    late: bool = False


@dataclass
class InstallmentSchedule:
    """Repayment bookkeeping attached 1:1 to a loan."""

    total: int
    installment_count: int
    created_at: datetime
    deadline: datetime
    paid: int = 0
    payments: list[Repayment] = field(default_factory=list)

    @property
    def outstanding(self) -> int:
        return self.total - self.paid

    @property
    def installment_amount(self) -> int:
        """Size of one installment, rounded up so the count covers the total."""
        return -(-self.total // self.installment_count)

    @property
    def installments_paid(self) -> int:
        if self.paid >= self.total:
            return self.installment_count
        return self.paid // self.installment_amount

    @property
    def late_payments(self) -> int:
        return sum(1 for p in self.payments if p.late)

    def due_date(self, number: int) -> datetime:
        """Due date of installment ``number`` (1-based), evenly spaced up to the deadline."""
        span = self.deadline - self.created_at
        return self.created_at + span * number / self.installment_count

    def next_due(self) -> datetime | None:
        if self.paid >= self.total:
            return None
        return self.due_date(self.installments_paid + 1)


@dataclass
class Loan:
    """Loan issued against an asset held in custody."""

    asset_id: str
    borrower: str
    principal: int
    created_at: datetime
    deadline: datetime
    schedule: InstallmentSchedule
    repaid: int = 0
    status: LoanStatus = LoanStatus.ACTIVE
    collateral_released: bool = False
    closed_at: datetime | None = None

    @property
    def active(self) -> bool:
        return self.status == LoanStatus.ACTIVE

    @property
    def outstanding(self) -> int:
        return self.principal - self.repaid


@dataclass
class InstallmentStatus:
    """Read-only snapshot of a loan's repayment progress."""

    asset_id: str
    borrower: str
    total: int
    paid: int
    outstanding: int
    installment_count: int
    installment_amount: int
    installments_paid: int
    next_due: datetime | None
    deadline: datetime
    late_payments: int
    overdue: bool
    status: LoanStatus

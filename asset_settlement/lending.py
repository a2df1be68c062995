"""Installment lending against collateral held by the custodian.

Lifecycle per asset: no loan -> ACTIVE -> REPAID or LIQUIDATED. Both end
states are terminal; a new loan on the same asset starts a fresh cycle once
the previous custody record is gone.
"""

from __future__ import annotations

import copy
import logging

from asset_settlement.access import AdminGate
from asset_settlement.config import LendingConfig
from asset_settlement.custodian import Custodian
from asset_settlement.exceptions import (
    InvalidAmount,
    LoanExists,
    LoanNotFound,
    LoanNotRepaid,
    NoActiveLoan,
    NotBorrower,
    NotExpired,
    NotLocked,
    NotOwner,
)
from asset_settlement.interfaces import AssetRegistry, ValueLedger
from asset_settlement.lifecycle import evaluate_loan, is_late
from asset_settlement.models import (
    InstallmentSchedule,
    InstallmentStatus,
    Loan,
    LoanPhase,
    LoanStatus,
    Repayment,
)
from asset_settlement.runtime import Runtime, Stateful, transactional

logger = logging.getLogger(__name__)


class InstallmentLending(Stateful):
    """Issue value against a locked asset and track its repayment.

    The module's identity doubles as its lending pool account on the value
    ledger: loans are paid out of it and repayments are pulled into it, so
    borrowers approve that identity as spender before repaying.

    Parameters
    ----------
    runtime : Runtime
        Shared execution host.
    custodian : Custodian
        Must trust ``config.module_id``.
    registry : AssetRegistry
        Used for the ownership check.
    ledger : ValueLedger
        Holds the lending pool.
    admin : AdminGate
        Who may liquidate.
    config : LendingConfig | None
        Loan duration, installment count and release policy.
    """

    _state_fields = ("_loans", "_liquidation_recipient")
    _append_only_fields = ("_archive",)

    def __init__(
        self,
        runtime: Runtime,
        custodian: Custodian,
        registry: AssetRegistry,
        ledger: ValueLedger,
        admin: AdminGate,
        config: LendingConfig | None = None,
    ) -> None:
        self.runtime = runtime
        self.custodian = custodian
        self.registry = registry
        self.ledger = ledger
        self.admin = admin
        self.config = config or LendingConfig()
        self.config.validate()
        self.identity = self.config.module_id
        self._loans: dict[str, Loan] = {}
        self._archive: list[Loan] = []
        self._liquidation_recipient = self.config.liquidation_recipient

    @property
    def pool(self) -> str:
        return self.identity

    @property
    def liquidation_recipient(self) -> str | None:
        return self._liquidation_recipient

    @transactional
    def request_loan(self, caller: str, asset_id: str, amount: int) -> Loan:
        """Lock ``asset_id`` as collateral and pay ``amount`` to the caller."""
        if amount <= 0:
            raise InvalidAmount(f"Loan amount must be positive, got {amount}")
        existing = self._loans.get(asset_id)
        if existing is not None and existing.active:
            raise LoanExists(f"Asset {asset_id} already backs an active loan")
        if self.registry.owner_of(asset_id) != caller:
            raise NotOwner(f"{caller} does not own asset {asset_id}")

        now = self.runtime.now()
        deadline = now + self.config.loan_duration
        loan = Loan(
            asset_id=asset_id,
            borrower=caller,
            principal=amount,
            created_at=now,
            deadline=deadline,
            schedule=InstallmentSchedule(
                total=amount,
                installment_count=self.config.installment_count,
                created_at=now,
                deadline=deadline,
            ),
        )

        def open_loan() -> None:
            if existing is not None:
                self._archive.append(existing)
            self._loans[asset_id] = loan

        self.runtime.commit_then_call(
            open_loan,
            lambda: self.custodian.lock(self.identity, asset_id, caller),
        )
        self.runtime.commit_then_call(None, lambda: self.ledger.push(self.pool, caller, amount))

        self.runtime.emit(
            "loan.requested",
            self.identity,
            asset_id,
            borrower=caller,
            principal=amount,
            deadline=deadline.isoformat(),
            installments=self.config.installment_count,
        )
        return copy.deepcopy(loan)

    @transactional
    def repay_loan(self, caller: str, asset_id: str, amount: int) -> int:
        """Apply a repayment, capped at the outstanding balance.

        Returns
        -------
        int
            The amount actually pulled from the borrower.
        """
        if amount <= 0:
            raise InvalidAmount(f"Repayment must be positive, got {amount}")
        loan = self._active_loan(asset_id)
        if caller != loan.borrower:
            raise NotBorrower(f"{caller} is not the borrower of loan on {asset_id}")

        applied = min(amount, loan.outstanding)
        now = self.runtime.now()
        late = is_late(now, loan.schedule.deadline)

        def apply_payment() -> None:
            loan.repaid += applied
            loan.schedule.paid += applied
            loan.schedule.payments.append(Repayment(amount=applied, paid_at=now, late=late))
            if loan.repaid >= loan.principal:
                loan.status = LoanStatus.REPAID
                loan.closed_at = now

        self.runtime.commit_then_call(
            apply_payment,
            lambda: self.ledger.pull(self.identity, caller, self.pool, applied),
        )
        if late:
            logger.info("Late repayment of %d on %s", applied, asset_id)

        loan = self._loans[asset_id]
        self.runtime.emit(
            "loan.repaid",
            self.identity,
            asset_id,
            borrower=caller,
            amount=applied,
            requested=amount,
            repaid=loan.repaid,
            outstanding=loan.outstanding,
            late=late,
        )

        if loan.status == LoanStatus.REPAID:
            self.runtime.emit("loan.closed", self.identity, asset_id, borrower=caller, principal=loan.principal)
            if self.config.auto_release:
                self._release_collateral(loan, loan.borrower)
        return applied

    @transactional
    def liquidate_loan(self, caller: str, asset_id: str) -> str:
        """Forfeit the collateral of an overdue loan.

        Returns
        -------
        str
            The identity that received the collateral.
        """
        self.admin.require(caller, "liquidate_loan")
        loan = self._active_loan(asset_id)
        if evaluate_loan(loan, self.runtime.now()) != LoanPhase.OVERDUE:
            raise NotExpired(f"Loan on {asset_id} is not past its deadline {loan.deadline.isoformat()}")

        recipient = self._liquidation_recipient or caller
        now = self.runtime.now()

        def close_loan() -> None:
            loan.status = LoanStatus.LIQUIDATED
            loan.closed_at = now
            loan.collateral_released = True

        self.runtime.commit_then_call(
            close_loan,
            lambda: self.custodian.forfeit(self.identity, asset_id, recipient),
        )
        self.runtime.emit(
            "loan.liquidated",
            self.identity,
            asset_id,
            borrower=loan.borrower,
            recipient=recipient,
            outstanding=loan.outstanding,
            liquidated_by=caller,
        )
        return recipient

    @transactional
    def withdraw_collateral(self, caller: str, asset_id: str, to: str | None = None) -> None:
        """Release fully repaid collateral held back by ``auto_release=False``."""
        loan = self._loans.get(asset_id)
        if loan is None:
            raise LoanNotFound(f"No loan on asset {asset_id}")
        if caller != loan.borrower:
            raise NotBorrower(f"{caller} is not the borrower of loan on {asset_id}")
        if loan.repaid < loan.principal:
            raise LoanNotRepaid(f"Loan on {asset_id} still owes {loan.outstanding}")
        if loan.collateral_released:
            raise NotLocked(f"Collateral {asset_id} was already released")

        recipient = to or caller
        self._release_collateral(loan, recipient)
        self.runtime.emit("loan.collateral_withdrawn", self.identity, asset_id, borrower=caller, recipient=recipient)

    @transactional
    def set_liquidation_recipient(self, caller: str, recipient: str | None) -> None:
        """Designate who receives liquidated collateral (None: the liquidator)."""
        self.admin.require(caller, "set_liquidation_recipient")
        self._liquidation_recipient = recipient
        self.runtime.emit("loan.liquidation_recipient_set", self.identity, caller, recipient=recipient)

    def get_loan(self, asset_id: str) -> Loan | None:
        loan = self._loans.get(asset_id)
        return copy.deepcopy(loan) if loan else None

    def get_installment_status(self, asset_id: str) -> InstallmentStatus:
        loan = self._loans.get(asset_id)
        if loan is None:
            raise LoanNotFound(f"No loan on asset {asset_id}")
        schedule = loan.schedule
        return InstallmentStatus(
            asset_id=asset_id,
            borrower=loan.borrower,
            total=schedule.total,
            paid=schedule.paid,
            outstanding=schedule.outstanding,
            installment_count=schedule.installment_count,
            installment_amount=schedule.installment_amount,
            installments_paid=schedule.installments_paid,
            next_due=schedule.next_due(),
            deadline=schedule.deadline,
            late_payments=schedule.late_payments,
            overdue=evaluate_loan(loan, self.runtime.now()) == LoanPhase.OVERDUE,
            status=loan.status,
        )

    def loan_phase(self, asset_id: str) -> LoanPhase:
        loan = self._loans.get(asset_id)
        if loan is None:
            raise LoanNotFound(f"No loan on asset {asset_id}")
        return evaluate_loan(loan, self.runtime.now())

    def loans(self) -> list[Loan]:
        """Current cycle of every asset that ever backed a loan."""
        return [copy.deepcopy(loan) for loan in self._loans.values()]

    def active_loans(self) -> list[Loan]:
        return [copy.deepcopy(loan) for loan in self._loans.values() if loan.active]

    def loan_history(self, asset_id: str) -> list[Loan]:
        """Closed cycles for an asset, oldest first, followed by the current one."""
        cycles = [loan for loan in self._archive if loan.asset_id == asset_id]
        if asset_id in self._loans:
            cycles.append(self._loans[asset_id])
        return copy.deepcopy(cycles)

    def _active_loan(self, asset_id: str) -> Loan:
        loan = self._loans.get(asset_id)
        if loan is None or not loan.active:
            raise NoActiveLoan(f"No active loan on asset {asset_id}")
        return loan

    def _release_collateral(self, loan: Loan, recipient: str) -> None:
        self.runtime.commit_then_call(
            lambda: setattr(loan, "collateral_released", True),
            lambda: self.custodian.release(self.identity, loan.asset_id, recipient),
        )

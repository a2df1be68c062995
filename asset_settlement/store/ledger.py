"""In-memory fungible value ledger."""

from dataclasses import dataclass, field

from asset_settlement.exceptions import (
    InsufficientAllowance,
    InsufficientBalance,
    InvalidAmount,
)
from asset_settlement.runtime import Stateful


@dataclass
class InMemoryValueLedger(Stateful):
    """Integer balances with ERC-20 style allowances."""

    balances: dict[str, int] = field(default_factory=dict)
    allowances: dict[tuple[str, str], int] = field(default_factory=dict)  # (owner, spender)

    _state_fields = ("balances", "allowances")

    def mint(self, account: str, amount: int) -> None:
        """Credit new value to an account."""
        self._check_amount(amount)
        self.balances[account] = self.balances.get(account, 0) + amount

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def total_supply(self) -> int:
        return sum(self.balances.values())

    def approve(self, owner: str, spender: str, amount: int) -> None:
        """Set (not add to) the amount ``spender`` may pull from ``owner``."""
        self._check_amount(amount)
        self.allowances[(owner, spender)] = amount

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def pull(self, spender: str, sender: str, recipient: str, amount: int) -> None:
        """Move value out of ``sender`` using the allowance granted to ``spender``."""
        self._check_amount(amount)
        allowed = self.allowance(sender, spender)
        if allowed < amount:
            raise InsufficientAllowance(
                f"{spender} may pull {allowed} from {sender}, needs {amount}"
            )
        self._require_balance(sender, amount)

        self.allowances[(sender, spender)] = allowed - amount
        self._move(sender, recipient, amount)

    def push(self, sender: str, recipient: str, amount: int) -> None:
        """Move value out of the sender's own balance."""
        self._check_amount(amount)
        self._require_balance(sender, amount)
        self._move(sender, recipient, amount)

    def _move(self, sender: str, recipient: str, amount: int) -> None:
        self.balances[sender] = self.balances.get(sender, 0) - amount
        self.balances[recipient] = self.balances.get(recipient, 0) + amount

    def _require_balance(self, account: str, amount: int) -> None:
        balance = self.balance_of(account)
        if balance < amount:
            raise InsufficientBalance(f"{account} holds {balance}, needs {amount}")

    @staticmethod
    def _check_amount(amount: int) -> None:
        if amount < 0:
            raise InvalidAmount(f"Amount cannot be negative: {amount}")

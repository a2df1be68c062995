"""Custom exception hierarchy for asset-settlement.

Every failure aborts the whole operation. The runtime restores all
participating state before the exception reaches the caller.
"""


class SettlementError(Exception):
    """Base exception for all asset-settlement errors."""


class PreconditionError(SettlementError):
    """Raised when an operation's preconditions do not hold."""


class Unauthorized(PreconditionError):
    """Raised when the caller lacks the required capability."""


class NotTrusted(Unauthorized):
    """Raised when an untrusted caller invokes a custody operation."""


class NotOwner(PreconditionError):
    """Raised when the caller does not own the asset."""


class NotBorrower(PreconditionError):
    """Raised when someone other than the borrower acts on a loan."""


class SellerCannotBid(PreconditionError):
    """Raised when a seller bids on their own auction."""


class InvalidAmount(PreconditionError):
    """Raised for zero, negative or otherwise unusable amounts."""


class DurationTooShort(PreconditionError):
    """Raised when an auction duration is below the configured minimum."""


class BidTooLow(PreconditionError):
    """Raised when a bid is below the minimum or not above the current high bid."""


class EntityNotFoundError(PreconditionError):
    """Raised when a referenced entity does not exist."""


class LoanNotFound(EntityNotFoundError):
    """Raised when no loan was ever opened for an asset."""


class NotLocked(EntityNotFoundError):
    """Raised when an asset has no custody record."""


class NoActiveLoan(EntityNotFoundError):
    """Raised when an asset has no active loan."""


class NotActive(EntityNotFoundError):
    """Raised when an asset has no open auction."""


class InvalidEntityStateError(PreconditionError):
    """Raised when an entity is in an invalid state for the operation."""


class AlreadyLocked(InvalidEntityStateError):
    """Raised when an asset is already under custody."""


class LoanExists(InvalidEntityStateError):
    """Raised when an asset already backs an active loan."""


class AuctionExists(InvalidEntityStateError):
    """Raised when an asset already has an open auction."""


class NotExpired(InvalidEntityStateError):
    """Raised when liquidating a loan whose deadline has not passed."""


class LoanNotRepaid(InvalidEntityStateError):
    """Raised when withdrawing collateral before full repayment."""


class AuctionEnded(InvalidEntityStateError):
    """Raised when bidding at or after an auction's end time."""


class TooEarly(InvalidEntityStateError):
    """Raised when finalizing an auction before its end time."""


class BidsPresent(InvalidEntityStateError):
    """Raised when cancelling an auction that already has a bid."""


class InvariantViolation(SettlementError):
    """Raised when an arithmetic or accounting invariant would break."""


class FeesExceedPrice(InvariantViolation):
    """Raised when platform fee plus royalty exceed the sale price."""


class ExternalCallError(SettlementError):
    """Raised when a collaborator rejects a call."""


class InsufficientBalance(ExternalCallError):
    """Raised when an account cannot cover a transfer."""


class InsufficientAllowance(ExternalCallError):
    """Raised when a spender's allowance cannot cover a pull."""


class TransferRejected(ExternalCallError):
    """Raised when the asset registry refuses a transfer."""


class UnknownAsset(ExternalCallError):
    """Raised when the asset registry has no record of an asset."""


class ConfigurationError(SettlementError):
    """Raised when configuration is invalid or missing."""


class SinkError(SettlementError):
    """Raised when a sink operation fails."""

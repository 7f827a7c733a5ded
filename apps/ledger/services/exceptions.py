"""
Domain-specific exceptions for the ledger app.

These exceptions represent business rule violations and should be
caught in views and converted to appropriate HTTP responses.
"""


class LedgerServiceError(Exception):
    """Base exception for all ledger service errors."""
    pass


class InvalidAmountError(LedgerServiceError):
    """Raised when an amount is non-positive, NaN or has more than two decimals."""
    pass


class InvalidShareError(LedgerServiceError):
    """Raised when a declared share falls outside (0, total)."""
    pass


class MissingReceiptError(LedgerServiceError):
    """Raised when a specified split is created without a receipt."""
    pass


class NoParticipantsError(LedgerServiceError):
    """Raised when a split has nobody to split with."""
    pass


class UserNotFoundError(LedgerServiceError):
    """Raised when an invited user does not exist."""
    pass


class SplitEventNotFoundError(LedgerServiceError):
    """Raised when a split event does not exist or is not visible to the user."""
    pass


class ParticipantNotFoundError(LedgerServiceError):
    """Raised when the user has no share in the split event."""
    pass


class AlreadySettledError(LedgerServiceError):
    """Raised when a share is already paid or declined."""
    pass


class InsufficientFundsError(LedgerServiceError):
    """Raised when a wallet balance cannot cover a debit."""
    pass


class CreatorCannotRespondError(LedgerServiceError):
    """Raised when the split creator tries to accept, decline or pay their own row."""
    pass


class ImmutableTransactionError(LedgerServiceError):
    """Raised on any attempt to modify or delete a saved transaction."""
    pass

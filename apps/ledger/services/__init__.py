"""
Ledger app services layer.

Services contain business logic and orchestrate operations across models.
All state-changing operations use transactions and row-level locking;
notifications are sent only after the ledger changes have committed.
"""

from .exceptions import (
    LedgerServiceError,
    InvalidAmountError,
    InvalidShareError,
    MissingReceiptError,
    NoParticipantsError,
    UserNotFoundError,
    SplitEventNotFoundError,
    ParticipantNotFoundError,
    AlreadySettledError,
    InsufficientFundsError,
    CreatorCannotRespondError,
    ImmutableTransactionError,
)

from .split_management import (
    calculate_equal_split,
    calculate_specified_split,
    create_split,
    respond_to_split,
    decline_share,
    list_user_splits,
    get_split_for_user,
    get_split_summary,
    get_outstanding_obligations,
    get_user_outstanding,
)

from .payments import pay_share

from .wallet_management import (
    parse_amount,
    get_wallet,
    deposit,
    withdraw,
    get_transaction_history,
)


__all__ = [
    # Exceptions
    'LedgerServiceError',
    'InvalidAmountError',
    'InvalidShareError',
    'MissingReceiptError',
    'NoParticipantsError',
    'UserNotFoundError',
    'SplitEventNotFoundError',
    'ParticipantNotFoundError',
    'AlreadySettledError',
    'InsufficientFundsError',
    'CreatorCannotRespondError',
    'ImmutableTransactionError',

    # Split management
    'calculate_equal_split',
    'calculate_specified_split',
    'create_split',
    'respond_to_split',
    'decline_share',
    'list_user_splits',
    'get_split_for_user',
    'get_split_summary',
    'get_outstanding_obligations',
    'get_user_outstanding',

    # Payments
    'pay_share',

    # Wallet
    'parse_amount',
    'get_wallet',
    'deposit',
    'withdraw',
    'get_transaction_history',
]

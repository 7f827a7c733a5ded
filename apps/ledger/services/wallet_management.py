"""
Wallet management service.

Every balance change goes through ``record_entry``, which applies the
signed effect and appends exactly one Transaction row. Callers must hold
a row lock on the wallet (``select_for_update``) inside a transaction.
"""

from decimal import Decimal, InvalidOperation
from typing import Optional

import structlog
from django.db import transaction
from django.db.models import QuerySet

from apps.accounts.models import User
from apps.ledger.models import SplitEvent, Transaction, TransactionType, Wallet

from .exceptions import InsufficientFundsError, InvalidAmountError

logger = structlog.get_logger(__name__)

CENT = Decimal('0.01')

# Sign of the balance effect per transaction type
CREDIT_TYPES = {TransactionType.DEPOSIT, TransactionType.TRANSFER_IN}
DEBIT_TYPES = {TransactionType.WITHDRAWAL, TransactionType.TRANSFER_OUT, TransactionType.PAYMENT}


def parse_amount(value, *, field: str = 'amount') -> Decimal:
    """
    Convert user input to a positive two-decimal Decimal.

    Raises:
        InvalidAmountError: If the value is not a number, is NaN or infinite,
            is not positive or has more than two decimal places
    """
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidAmountError(f"{field} must be a number")

    if not amount.is_finite():
        raise InvalidAmountError(f"{field} must be a finite number")
    if amount <= 0:
        raise InvalidAmountError(f"{field} must be greater than zero")
    if amount != amount.quantize(CENT):
        raise InvalidAmountError(f"{field} cannot have more than two decimal places")

    return amount.quantize(CENT)


def get_wallet(*, user: User) -> Wallet:
    """Return the user's wallet, creating an empty one on first use."""
    wallet, created = Wallet.objects.get_or_create(user=user)
    if created:
        logger.info('wallet_created', user_id=str(user.id))
    return wallet


def record_entry(
    *,
    wallet: Wallet,
    type: str,
    amount: Decimal,
    description: str = '',
    split_event: Optional[SplitEvent] = None,
    metadata: Optional[dict] = None,
) -> Transaction:
    """
    Apply one balance change and append its Transaction.

    The wallet must already be locked by the caller.

    Raises:
        InsufficientFundsError: If a debit would make the balance negative
    """
    if type in CREDIT_TYPES:
        effect = amount
    elif type in DEBIT_TYPES:
        effect = -amount
    else:
        raise ValueError(f"Unknown transaction type: {type}")

    new_balance = wallet.balance + effect
    if new_balance < 0:
        raise InsufficientFundsError(
            f"Insufficient funds: balance {wallet.balance}, required {amount}"
        )

    wallet.balance = new_balance
    wallet.save(update_fields=['balance', 'updated_at'])

    return Transaction.objects.create(
        wallet=wallet,
        user_id=wallet.user_id,
        type=type,
        amount=amount,
        balance_effect=effect,
        balance_after=new_balance,
        description=description,
        split_event=split_event,
        metadata=metadata or {},
    )


def _lock_wallet(user: User) -> Wallet:
    get_wallet(user=user)
    return Wallet.objects.select_for_update().get(user=user)


@transaction.atomic
def deposit(*, user: User, amount, description: str = '') -> Transaction:
    """
    Add funds to the user's wallet.

    Raises:
        InvalidAmountError: If amount is not a positive two-decimal number
    """
    amount = parse_amount(amount)
    wallet = _lock_wallet(user)
    entry = record_entry(
        wallet=wallet,
        type=TransactionType.DEPOSIT,
        amount=amount,
        description=description or 'Deposit',
    )
    logger.info('wallet_deposit', user_id=str(user.id), amount=str(amount))
    return entry


@transaction.atomic
def withdraw(*, user: User, amount, description: str = '') -> Transaction:
    """
    Take funds out of the user's wallet.

    Raises:
        InvalidAmountError: If amount is not a positive two-decimal number
        InsufficientFundsError: If the balance does not cover the amount
    """
    amount = parse_amount(amount)
    wallet = _lock_wallet(user)
    entry = record_entry(
        wallet=wallet,
        type=TransactionType.WITHDRAWAL,
        amount=amount,
        description=description or 'Withdrawal',
    )
    logger.info('wallet_withdrawal', user_id=str(user.id), amount=str(amount))
    return entry


def get_transaction_history(*, user: User) -> QuerySet:
    """Return the user's transactions, newest first."""
    return (
        Transaction.objects
        .filter(user=user)
        .select_related('split_event')
        .order_by('-created_at')
    )

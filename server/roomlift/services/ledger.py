"""Credit ledger.

The only code allowed to change `User.credit_balance`. Every mutation is a
single conditional UPDATE evaluated by the database, followed by an audit row
in the same transaction, so concurrent reservations for one user can never
overdraw the balance.
"""

import logging
from decimal import Decimal

from django.db import transaction
from django.db.models import F

from roomlift.models import CreditTransaction, User
from roomlift.utils.exceptions import InsufficientCreditsError

logger = logging.getLogger(__name__)


def _as_amount(amount) -> Decimal:
    value = Decimal(str(amount))
    if value <= 0:
        raise ValueError(f"Credit amount must be positive, got {value}")
    return value


def balance(user_id) -> Decimal:
    return User.objects.filter(pk=user_id).values_list("credit_balance", flat=True).get()


def reserve(user_id, amount, enhancement_log=None, note="") -> CreditTransaction:
    """
    Atomically check `balance >= amount` and deduct it.

    Raises:
        InsufficientCreditsError: balance too low; nothing was changed
    """
    amount = _as_amount(amount)
    with transaction.atomic():
        updated = User.objects.filter(pk=user_id, credit_balance__gte=amount).update(
            credit_balance=F("credit_balance") - amount
        )
        if not updated:
            available = User.objects.filter(pk=user_id).values_list("credit_balance", flat=True).first()
            raise InsufficientCreditsError(available if available is not None else Decimal("0.00"), amount)

        entry = CreditTransaction.objects.create(
            user_id=user_id,
            amount=-amount,
            transaction_type=CreditTransaction.TYPE_RESERVE,
            enhancement_log=enhancement_log,
            note=note,
        )

    logger.info(f"Reserved {amount} credits for user {user_id}")
    return entry


def refund(user_id, amount, enhancement_log=None, note="") -> CreditTransaction:
    """
    Credit `amount` back unconditionally.

    Callers are responsible for refunding a job at most once.
    """
    amount = _as_amount(amount)
    with transaction.atomic():
        User.objects.filter(pk=user_id).update(credit_balance=F("credit_balance") + amount)
        entry = CreditTransaction.objects.create(
            user_id=user_id,
            amount=amount,
            transaction_type=CreditTransaction.TYPE_REFUND,
            enhancement_log=enhancement_log,
            note=note,
        )

    logger.info(f"Refunded {amount} credits to user {user_id}")
    return entry


def grant(user_id, amount, note="") -> CreditTransaction:
    """Top up a balance after a purchase or an admin adjustment"""
    amount = _as_amount(amount)
    with transaction.atomic():
        User.objects.filter(pk=user_id).update(credit_balance=F("credit_balance") + amount)
        entry = CreditTransaction.objects.create(
            user_id=user_id,
            amount=amount,
            transaction_type=CreditTransaction.TYPE_GRANT,
            note=note,
        )

    logger.info(f"Granted {amount} credits to user {user_id}")
    return entry

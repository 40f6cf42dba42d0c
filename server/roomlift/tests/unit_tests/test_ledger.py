from decimal import Decimal

from django.test import TestCase

from roomlift.models import CreditTransaction
from roomlift.services import ledger
from roomlift.tests.helpers import create_user
from roomlift.utils.exceptions import InsufficientCreditsError


class LedgerTest(TestCase):
    def setUp(self):
        self.user = create_user(balance="5.00")

    def test_reserve_deducts_and_records_transaction(self):
        entry = ledger.reserve(self.user.id, Decimal("1.50"), note="decoration image 1")

        self.assertEqual(ledger.balance(self.user.id), Decimal("3.50"))
        self.assertEqual(entry.amount, Decimal("-1.50"))
        self.assertEqual(entry.transaction_type, CreditTransaction.TYPE_RESERVE)

    def test_reserve_exact_balance_leaves_zero(self):
        ledger.reserve(self.user.id, Decimal("5.00"))

        self.assertEqual(ledger.balance(self.user.id), Decimal("0.00"))

    def test_reserve_insufficient_changes_nothing(self):
        with self.assertRaises(InsufficientCreditsError) as ctx:
            ledger.reserve(self.user.id, Decimal("6.00"))

        self.assertEqual(ctx.exception.credits_available, Decimal("5.00"))
        self.assertEqual(ctx.exception.credits_needed, Decimal("6.00"))
        self.assertEqual(ctx.exception.details, {"required": "6.00", "available": "5.00"})
        self.assertEqual(ledger.balance(self.user.id), Decimal("5.00"))
        self.assertFalse(CreditTransaction.objects.exists())

    def test_sequential_reservations_never_overdraw(self):
        ledger.reserve(self.user.id, Decimal("3.00"))
        with self.assertRaises(InsufficientCreditsError):
            ledger.reserve(self.user.id, Decimal("3.00"))

        self.assertEqual(ledger.balance(self.user.id), Decimal("2.00"))

    def test_refund_restores_balance(self):
        ledger.reserve(self.user.id, Decimal("1.00"))
        entry = ledger.refund(self.user.id, Decimal("1.00"))

        self.assertEqual(ledger.balance(self.user.id), Decimal("5.00"))
        self.assertEqual(entry.transaction_type, CreditTransaction.TYPE_REFUND)

    def test_grant_tops_up(self):
        ledger.grant(self.user.id, "10", note="welcome pack")

        self.assertEqual(ledger.balance(self.user.id), Decimal("15.00"))

    def test_non_positive_amounts_are_rejected(self):
        for amount in ("0", "-1"):
            with self.assertRaises(ValueError):
                ledger.reserve(self.user.id, amount)

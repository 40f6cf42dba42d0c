from django.conf import settings
from django.db import models


class CreditTransaction(models.Model):
    """Audit trail of every credit balance mutation"""

    TYPE_RESERVE = "reserve"
    TYPE_REFUND = "refund"
    TYPE_GRANT = "grant"

    TRANSACTION_TYPES = [
        (TYPE_RESERVE, "Reserve"),
        (TYPE_REFUND, "Refund"),
        (TYPE_GRANT, "Grant"),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='credit_transactions'
    )
    amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        help_text="Positive for grant/refund, negative for reservations"
    )
    transaction_type = models.CharField(
        max_length=20,
        choices=TRANSACTION_TYPES
    )
    enhancement_log = models.ForeignKey(
        'EnhancementLog',
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name='credit_transactions',
        help_text="Job this reservation or refund belongs to"
    )
    note = models.CharField(max_length=255, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'credit_transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='credit_tran_user_id_2f6a8c_idx'),
        ]

    def __str__(self):
        return f"{self.transaction_type} - {self.amount} credits ({self.user})"

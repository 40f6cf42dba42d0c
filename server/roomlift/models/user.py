"""Custom user model used by the `roomlift` Django app.

Authentication itself is delegated to the identity layer (DRF token, session or
JWT). The model only adds the prepaid credit balance consumed by image jobs;
that balance is mutated exclusively through `roomlift.services.ledger`.
"""

from decimal import Decimal

from django.contrib.auth.models import AbstractUser
from django.core.validators import MinValueValidator
from django.db import models


class User(AbstractUser):
    """Studio account holding a prepaid credit balance."""

    credit_balance = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        default=Decimal("0.00"),
        validators=[MinValueValidator(Decimal("0.00"))],
        help_text="Credits available for enhancement and decoration jobs."
    )
    real_estate_office = models.CharField(
        max_length=255,
        blank=True,
        help_text="Agency name shown on shared listings."
    )
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "users"
        constraints = [
            models.CheckConstraint(
                condition=models.Q(credit_balance__gte=0),
                name="users_credit_balance_non_negative",
            ),
        ]

    def __str__(self):
        """Return a human-readable identifier for the user."""
        return self.email or self.username

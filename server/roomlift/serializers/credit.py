"""DRF serializers for credit transactions."""

from rest_framework import serializers
from roomlift.models import CreditTransaction


class CreditTransactionSerializer(serializers.ModelSerializer):
    """Serializer for CreditTransaction model"""

    class Meta:
        model = CreditTransaction
        fields = [
            'id',
            'amount',
            'transaction_type',
            'enhancement_log',
            'note',
            'created_at',
        ]
        read_only_fields = fields

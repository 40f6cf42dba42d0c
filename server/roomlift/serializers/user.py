"""DRF serializer for the user model."""

from rest_framework import serializers
from roomlift.models import User


class UserSerializer(serializers.ModelSerializer):
    """Serializer for User model"""

    class Meta:
        model = User
        fields = [
            'id',
            'email',
            'first_name',
            'last_name',
            'real_estate_office',
            'credit_balance',
            'created_at',
        ]
        read_only_fields = fields

"""DRF serializers for images and the AI model catalogue."""

from rest_framework import serializers
from roomlift.models import AIModel, Image


class AIModelSerializer(serializers.ModelSerializer):
    """Serializer for AIModel model"""

    class Meta:
        model = AIModel
        fields = [
            'id',
            'model_identifier',
            'provider',
            'provider_kind',
            'display_name',
            'description',
            'sort_order',
        ]
        read_only_fields = fields


class ImageSerializer(serializers.ModelSerializer):
    """Serializer for Image model"""

    is_processing = serializers.ReadOnlyField()

    class Meta:
        model = Image
        fields = [
            'id',
            'folder_id',
            'name',
            'mime_type',
            'status',
            'is_processing',
            'original_url',
            'result_url',
            'watermarked_url',
            'metadata',
            'created_at',
            'updated_at',
        ]
        read_only_fields = fields

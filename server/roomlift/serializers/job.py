"""DRF serializers for job requests, job logs and batches.

Request bodies use the camelCase keys the web client sends.
"""

from rest_framework import serializers
from roomlift.models import EnhancementLog, JobBatch
from roomlift.services.batch import derive_batch_items, summarize

MAX_BATCH_SIZE = 50


class EnhancementLogSerializer(serializers.ModelSerializer):
    """Serializer for EnhancementLog model"""

    model_identifier = serializers.SerializerMethodField()

    class Meta:
        model = EnhancementLog
        fields = [
            'id',
            'image',
            'batch',
            'kind',
            'status',
            'model_identifier',
            'cost_credits',
            'parameters',
            'metadata',
            'result_url',
            'error_message',
            'started_at',
            'completed_at',
            'duration_ms',
            'refunded_at',
            'created_at',
        ]
        read_only_fields = fields

    def get_model_identifier(self, obj):
        return obj.ai_model.model_identifier if obj.ai_model_id else None


class JobRequestSerializer(serializers.Serializer):
    """Body of a single enhancement or decoration request"""

    imageId = serializers.IntegerField(min_value=1)
    modelId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    promptOverride = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
    )


class BatchRequestSerializer(serializers.Serializer):
    """Body of a batch request"""

    imageIds = serializers.ListField(
        child=serializers.IntegerField(min_value=1),
        allow_empty=False,
        max_length=MAX_BATCH_SIZE,
    )
    modelId = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    kind = serializers.ChoiceField(
        choices=[choice for choice, _ in EnhancementLog.KIND_CHOICES],
        default=EnhancementLog.KIND_ENHANCEMENT,
    )
    promptOverride = serializers.CharField(
        required=False,
        allow_blank=True,
        allow_null=True,
        trim_whitespace=False,
    )


class BatchItemSerializer(serializers.Serializer):
    """Derived status of one batch item"""

    image_id = serializers.IntegerField()
    status = serializers.CharField()
    log_id = serializers.IntegerField(allow_null=True)
    result_url = serializers.CharField(allow_null=True)
    error = serializers.DictField(allow_null=True)


class JobBatchSerializer(serializers.ModelSerializer):
    """Batch with its items and counts re-derived on every read"""

    items = serializers.SerializerMethodField()
    counts = serializers.SerializerMethodField()

    class Meta:
        model = JobBatch
        fields = [
            'id',
            'kind',
            'ai_model',
            'image_ids',
            'status',
            'items',
            'counts',
            'created_at',
            'started_at',
            'finished_at',
        ]
        read_only_fields = fields

    def _items(self, obj):
        # Derive once per serialization
        if not hasattr(obj, '_derived_items'):
            obj._derived_items = derive_batch_items(obj)
        return obj._derived_items

    def get_items(self, obj):
        return BatchItemSerializer(self._items(obj), many=True).data

    def get_counts(self, obj):
        return summarize(self._items(obj))

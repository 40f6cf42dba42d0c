from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from roomlift.models import JobBatch
from roomlift.serializers import BatchRequestSerializer, JobBatchSerializer
from roomlift.services.batch import unique_image_ids
from roomlift.services.orchestrator import get_orchestrator
from roomlift.tasks import process_batch
from roomlift.utils import format_error


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def create_batch(request):
    """
    Queue several images for sequential processing.
    """
    serializer = BatchRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            format_error(
                code="validation_error",
                message="Invalid batch request",
                details=serializer.errors,
            ),
            status=status.HTTP_400_BAD_REQUEST,
        )

    data = serializer.validated_data
    # Reject an unknown model now rather than once per item
    ai_model = get_orchestrator(data["kind"]).resolve_model(data.get("modelId"))

    batch = JobBatch.objects.create(
        user=request.user,
        kind=data["kind"],
        ai_model=ai_model,
        image_ids=unique_image_ids(data["imageIds"]),
        prompt_override=data.get("promptOverride") or "",
    )

    process_batch.delay(batch.id)

    return Response(JobBatchSerializer(batch).data, status=status.HTTP_202_ACCEPTED)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def batch_detail(request, batch_id):
    """
    Get batch progress, derived from the job logs on every call.
    """
    try:
        batch = JobBatch.objects.get(id=batch_id, user=request.user)
    except JobBatch.DoesNotExist:
        return Response(
            format_error(code="not_found", message="Batch not found"),
            status=status.HTTP_404_NOT_FOUND,
        )

    return Response(JobBatchSerializer(batch).data)

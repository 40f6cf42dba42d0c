"""Single-image enhancement and decoration endpoints.

Job failures surface as `JobError` subclasses and are rendered by the project
exception handler; only request validation is answered here.
"""

from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from roomlift.serializers import EnhancementLogSerializer, ImageSerializer, JobRequestSerializer
from roomlift.services.orchestrator import DECORATION, ENHANCEMENT, JobOrchestrator, get_owned_image
from roomlift.utils import format_error


def _run_job(request, kind):
    serializer = JobRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return Response(
            format_error(
                code="validation_error",
                message="Invalid job request",
                details=serializer.errors,
            ),
            status=status.HTTP_400_BAD_REQUEST,
        )

    data = serializer.validated_data
    result = JobOrchestrator(kind).run(
        request.user,
        data["imageId"],
        model_id=data.get("modelId"),
        prompt_override=data.get("promptOverride"),
    )

    return Response(
        {
            "image": ImageSerializer(result.image).data,
            "log": EnhancementLogSerializer(result.log).data,
            "resultUrl": result.result_url,
        }
    )


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def enhance_image(request):
    """
    Enhance one image (lighting, clarity, cleanup).
    """
    return _run_job(request, ENHANCEMENT)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def decorate_image(request):
    """
    Virtually stage one empty room.
    """
    return _run_job(request, DECORATION)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def image_detail(request, image_id):
    """
    Current image status with its most recent job, read from the database.
    """
    image = get_owned_image(request.user, image_id)
    latest_log = image.enhancement_logs.select_related("ai_model").first()

    return Response(
        {
            "image": ImageSerializer(image).data,
            "log": EnhancementLogSerializer(latest_log).data if latest_log else None,
        }
    )

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny
from rest_framework.response import Response
from rest_framework.reverse import reverse


@api_view(["GET"])
@permission_classes([AllowAny])
def api_root(request, format=None):
    """
    API root endpoint to make the browsable API navigable.
    """
    return Response(
        {
            "health": reverse("health_check", request=request, format=format),
            "images_enhance": reverse("enhance_image", request=request, format=format),
            "images_decorate": reverse("decorate_image", request=request, format=format),
            "batches": reverse("create_batch", request=request, format=format),
            "models": reverse("ai_models", request=request, format=format),
            "credits": reverse("credit_summary", request=request, format=format),
            "enhancements_history": reverse(
                "enhancement_history", request=request, format=format
            ),
            "image_detail_template": "/api/images/{image_id}/",
            "batch_detail_template": "/api/batches/{batch_id}/",
        }
    )

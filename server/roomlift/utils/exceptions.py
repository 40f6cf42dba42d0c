from rest_framework.views import exception_handler as drf_exception_handler
from rest_framework.response import Response
from rest_framework import status


def exception_handler(exc, context):
    """
    Custom exception handler for DRF that returns consistent error format.

    Job pipeline errors are rendered with their own status code and details;
    everything else goes through DRF's default handling first.
    """
    if isinstance(exc, JobError):
        return Response(
            format_error(code=exc.code, message=str(exc), details=exc.details),
            status=exc.status_code,
        )

    response = drf_exception_handler(exc, context)

    if response:
        response.data = format_error(
            code=getattr(exc, "default_code", "error"),
            message=str(exc),
            details=(
                response.data
                if isinstance(response.data, dict)
                else {"detail": response.data}
            ),
        )

    return response


def format_error(code: str, message: str, details=None):
    return {
        "error": {
            "code": str(code).upper(),
            "message": message,
            "details": details if details is not None else {},
        }
    }


class JobError(Exception):
    """Base class for failures of an enhancement or decoration job"""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "job_error"

    def __init__(self, message, details=None):
        self.details = details or {}
        super().__init__(message)


class ImageNotFoundError(JobError):
    """Raised when the requested image does not exist"""
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"

    def __init__(self, image_id):
        self.image_id = image_id
        super().__init__("Image not found", {"image_id": image_id})


class ImageForbiddenError(JobError):
    """Raised when the image belongs to another user"""
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"

    def __init__(self, image_id):
        self.image_id = image_id
        super().__init__("You do not have access to this image", {"image_id": image_id})


class ImageBusyError(JobError):
    """Raised when a job is requested for an image that is already processing"""
    status_code = status.HTTP_409_CONFLICT
    code = "image_busy"

    def __init__(self, image_id):
        self.image_id = image_id
        super().__init__("Image is already being processed", {"image_id": image_id})


class InvalidModelError(JobError):
    """Raised when no active AI model matches the request"""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_model"

    def __init__(self, model_id=None):
        self.model_id = model_id
        super().__init__("AI model not found or inactive", {"ai_model_id": model_id})


class InsufficientCreditsError(JobError):
    """Raised when user doesn't have enough credits"""
    status_code = status.HTTP_402_PAYMENT_REQUIRED
    code = "insufficient_credits"

    def __init__(self, credits_available, credits_needed):
        self.credits_available = credits_available
        self.credits_needed = credits_needed
        super().__init__(
            f"Insufficient credits. Have {credits_available}, need {credits_needed}",
            {"required": str(credits_needed), "available": str(credits_available)},
        )


class ProviderCapacityError(JobError):
    """Raised when every provider slot is taken"""
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    code = "provider_capacity"

    def __init__(self, limit):
        self.limit = limit
        super().__init__(
            "Image providers are busy, try again shortly",
            {"max_concurrent_jobs": limit},
        )


class ProviderError(JobError):
    """Raised on a non-success provider response or a FAILED terminal status"""
    code = "provider_error"

    def __init__(self, message, provider_status=None, body=None):
        self.provider_status = provider_status
        self.body = body
        details = {}
        if provider_status is not None:
            details["provider_status"] = provider_status
        super().__init__(message, details)


class ProviderTimeoutError(ProviderError):
    """Raised when a queued provider job is still running after the poll cap"""
    code = "provider_timeout"

    def __init__(self, attempts):
        self.attempts = attempts
        super().__init__(f"Provider processing timed out after {attempts} status checks")


class StorageError(JobError):
    """Raised when an upload to or download from object storage fails"""
    code = "storage_error"


class ProcessingError(JobError):
    """Raised for any other failure after credits were reserved"""
    code = "processing_error"

from .exceptions import (
    exception_handler,
    format_error,
    ImageBusyError,
    ImageForbiddenError,
    ImageNotFoundError,
    InsufficientCreditsError,
    InvalidModelError,
    JobError,
    ProcessingError,
    ProviderCapacityError,
    ProviderError,
    ProviderTimeoutError,
    StorageError,
)
from .storage import CloudinaryStorage, get_storage

__all__ = [
    "CloudinaryStorage",
    "get_storage",
    "exception_handler",
    "format_error",
    "ImageBusyError",
    "ImageForbiddenError",
    "ImageNotFoundError",
    "InsufficientCreditsError",
    "InvalidModelError",
    "JobError",
    "ProcessingError",
    "ProviderCapacityError",
    "ProviderError",
    "ProviderTimeoutError",
    "StorageError",
]

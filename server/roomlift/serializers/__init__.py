"""Serializer package for the `roomlift` Django app.

This package re-exports the public DRF serializer classes used by views.
"""

from .credit import CreditTransactionSerializer
from .image import AIModelSerializer, ImageSerializer
from .job import (
    BatchItemSerializer,
    BatchRequestSerializer,
    EnhancementLogSerializer,
    JobBatchSerializer,
    JobRequestSerializer,
)
from .user import UserSerializer

__all__ = [
    "AIModelSerializer",
    "BatchItemSerializer",
    "BatchRequestSerializer",
    "CreditTransactionSerializer",
    "EnhancementLogSerializer",
    "ImageSerializer",
    "JobBatchSerializer",
    "JobRequestSerializer",
    "UserSerializer",
]

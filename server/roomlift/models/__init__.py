"""Database models exposed by the `roomlift` Django app.

This package aggregates model classes to provide a convenient import surface
for other parts of the backend.
"""

from .credit import CreditTransaction
from .enhancement import EnhancementLog, JobBatch
from .image import AIModel, Image
from .user import User

__all__ = [
    "AIModel",
    "CreditTransaction",
    "EnhancementLog",
    "Image",
    "JobBatch",
    "User",
]

from roomlift.views.api_root import api_root
from roomlift.views.batches import batch_detail, create_batch
from roomlift.views.catalog import credit_summary, enhancement_history, list_ai_models
from roomlift.views.health import health_check
from roomlift.views.jobs import decorate_image, enhance_image, image_detail

__all__ = [
    "api_root",
    "batch_detail",
    "create_batch",
    "credit_summary",
    "decorate_image",
    "enhance_image",
    "enhancement_history",
    "health_check",
    "image_detail",
    "list_ai_models",
]

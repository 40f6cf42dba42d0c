"""Provider adapters selected by an AI model's provider kind."""

from roomlift.models import AIModel
from roomlift.utils.exceptions import InvalidModelError

from .base import JobInvocation, ProviderAdapter, ProviderResult
from .fal_client import FalQueueAdapter
from .openai_client import OpenAIImageEditAdapter

ADAPTERS = {
    AIModel.PROVIDER_KIND_SYNC: OpenAIImageEditAdapter,
    AIModel.PROVIDER_KIND_ASYNC_QUEUE: FalQueueAdapter,
}


def get_adapter(ai_model) -> ProviderAdapter:
    """Instantiate the adapter for the model's provider kind"""
    adapter_cls = ADAPTERS.get(ai_model.provider_kind)
    if adapter_cls is None:
        raise InvalidModelError(ai_model.id)
    return adapter_cls()


__all__ = [
    "ADAPTERS",
    "FalQueueAdapter",
    "JobInvocation",
    "OpenAIImageEditAdapter",
    "ProviderAdapter",
    "ProviderResult",
    "get_adapter",
]

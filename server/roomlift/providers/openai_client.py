import base64
import binascii
import logging
from typing import Dict, Optional

import requests
from django.conf import settings

from roomlift.models import AIModel
from roomlift.utils.exceptions import ProviderError

from .base import (
    JobInvocation,
    ProviderAdapter,
    ProviderResult,
    provider_json,
    raise_for_provider_status,
)

logger = logging.getLogger(__name__)

# Optional settings forwarded verbatim to the edits endpoint
OPENAI_PASSTHROUGH_SETTINGS = ("quality", "size", "background", "input_fidelity")


class OpenAIImageEditAdapter(ProviderAdapter):
    """Synchronous adapter for the OpenAI image edits endpoint"""

    provider_kind = AIModel.PROVIDER_KIND_SYNC

    def __init__(self, api_key: Optional[str] = None, base_url: Optional[str] = None, timeout: Optional[int] = None):
        super().__init__(timeout=timeout)
        self.api_key = api_key or settings.OPENAI_API_KEY
        self.base_url = (base_url or settings.OPENAI_API_URL).rstrip("/")
        self.headers = {
            'Authorization': f'Bearer {self.api_key}'
        }

    def build_payload(self, invocation: JobInvocation) -> Dict:
        payload = {
            "model": invocation.ai_model.model_identifier or settings.OPENAI_IMAGE_MODEL,
            "prompt": invocation.prompt,
        }
        for key in OPENAI_PASSTHROUGH_SETTINGS:
            value = invocation.model_settings.get(key)
            if value is not None:
                payload[key] = value
        return payload

    def generate(self, invocation: JobInvocation) -> ProviderResult:
        """
        Issue exactly one edit request

        Args:
            invocation: job invocation with source bytes and resolved prompt

        Returns:
            ProviderResult with the edited image bytes

        Raises:
            ProviderError: on a missing key, a non-2xx response or an empty result
        """
        if not self.api_key:
            raise ProviderError("OPENAI_API_KEY is not configured")

        payload = invocation.payload or self.build_payload(invocation)
        extension = invocation.mime_type.split("/")[-1] or "png"
        files = {
            "image": (f"source.{extension}", invocation.source, invocation.mime_type),
        }

        logger.info(f"Calling OpenAI {payload['model']} for image {invocation.image_id}")
        try:
            response = requests.post(
                f"{self.base_url}/images/edits",
                headers=self.headers,
                data=payload,
                files=files,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise ProviderError(f"OpenAI request failed: {exc}") from exc

        raise_for_provider_status(response, "OpenAI")

        data = provider_json(response, "OpenAI").get("data") or []
        first = data[0] if data else {}
        if first.get("b64_json"):
            try:
                content = base64.b64decode(first["b64_json"])
            except (ValueError, binascii.Error) as exc:
                raise ProviderError(f"OpenAI returned undecodable image data: {exc}") from exc
        elif first.get("url"):
            content = self.fetch_image(first["url"])
        else:
            raise ProviderError("OpenAI API did not return any image data", body=response.text)

        return ProviderResult(content=content, metadata={"delivery": "inline"})

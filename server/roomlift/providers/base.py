"""Common types shared by the provider adapters."""

import base64
import binascii
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

import requests
from django.conf import settings

from roomlift.utils.exceptions import ProviderError


@dataclass
class JobInvocation:
    """Everything an adapter needs to run one job"""

    image_id: int
    ai_model: Any
    prompt: str
    source: bytes
    mime_type: str
    payload: Dict[str, Any] = field(default_factory=dict)

    @property
    def model_settings(self) -> Dict[str, Any]:
        return self.ai_model.settings or {}

    @property
    def source_data_url(self) -> str:
        encoded = base64.b64encode(self.source).decode("ascii")
        return f"data:{self.mime_type};base64,{encoded}"


@dataclass
class ProviderResult:
    """Final image bytes plus whatever the provider told us about the run"""

    content: bytes
    metadata: Dict[str, Any] = field(default_factory=dict)


class ProviderAdapter(ABC):
    """Interface every provider protocol implements"""

    provider_kind: str = ""

    def __init__(self, timeout: Optional[int] = None):
        self.timeout = timeout or settings.PROVIDER_HTTP_TIMEOUT_SECONDS

    @abstractmethod
    def build_payload(self, invocation: JobInvocation) -> Dict[str, Any]:
        """Return the provider-specific request fields for an invocation"""

    @abstractmethod
    def generate(self, invocation: JobInvocation) -> ProviderResult:
        """Run the job and return the final image bytes or raise ProviderError"""

    def fetch_image(self, url: str) -> bytes:
        """
        Download a result image

        `data:` URLs are decoded in place, anything else is fetched over HTTP.
        """
        if url.startswith("data:"):
            try:
                _, encoded = url.split(",", 1)
                return base64.b64decode(encoded)
            except (ValueError, binascii.Error) as exc:
                raise ProviderError(f"Provider returned an unreadable data URL: {exc}") from exc

        try:
            response = requests.get(url, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Failed to download result image: {exc}") from exc

        if not response.ok:
            raise ProviderError(
                f"Failed to download result image: {response.status_code}",
                provider_status=response.status_code,
                body=response.text,
            )
        return response.content


def raise_for_provider_status(response, provider_label: str):
    """Turn a non-2xx provider response into a ProviderError carrying status and body"""
    if response.ok:
        return
    raise ProviderError(
        f"{provider_label} API error ({response.status_code}): {response.text}",
        provider_status=response.status_code,
        body=response.text,
    )


def provider_json(response, provider_label: str) -> Dict[str, Any]:
    """Decode a provider JSON body, treating garbage as a provider failure"""
    try:
        body = response.json()
    except ValueError as exc:
        raise ProviderError(
            f"{provider_label} returned a non-JSON response",
            provider_status=response.status_code,
            body=response.text,
        ) from exc
    return body if isinstance(body, dict) else {}

import json
import logging
import time
from typing import Dict, Optional

import requests
from django.conf import settings

from roomlift.models import AIModel
from roomlift.utils.exceptions import ProviderError, ProviderTimeoutError

from .base import (
    JobInvocation,
    ProviderAdapter,
    ProviderResult,
    provider_json,
    raise_for_provider_status,
)

logger = logging.getLogger(__name__)

FAL_QUEUE_URL = "https://queue.fal.run"

STATE_COMPLETED = "COMPLETED"
STATE_FAILED = "FAILED"

# Models that take a list of input images instead of a single URL
IMAGE_URLS_MODELS = {"fal-ai/reve/remix", "fal-ai/nano-banana-pro/edit"}

FAL_OPTIONAL_SETTINGS = ("image_size", "num_inference_steps", "guidance_scale", "strength")


def extract_image_url(body: Dict) -> Optional[str]:
    """Find the first image URL in any of the shapes fal.ai returns"""
    if not isinstance(body, dict):
        return None
    images = body.get("images") or []
    if images and isinstance(images[0], dict) and images[0].get("url"):
        return images[0]["url"]
    image = body.get("image")
    if isinstance(image, dict) and image.get("url"):
        return image["url"]
    data = body.get("data")
    if isinstance(data, dict):
        return extract_image_url(data)
    return None


def _diagnostic_text(status: Dict) -> str:
    details = status.get("error") or status.get("logs") or "Unknown error"
    if isinstance(details, str):
        return details
    return json.dumps(details)


class FalQueueAdapter(ProviderAdapter):
    """
    Adapter for fal.ai models

    The submit call either answers with the image right away or with a queue
    handle that has to be polled until it reaches a terminal state.
    """

    provider_kind = AIModel.PROVIDER_KIND_ASYNC_QUEUE

    def __init__(
        self,
        api_key: Optional[str] = None,
        poll_interval: Optional[float] = None,
        max_attempts: Optional[int] = None,
        timeout: Optional[int] = None,
    ):
        super().__init__(timeout=timeout)
        self.api_key = api_key or settings.FAL_API_KEY
        self.poll_interval = settings.FAL_POLL_INTERVAL_SECONDS if poll_interval is None else poll_interval
        self.max_attempts = max_attempts or settings.FAL_MAX_POLL_ATTEMPTS
        self.auth_headers = {
            'Authorization': f'Key {self.api_key}'
        }
        self.headers = {
            'Content-Type': 'application/json',
            **self.auth_headers,
        }

    def endpoint_for(self, ai_model) -> str:
        endpoint = (ai_model.settings or {}).get("endpoint") or settings.FAL_ENDPOINTS.get(ai_model.model_identifier)
        if not endpoint:
            raise ProviderError(f"Unsupported fal.ai model: {ai_model.model_identifier}")
        return endpoint

    def build_payload(self, invocation: JobInvocation) -> Dict:
        model_settings = invocation.model_settings
        payload = {
            "prompt": invocation.prompt,
            "num_images": 1,
            "enable_safety_checker": model_settings.get("enable_safety_checker", True),
            "output_format": model_settings.get("output_format") or "png",
        }

        image_param = model_settings.get("image_param")
        if not image_param:
            image_param = "image_urls" if invocation.ai_model.model_identifier in IMAGE_URLS_MODELS else "image_url"
        if image_param == "image_urls":
            payload["image_urls"] = [invocation.source_data_url]
        else:
            payload["image_url"] = invocation.source_data_url

        for key in FAL_OPTIONAL_SETTINGS:
            if model_settings.get(key) is not None:
                payload[key] = model_settings[key]
        return payload

    def submit(self, endpoint: str, payload: Dict) -> Dict:
        """
        Create a new fal.ai request

        Returns:
            Response body, either carrying images or a queue handle
        """
        try:
            response = requests.post(endpoint, headers=self.headers, json=payload, timeout=self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"fal.ai request failed: {exc}") from exc

        raise_for_provider_status(response, "fal.ai")
        return provider_json(response, "fal.ai")

    def check_status(self, status_url: str, timeout: Optional[float] = None) -> Dict:
        """Fetch the current state of a queued request"""
        try:
            response = requests.get(status_url, headers=self.auth_headers, timeout=timeout or self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Failed to check fal.ai status: {exc}") from exc

        if not response.ok:
            raise ProviderError(
                f"Failed to check fal.ai status: {response.status_code}",
                provider_status=response.status_code,
                body=response.text,
            )
        return provider_json(response, "fal.ai")

    def fetch_result(self, response_url: str, timeout: Optional[float] = None) -> Dict:
        """Fetch the result document a COMPLETED status points to"""
        try:
            response = requests.get(response_url, headers=self.auth_headers, timeout=timeout or self.timeout)
        except requests.RequestException as exc:
            raise ProviderError(f"Failed to fetch fal.ai result: {exc}") from exc

        if not response.ok:
            raise ProviderError(
                f"Failed to fetch result from response_url: {response.status_code}",
                provider_status=response.status_code,
                body=response.text,
            )
        return provider_json(response, "fal.ai")

    def _remaining(self, deadline: float, checks_made: int) -> float:
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            logger.warning(f"fal.ai polling deadline passed after {checks_made} status checks")
            raise ProviderTimeoutError(checks_made)
        return remaining

    def _request_timeout(self, deadline: float, checks_made: int) -> float:
        # A slow endpoint must not stretch polling past the deadline
        return min(self.timeout, self._remaining(deadline, checks_made))

    def wait_for_completion(self, status_url: str) -> tuple:
        """
        Poll a queued request until it is terminal

        Args:
            status_url: status endpoint of the queued request

        Returns:
            (image URL, number of status checks made)

        Raises:
            ProviderError: FAILED status, carrying the provider diagnostic verbatim
            ProviderTimeoutError: still running after max_attempts checks, or
                once max_attempts * poll_interval seconds have passed
        """
        if self.poll_interval > 0:
            deadline = time.monotonic() + self.max_attempts * self.poll_interval
        else:
            deadline = float("inf")

        for attempt in range(1, self.max_attempts + 1):
            time.sleep(min(self.poll_interval, self._remaining(deadline, attempt - 1)))
            status = self.check_status(status_url, timeout=self._request_timeout(deadline, attempt - 1))
            state = status.get("status")
            logger.debug(f"fal.ai status check {attempt}: {state}")

            if state == STATE_COMPLETED:
                if status.get("response_url"):
                    image_url = extract_image_url(
                        self.fetch_result(
                            status["response_url"],
                            timeout=self._request_timeout(deadline, attempt),
                        )
                    )
                else:
                    image_url = extract_image_url(status)
                if not image_url:
                    raise ProviderError(
                        "fal.ai reported COMPLETED but returned no image",
                        body=json.dumps(status),
                    )
                logger.info(f"fal.ai request completed after {attempt} status checks")
                return image_url, attempt

            if state == STATE_FAILED:
                diagnostic = _diagnostic_text(status)
                logger.warning(f"fal.ai processing failed: {diagnostic}")
                raise ProviderError(diagnostic, body=json.dumps(status))

        raise ProviderTimeoutError(self.max_attempts)

    def status_url_for(self, ai_model, body: Dict) -> Optional[str]:
        if body.get("status_url"):
            return body["status_url"]
        if body.get("request_id"):
            return f"{FAL_QUEUE_URL}/{ai_model.model_identifier}/requests/{body['request_id']}/status"
        return None

    def generate(self, invocation: JobInvocation) -> ProviderResult:
        if not self.api_key:
            raise ProviderError("FAL_API_KEY is not configured")

        endpoint = self.endpoint_for(invocation.ai_model)
        payload = invocation.payload or self.build_payload(invocation)

        logger.info(f"Submitting image {invocation.image_id} to fal.ai {invocation.ai_model.model_identifier}")
        body = self.submit(endpoint, payload)

        image_url = extract_image_url(body)
        if image_url:
            return ProviderResult(content=self.fetch_image(image_url), metadata={"delivery": "inline"})

        status_url = self.status_url_for(invocation.ai_model, body)
        if not status_url:
            raise ProviderError("fal.ai API did not return any image data", body=json.dumps(body))

        logger.info(f"fal.ai request {body.get('request_id', '')} queued, polling for completion")
        image_url, attempts = self.wait_for_completion(status_url)
        return ProviderResult(
            content=self.fetch_image(image_url),
            metadata={
                "delivery": "queue",
                "request_id": body.get("request_id"),
                "poll_attempts": attempts,
            },
        )

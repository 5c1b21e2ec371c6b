"""
OpenAI image provider.

Calls the images/generations endpoint for a single square image and returns
the hosted image URL(s).
"""

import json
import time
from typing import Any

import requests

from vyra.core.providers.base import raise_for_api_status
from vyra.logging_config import get_logger
from vyra.utils.exceptions import APIError, NetworkError, RequestTimeoutError

logger = get_logger(__name__)


class OpenAIImageProvider:
    """Image generation provider for the OpenAI images API."""

    def __init__(
        self,
        api_key: str,
        model: str,
        base_url: str,
        size: str = "1024x1024",
        quality: str = "standard",
        debug: bool = False,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.size = size
        self.quality = quality
        self.debug = debug

    def _build_payload(self, prompt: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "prompt": prompt,
            "n": 1,
            "size": self.size,
            "quality": self.quality,
            "response_format": "url",
        }

    def generate_images(self, prompt: str, timeout: int) -> list[str]:
        url = f"{self.base_url}/images/generations"
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        payload = self._build_payload(prompt)
        logger.debug("API request url=%s model=%s timeout=%s", url, self.model, timeout)
        if self.debug:
            logger.info("API request payload: %s", json.dumps(payload, indent=2))

        start_time = time.time()
        try:
            response = requests.post(url, headers=headers, json=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise RequestTimeoutError(
                f"Request timed out after {timeout} seconds. "
                "The generation may be taking longer than expected."
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError(
                "Failed to connect to OpenAI API. Please check your internet connection.",
                original_error=e,
            ) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                f"Network error during API request: {str(e)}", original_error=e
            ) from e
        logger.debug(
            "API response status=%s time=%.2fs", response.status_code, time.time() - start_time
        )

        raise_for_api_status(response, "OpenAI", self.model)
        try:
            result = response.json()
        except ValueError as e:
            raise APIError(
                f"Failed to parse API response as JSON: {str(e)}", response=response.text
            ) from e
        if self.debug:
            logger.info("API response: %s", json.dumps(result, indent=2, default=str))

        data = result.get("data") or []
        return [item["url"] for item in data if isinstance(item, dict) and item.get("url")]

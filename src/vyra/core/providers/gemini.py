"""
Gemini text provider.

Sends a single-turn generateContent request to the Gemini REST API and
returns the concatenated text of the first candidate.
"""

import json
import time
from typing import Any

import requests

from vyra.core.providers.base import raise_for_api_status
from vyra.logging_config import get_logger
from vyra.utils.exceptions import APIError, NetworkError, RequestTimeoutError

logger = get_logger(__name__)


class GeminiTextProvider:
    """Text generation provider for the Gemini generateContent endpoint."""

    def __init__(self, api_key: str, model: str, base_url: str, debug: bool = False) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.debug = debug

    def _build_payload(self, instruction: str) -> dict[str, Any]:
        return {"contents": [{"role": "user", "parts": [{"text": instruction}]}]}

    def _parse_text(self, result: dict[str, Any]) -> str:
        """Join the text parts of the first candidate; empty string if there are none."""
        candidates = result.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts if isinstance(part, dict))

    def generate_text(self, instruction: str, timeout: int) -> str:
        url = f"{self.base_url}/models/{self.model}:generateContent"
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json",
        }
        payload = self._build_payload(instruction)
        logger.debug("API request url=%s model=%s timeout=%s", url, self.model, timeout)
        if self.debug:
            logger.info("API request payload: %s", json.dumps(payload, indent=2))

        start_time = time.time()
        try:
            response = requests.post(url, headers=headers, json=payload, timeout=timeout)
        except requests.exceptions.Timeout as e:
            raise RequestTimeoutError(
                f"Prompt optimization timed out after {timeout} seconds."
            ) from e
        except requests.exceptions.ConnectionError as e:
            raise NetworkError("Failed to connect to Gemini API.", original_error=e) from e
        except requests.exceptions.RequestException as e:
            raise NetworkError(
                f"Network error during API request: {str(e)}", original_error=e
            ) from e
        logger.debug(
            "API response status=%s time=%.2fs", response.status_code, time.time() - start_time
        )

        raise_for_api_status(response, "Gemini", self.model)
        try:
            result = response.json()
        except ValueError as e:
            raise APIError(
                f"Failed to parse API response as JSON: {str(e)}", response=response.text
            ) from e
        if self.debug:
            logger.info("API response: %s", json.dumps(result, indent=2, default=str))
        return self._parse_text(result)

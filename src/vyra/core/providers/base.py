"""
Provider protocols for prompt optimization and image generation.

Defines the interfaces the optimizer and the image generator call, plus the
HTTP status mapping shared by the built-in providers.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from vyra.utils.exceptions import APIError

if TYPE_CHECKING:
    import requests


class TextGenerationProvider(Protocol):
    """Secondary provider: free-text instruction in, free text out."""

    def generate_text(self, instruction: str, timeout: int) -> str:
        """Return the model's text response (may be empty).

        May raise APIError, NetworkError or RequestTimeoutError.
        """
        ...


class ImageGenerationProvider(Protocol):
    """Primary provider: prompt in, list of resolvable image references out."""

    def generate_images(self, prompt: str, timeout: int) -> list[str]:
        """Return image URLs for one square image synthesized from prompt.

        An empty list means the call succeeded but produced nothing usable.
        May raise APIError, NetworkError or RequestTimeoutError.
        """
        ...


def raise_for_api_status(response: requests.Response, service: str, model: str) -> None:
    """Map a non-200 provider response to APIError with a readable message."""
    status = response.status_code
    if status == 200:
        return
    if status in (401, 403):
        raise APIError(
            f"Authentication failed. Please check your {service} API key.",
            status_code=status,
            response=response.text,
        )
    if status == 404:
        raise APIError(
            f"Model not found or endpoint unavailable: {model}",
            status_code=404,
            response=response.text,
        )
    if status == 429:
        raise APIError(
            "Rate limit exceeded. Please wait before making more requests.",
            status_code=429,
            response=response.text,
        )
    if status >= 500:
        raise APIError(
            f"{service} service error: {status}",
            status_code=status,
            response=response.text,
        )
    raise APIError(
        f"API request failed with status {status}: {response.text}",
        status_code=status,
        response=response.text,
    )

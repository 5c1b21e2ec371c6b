"""
Image generation via the primary provider.

Unlike prompt optimization this step is mandatory: every failure propagates
and aborts the request before any usage is recorded.
"""

import asyncio
import time
from dataclasses import dataclass

from vyra.core.clients import ProviderClients
from vyra.core.config import Config
from vyra.logging_config import get_logger, log_prompts
from vyra.utils.exceptions import UpstreamEmptyResultError, ValidationError

logger = get_logger(__name__)

# Max prompt length for logging
_PROMPT_LOG_MAX = 2_000


@dataclass
class GenerationResult:
    """Result of an image generation call."""

    image_url: str  # Resolvable reference returned by the provider
    prompt_used: str  # Prompt sent to the provider
    model_used: str  # Model that generated the image
    generation_time: float  # Time taken in seconds


class ImageGenerator:
    """Synthesizes one square image per call through the primary provider."""

    def __init__(self, clients: ProviderClients, config: Config | None = None) -> None:
        self.clients = clients
        self.config = config or clients.config

    def _generate_sync(self, prompt: str) -> GenerationResult:
        # Raises ConfigurationError before any network call when the key is missing
        provider = self.clients.image_provider()

        logger.info("Generating image model=%s", self.config.image_model)
        if log_prompts():
            truncated = prompt if len(prompt) <= _PROMPT_LOG_MAX else prompt[:_PROMPT_LOG_MAX] + "..."
            logger.info("Prompt (used): %s", truncated)

        start_time = time.time()
        urls = provider.generate_images(prompt, timeout=self.config.generation_timeout)
        generation_time = time.time() - start_time
        if not urls or not urls[0]:
            raise UpstreamEmptyResultError("No image returned.", response=repr(urls))

        logger.info("Generated in %.1fs model=%s", generation_time, self.config.image_model)
        return GenerationResult(
            image_url=urls[0],
            prompt_used=prompt,
            model_used=self.config.image_model,
            generation_time=generation_time,
        )

    async def generate(self, prompt: str) -> GenerationResult:
        """
        Generate an image for ``prompt``.

        Returns:
            GenerationResult with the image URL and metadata

        Raises:
            ValidationError: If prompt is empty
            ConfigurationError: If the primary provider is not configured
            APIError, NetworkError, RequestTimeoutError: If the provider call fails
            UpstreamEmptyResultError: If the provider returned no image reference
        """
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt cannot be empty.", field="prompt")
        return await asyncio.to_thread(self._generate_sync, prompt)

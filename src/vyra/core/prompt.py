"""
Prompt validation and optimization for vyra.

Optimization is best-effort: the secondary text model rewrites the user's
prompt for the image model, and any failure falls back to the original prompt.
"""

import asyncio
from typing import Any

from vyra.core.clients import ProviderClients
from vyra.core.config import MAX_PROMPT_LENGTH, Config
from vyra.core.prompts_loader import get_optimization_template
from vyra.logging_config import get_logger, log_prompts
from vyra.utils.exceptions import (
    APIError,
    ConfigurationError,
    NetworkError,
    RequestTimeoutError,
    ValidationError,
)

logger = get_logger(__name__)

_WRAPPING_QUOTES = "\"'"

# Failures of the secondary provider that fall back to the original prompt
_OPTIONAL_PROVIDER_ERRORS = (ConfigurationError, APIError, NetworkError, RequestTimeoutError)


def validate_prompt(prompt: Any, max_length: int = MAX_PROMPT_LENGTH) -> str:
    """
    Validate a text prompt.

    Args:
        prompt: The prompt to validate
        max_length: Maximum length after trimming surrounding whitespace

    Returns:
        The prompt with surrounding whitespace trimmed

    Raises:
        ValidationError: If prompt is not a string, empty, or too long
    """
    if not isinstance(prompt, str) or not prompt.strip():
        raise ValidationError("Prompt cannot be empty.", field="prompt")

    trimmed = prompt.strip()
    if len(trimmed) > max_length:
        raise ValidationError(
            f"Prompt is too long. Maximum length is {max_length} characters.",
            field="prompt",
        )
    return trimmed


def strip_wrapping_quotes(text: str) -> str:
    """Remove one leading and one trailing quote character, then surrounding whitespace."""
    if text[:1] in _WRAPPING_QUOTES:
        text = text[1:]
    if text[-1:] in _WRAPPING_QUOTES:
        text = text[:-1]
    return text.strip()


def build_optimization_instruction(
    prompt: str,
    style: str | None,
    target_model: str = "DALL-E 3",
    word_limit: int = 40,
) -> str:
    """Render the rewrite instruction sent to the text model."""
    return get_optimization_template().format(
        target_model=target_model,
        prompt=prompt,
        style=style or "none",
        word_limit=word_limit,
    )


class PromptOptimizer:
    """Rewrites prompts with the secondary provider; never fails the caller."""

    def __init__(self, clients: ProviderClients, config: Config | None = None) -> None:
        self.clients = clients
        self.config = config or clients.config

    def _optimize_sync(self, original: str, style: str | None) -> str:
        provider = self.clients.text_provider()
        instruction = build_optimization_instruction(
            original,
            style,
            target_model=self.config.optimization_target,
            word_limit=self.config.optimization_word_limit,
        )
        text = provider.generate_text(instruction, timeout=self.config.optimization_timeout)
        if not text:
            raise APIError("Text model returned an empty response")
        refined = strip_wrapping_quotes(text.strip())
        if not refined:
            raise APIError("Text model returned only quotes or whitespace", response=text)
        return refined

    async def optimize(self, original: str, style: str | None = None) -> str:
        """
        Return a refined prompt, or ``original`` unchanged if refinement fails.

        Args:
            original: The validated user prompt
            style: Optional free-form style descriptor

        Returns:
            The refined prompt, or the original prompt on any provider failure
        """
        try:
            refined = await asyncio.to_thread(self._optimize_sync, original, style)
        except _OPTIONAL_PROVIDER_ERRORS as e:
            logger.warning("Prompt optimization skipped: %s", e)
            return original
        except Exception as e:
            logger.warning("Prompt optimization skipped (unexpected error): %r", e)
            return original

        logger.info("Prompt optimized model=%s", self.config.optimization_model)
        if log_prompts():
            logger.info("Prompt (original): %s", original)
            logger.info("Prompt (optimized): %s", refined)
        return refined

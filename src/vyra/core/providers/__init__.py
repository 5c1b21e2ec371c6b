"""
Provider protocols and built-in HTTP implementations.

- Gemini (secondary, text): prompt optimization
- OpenAI (primary, images): image synthesis
"""

from vyra.core.providers.base import (
    ImageGenerationProvider,
    TextGenerationProvider,
    raise_for_api_status,
)
from vyra.core.providers.gemini import GeminiTextProvider
from vyra.core.providers.openai import OpenAIImageProvider

__all__ = [
    "GeminiTextProvider",
    "ImageGenerationProvider",
    "OpenAIImageProvider",
    "TextGenerationProvider",
    "raise_for_api_status",
]

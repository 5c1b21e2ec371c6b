"""
Authenticated callable entry point.

The hosting platform verifies the caller and passes an AuthContext (or None);
generate_image_handler runs the pipeline and translates outcomes into the
callable contract:

- success: {"success": True, "imageUrl": ..., "optimizedPrompt": ...}
- failure: CallableError with code unauthenticated | invalid-argument |
  resource-exhausted | internal

Only validation, auth and quota failures reach the caller with a specific
message. Everything else is logged in full here and reported as one generic
internal error.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Any

from vyra.core.orchestrator import GenerationRequest, Orchestrator
from vyra.logging_config import get_logger
from vyra.utils.exceptions import AuthError, QuotaExceededError, ValidationError

logger = get_logger(__name__)

UNAUTHENTICATED = "unauthenticated"
INVALID_ARGUMENT = "invalid-argument"
RESOURCE_EXHAUSTED = "resource-exhausted"
INTERNAL = "internal"

GENERIC_FAILURE_MESSAGE = "Generation failed. Please try again."


@dataclass
class AuthContext:
    """Verified caller identity supplied by the hosting platform."""

    uid: str
    token: dict[str, Any] = field(default_factory=dict, repr=False)


class CallableError(Exception):
    """Structured error returned to the caller."""

    def __init__(self, code: str, message: str, details: dict[str, Any] | None = None) -> None:
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """Wire shape of the error."""
        error: dict[str, Any] = {"status": self.code, "message": self.message}
        if self.details:
            error["details"] = self.details
        return {"error": error}


def map_exception_to_error(exc: BaseException) -> CallableError:
    """Map a pipeline exception to the caller-facing error.

    Configuration, provider, persistence and unexpected failures all collapse
    to INTERNAL with GENERIC_FAILURE_MESSAGE.
    """
    if isinstance(exc, CallableError):
        return exc
    if isinstance(exc, AuthError):
        return CallableError(UNAUTHENTICATED, str(exc) or "User must be logged in.")
    if isinstance(exc, ValidationError):
        return CallableError(INVALID_ARGUMENT, str(exc) or "Invalid argument.")
    if isinstance(exc, QuotaExceededError):
        return CallableError(RESOURCE_EXHAUSTED, str(exc), {"limit": exc.limit})
    return CallableError(INTERNAL, GENERIC_FAILURE_MESSAGE)


def parse_request(auth: AuthContext | None, data: Any) -> GenerationRequest:
    """
    Build a GenerationRequest from the callable payload.

    Raises:
        AuthError: If no verified identity is present
        ValidationError: If the payload is not an object or the prompt is not a string
    """
    if auth is None or not auth.uid:
        raise AuthError("User must be logged in to generate images.")
    if not isinstance(data, dict):
        raise ValidationError("Request data must be an object.")

    prompt = data.get("prompt")
    if not isinstance(prompt, str):
        raise ValidationError("Prompt cannot be empty.", field="prompt")
    style = data.get("style")
    if style is not None and not isinstance(style, str):
        style = str(style)

    return GenerationRequest(
        user_id=auth.uid,
        prompt=prompt,
        style=style,
        is_premium=data.get("isPremium") is True,
    )


async def generate_image_handler(
    auth: AuthContext | None,
    data: Any,
    orchestrator: Orchestrator | None = None,
) -> dict[str, Any]:
    """
    Handle one generateImage call.

    Args:
        auth: Verified identity, or None for an anonymous call
        data: Request payload {prompt, style?, isPremium?}
        orchestrator: Pipeline to use (defaults to one over the process-wide clients)

    Returns:
        {"success": True, "imageUrl": str, "optimizedPrompt": str}

    Raises:
        CallableError: For every failure
    """
    try:
        request = parse_request(auth, data)
        orchestrator = orchestrator or Orchestrator()
        response = await orchestrator.run(request)
    except (AuthError, ValidationError, QuotaExceededError) as e:
        logger.info("Generation rejected: %s", e)
        raise map_exception_to_error(e) from e
    except Exception as e:
        logger.exception("Generation failed user=%s: %s", getattr(auth, "uid", None), e)
        raise map_exception_to_error(e) from e

    return {
        "success": True,
        "imageUrl": response.image_url,
        "optimizedPrompt": response.optimized_prompt,
    }


def call_generate_image(
    auth: AuthContext | None,
    data: Any,
    orchestrator: Orchestrator | None = None,
) -> dict[str, Any]:
    """Synchronous wrapper around generate_image_handler for non-async hosts."""
    return asyncio.run(generate_image_handler(auth, data, orchestrator))


__all__ = [
    "AuthContext",
    "CallableError",
    "GENERIC_FAILURE_MESSAGE",
    "INTERNAL",
    "INVALID_ARGUMENT",
    "RESOURCE_EXHAUSTED",
    "UNAUTHENTICATED",
    "call_generate_image",
    "generate_image_handler",
    "map_exception_to_error",
    "parse_request",
]
